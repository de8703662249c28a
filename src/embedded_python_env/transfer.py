"""Streaming HTTP download to a file.

Unlike the command runner, every failure here propagates: a partial
download must never survive to be mistaken for a complete archive by
a later existence check. The destination is deleted before re-raising.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import httpx

from .exceptions import TransferCancelledError
from .exceptions import TransferError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 81920

# Connect/read timeouts only; large archives may take minutes overall
DOWNLOAD_TIMEOUT = httpx.Timeout(30.0, read=60.0)

ProgressCallback = Callable[[float], None]


async def download(
    url: str,
    destination: Path,
    progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """
    Download url to destination.

    Progress is reported as a percentage after each chunk, only when the
    server sends a Content-Length and a callback is given.

    Args:
        url: Source URL
        destination: File to create (replaced if it exists)
        progress: Optional callback receiving 0-100 percentages
        cancel_event: Setting it aborts the transfer, even mid-read
        transport: Optional httpx transport (None = network)

    Returns:
        destination

    Raises:
        TransferError: Non-success HTTP status
        TransferCancelledError: cancel_event was set
        httpx.HTTPError: Network failures
    """
    destination = Path(destination)
    try:
        destination.unlink(missing_ok=True)
        destination.parent.mkdir(parents=True, exist_ok=True)

        transfer = _stream_to_file(url, destination, progress, cancel_event, transport)
        if cancel_event is None:
            await transfer
        else:
            await _unless_cancelled(transfer, cancel_event, url)

        logger.debug(f"Downloaded {url} to {destination}")
        return destination

    except BaseException:
        # Includes task cancellation
        if destination.exists():
            destination.unlink()
        raise


async def _stream_to_file(
    url: str,
    destination: Path,
    progress: ProgressCallback | None,
    cancel_event: asyncio.Event | None,
    transport: httpx.AsyncBaseTransport | None,
) -> None:
    with open(destination, "xb") as out:
        async with httpx.AsyncClient(
            transport=transport,
            timeout=DOWNLOAD_TIMEOUT,
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as response:
                if response.is_error:
                    raise TransferError(
                        f"Download failed: HTTP {response.status_code} for {url}",
                        context={"url": url, "status_code": response.status_code},
                    )

                total = _content_length(response)
                report = progress is not None and total is not None
                received = 0

                chunk_size = CHUNK_SIZE if report else None
                async for chunk in response.aiter_bytes(chunk_size):
                    if cancel_event is not None and cancel_event.is_set():
                        raise TransferCancelledError(
                            f"Download cancelled: {url}",
                            context={"url": url},
                        )
                    out.write(chunk)
                    if report:
                        received += len(chunk)
                        # Content-Length counts encoded bytes
                        progress(min(received / total * 100, 100.0))


async def _unless_cancelled(transfer, cancel_event: asyncio.Event, url: str) -> None:
    """Await transfer, aborting it as soon as cancel_event is set, even mid-read."""
    stream_task = asyncio.create_task(transfer)
    cancel_waiter = asyncio.create_task(cancel_event.wait())
    tasks = [stream_task, cancel_waiter]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        if stream_task in done:
            stream_task.result()
            return
        stream_task.cancel()
        await asyncio.gather(stream_task, return_exceptions=True)
        raise TransferCancelledError(f"Download cancelled: {url}", context={"url": url})
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # The stream must have closed its file before the caller deletes it
        await asyncio.gather(*tasks, return_exceptions=True)


def _content_length(response: httpx.Response) -> int | None:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length > 0 else None


class ProgressLog:
    """Progress callback that writes one line per whole percent."""

    def __init__(self, log: Callable[[str], None]):
        self.log = log
        self.last = -1

    def __call__(self, percent: float) -> None:
        if int(percent) != self.last:
            self.last = int(percent)
            self.log(f"{percent:.2f}%")

"""Protocols for the replaceable strategies of the provisioning pipeline.

The orchestrator only depends on these interfaces. Apps may provide
any acquisition source or command invoker that satisfies them.
"""

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Protocol
from typing import runtime_checkable

if TYPE_CHECKING:
    from .config import EnvironmentConfig

LogSink = Callable[[str], None]
"""Receives every free-text progress/diagnostic line."""


@runtime_checkable
class AcquisitionSourceProtocol(Protocol):
    """Protocol for distribution archive sources.

    Implementations shipped with the library:
    - RemoteSource: HTTP download
    - BundledSource: resource packaged with the application
    - LocalFileSource: archive already on disk

    ``archive_file_name`` and ``distribution_name`` must be answered
    without performing any I/O.
    """

    @property
    def archive_file_name(self) -> str:
        """File name of the distribution archive (e.g. ``python-3.10.9-embed-amd64.zip``)."""
        ...

    @property
    def distribution_name(self) -> str:
        """Archive file name without its extension (e.g. ``python-3.10.9-embed-amd64``)."""
        ...

    async def retrieve(self, destination_dir: Path, config: "EnvironmentConfig") -> Path | None:
        """Produce a local copy of the archive inside destination_dir.

        Args:
            destination_dir: Directory the archive is placed in
            config: Session configuration (used for logging)

        Returns:
            Path to the local archive, or None on a recoverable failure
        """
        ...


@runtime_checkable
class CommandInvokerProtocol(Protocol):
    """Protocol for turning a shell command line into a process argv."""

    def argv(self, command: str) -> list[str]:
        """Build the argv that runs command through the host shell."""
        ...

    def join(self, args: list[str]) -> str:
        """Quote args into a single command line for the host shell."""
        ...

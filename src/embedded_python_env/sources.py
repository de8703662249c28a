"""Distribution archive sources.

Each source answers ``archive_file_name`` / ``distribution_name`` from its
own fields and produces a local archive through ``retrieve``.

- RemoteSource: download over HTTP(S); failures are logged, retrieve returns None
- BundledSource: copy a resource packaged with the application; a missing
  resource is a packaging defect and raises ResourceNotFoundError
- LocalFileSource: copy an archive that already exists on disk
"""

import asyncio
import importlib.resources
import logging
import shutil
from collections.abc import Iterator
from dataclasses import dataclass
from importlib.resources.abc import Traversable
from pathlib import Path
from pathlib import PurePath
from types import ModuleType
from typing import TYPE_CHECKING

import httpx

from .exceptions import ResourceNotFoundError
from .transfer import ProgressLog
from .transfer import download
from .utils import distribution_name_from_file_name
from .utils import file_name_from_url

if TYPE_CHECKING:
    from .config import EnvironmentConfig

logger = logging.getLogger(__name__)

Bundle = str | ModuleType | Traversable
"""Package anchor (dotted name or module) or a Traversable directory such as a Path."""


def resolve_bundle(bundle: Bundle) -> Traversable:
    """Traversable root of a bundle.

    Raises:
        ResourceNotFoundError: If the anchor package cannot be imported
    """
    if not isinstance(bundle, str | ModuleType):
        return bundle
    try:
        return importlib.resources.files(bundle)
    except (ModuleNotFoundError, TypeError) as e:
        raise ResourceNotFoundError(
            f"Bundle '{bundle}' could not be opened: {e}",
            context={"bundle": str(bundle)},
        ) from e


def _walk(node: Traversable) -> Iterator[Traversable]:
    for child in sorted(node.iterdir(), key=lambda t: t.name):
        if child.is_file():
            yield child
        elif child.is_dir():
            yield from _walk(child)


def find_resource(bundle: Bundle, resource_name: str) -> Traversable | None:
    """Locate a resource inside a bundle (recursive).

    An exact file-name match wins; otherwise the first file whose name
    contains resource_name is returned.
    """
    if not resource_name:
        return None
    root = resolve_bundle(bundle)
    if not root.is_dir():
        return None

    wanted = PurePath(resource_name).name
    files = list(_walk(root))
    for item in files:
        if item.name == wanted:
            return item
    for item in files:
        if wanted in item.name:
            return item
    return None


def copy_resource_to_file(bundle: Bundle, resource_name: str, destination: Path) -> Path:
    """
    Copy a bundled resource to destination.

    Raises:
        ResourceNotFoundError: If the resource is not in the bundle (nothing is written)
        OSError: If copying fails (a partial destination is removed)
    """
    resource = find_resource(bundle, resource_name)
    if resource is None:
        raise ResourceNotFoundError(
            f"The resource '{resource_name}' was not found in bundle '{bundle}'",
            context={"bundle": str(bundle), "resource_name": resource_name},
        )

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        with resource.open("rb") as src, open(destination, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise

    logger.debug(f"Copied resource {resource_name} to {destination}")
    return destination


@dataclass
class RemoteSource:
    """Distribution archive downloaded from a URL.

    Example:
        >>> source = RemoteSource("https://www.python.org/ftp/python/3.10.9/python-3.10.9-embed-amd64.zip")
        >>> source.distribution_name
        'python-3.10.9-embed-amd64'
    """

    url: str
    force: bool = False
    transport: httpx.AsyncBaseTransport | None = None

    @property
    def archive_file_name(self) -> str:
        return file_name_from_url(self.url)

    @property
    def distribution_name(self) -> str:
        return distribution_name_from_file_name(self.archive_file_name)

    async def retrieve(self, destination_dir: Path, config: "EnvironmentConfig") -> Path | None:
        archive = Path(destination_dir) / self.archive_file_name
        if not (self.force or config.force) and archive.is_file():
            config.log(f"Using existing archive {archive}")
            return archive

        if not self.url:
            config.log("Download url is empty", logging.ERROR)
            return None

        try:
            config.log(f"Downloading {self.url}...")
            await download(
                self.url,
                archive,
                progress=ProgressLog(config.log),
                transport=self.transport or config.transport,
            )
            config.log("Done!")
            return archive
        except Exception as e:
            config.log(f"There was a problem downloading the source: {e}", logging.ERROR)
            return None


@dataclass
class BundledSource:
    """Distribution archive packaged as a resource of the application.

    Example:
        >>> source = BundledSource("myapp.resources", "python-3.10.9-embed-amd64.zip")
    """

    bundle: Bundle
    resource_name: str
    force: bool = False

    @property
    def archive_file_name(self) -> str:
        return PurePath(self.resource_name or "").name

    @property
    def distribution_name(self) -> str:
        return distribution_name_from_file_name(self.archive_file_name)

    async def retrieve(self, destination_dir: Path, config: "EnvironmentConfig") -> Path | None:
        archive = Path(destination_dir) / self.archive_file_name
        if not (self.force or config.force) and archive.is_file():
            config.log(f"Using existing archive {archive}")
            return archive

        try:
            config.log(f"Copying bundled resource {self.resource_name}...")
            await asyncio.to_thread(copy_resource_to_file, self.bundle, self.resource_name, archive)
            return archive
        except ResourceNotFoundError:
            raise
        except Exception as e:
            config.log(f"Unable to extract bundled resource '{self.resource_name}': {e}", logging.ERROR)
            return None


@dataclass
class LocalFileSource:
    """Distribution archive already present on the local filesystem."""

    path: Path
    force: bool = False

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    @property
    def archive_file_name(self) -> str:
        return self.path.name

    @property
    def distribution_name(self) -> str:
        return distribution_name_from_file_name(self.archive_file_name)

    async def retrieve(self, destination_dir: Path, config: "EnvironmentConfig") -> Path | None:
        archive = Path(destination_dir) / self.archive_file_name
        if archive.resolve() == self.path.resolve():
            return archive if archive.is_file() else None
        if not (self.force or config.force) and archive.is_file():
            config.log(f"Using existing archive {archive}")
            return archive

        if not self.path.is_file():
            config.log(f"Archive not found: {self.path}", logging.ERROR)
            return None

        try:
            archive.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copyfile, self.path, archive)
            return archive
        except OSError as e:
            archive.unlink(missing_ok=True)
            config.log(f"Unable to copy archive {self.path}: {e}", logging.ERROR)
            return None

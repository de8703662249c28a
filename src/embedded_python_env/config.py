"""Session configuration and runtime directory layout.

An EnvironmentConfig is created by the app and passed into every
operation. It is frozen: use ``with_changes`` to derive a variant
instead of mutating shared state.

Layout of a provisioned runtime::

    <install_root>/<distribution>/
        python.exe
        python310._pth      restriction file
        Lib/
            site-packages/
        Scripts/
            pip.exe
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import httpx

from .protocols import AcquisitionSourceProtocol
from .protocols import CommandInvokerProtocol
from .protocols import LogSink
from .runner import select_invoker
from .sources import RemoteSource
from .utils import version_tag_from_distribution

logger = logging.getLogger(__name__)

DEFAULT_DISTRIBUTION_URL = "https://www.python.org/ftp/python/3.10.9/python-3.10.9-embed-amd64.zip"

EXECUTABLE_NAME = "python.exe"
LIB_DIR_NAME = "Lib"
SITE_PACKAGES_DIR_NAME = "site-packages"
SCRIPTS_DIR_NAME = "Scripts"
PACKAGE_MANAGER_EXECUTABLE_NAME = "pip.exe"


def default_install_root() -> Path:
    """Per-user application data directory.

    Resolution order: %LOCALAPPDATA%, $XDG_DATA_HOME, ~/.local/share
    """
    for var in ("LOCALAPPDATA", "XDG_DATA_HOME"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return Path.home() / ".local" / "share"


def default_source() -> RemoteSource:
    return RemoteSource(url=DEFAULT_DISTRIBUTION_URL)


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Provisioning session (install target, strategies, log sink).

    Attributes:
        install_root: Directory the distribution directory is created in
        source: Where the distribution archive comes from
        directory_name: Overrides the distribution directory name derived from source
        force: Re-acquire and re-extract even when already installed
        log_sink: Receives every progress/diagnostic line
        invoker: Shell convention used to run commands (chosen from host platform)
        index_url: Package index passed to the package manager
        transport: httpx transport used for downloads (None = network)

    Example:
        >>> config = EnvironmentConfig(install_root=Path("/opt/app"), log_sink=print)
        >>> config.home
        PosixPath('/opt/app/python-3.10.9-embed-amd64')
    """

    install_root: Path = field(default_factory=default_install_root)
    source: AcquisitionSourceProtocol = field(default_factory=default_source)
    directory_name: str | None = None
    force: bool = False
    log_sink: LogSink | None = None
    invoker: CommandInvokerProtocol = field(default_factory=select_invoker)
    index_url: str | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "install_root", Path(self.install_root))

    def with_changes(self, **changes) -> "EnvironmentConfig":
        """Copy of this config with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    @property
    def distribution_directory_name(self) -> str:
        if self.directory_name and self.directory_name.strip():
            return self.directory_name
        return self.source.distribution_name

    @property
    def home(self) -> Path:
        """Runtime home: ``install_root / distribution_directory_name``."""
        return self.install_root / self.distribution_directory_name

    @property
    def executable(self) -> Path:
        return self.home / EXECUTABLE_NAME

    @property
    def lib_dir(self) -> Path:
        return self.home / LIB_DIR_NAME

    @property
    def site_packages(self) -> Path:
        return self.lib_dir / SITE_PACKAGES_DIR_NAME

    @property
    def scripts_dir(self) -> Path:
        return self.home / SCRIPTS_DIR_NAME

    @property
    def package_manager_executable(self) -> Path:
        return self.scripts_dir / PACKAGE_MANAGER_EXECUTABLE_NAME

    @property
    def version_tag(self) -> str | None:
        return version_tag_from_distribution(self.source.distribution_name)

    @property
    def restriction_file(self) -> Path | None:
        """Path of the ``<version_tag>._pth`` file.

        Falls back to the first ``python*._pth`` in home when the
        distribution name carries no version. Returns None if neither applies.
        """
        tag = self.version_tag
        if tag:
            return self.home / f"{tag}._pth"

        if self.home.is_dir():
            candidates = sorted(self.home.glob("python*._pth"))
            if candidates:
                return candidates[0]
        return None

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Write a line to the library logger and forward it to log_sink."""
        logger.log(level, message)
        if self.log_sink is None:
            return
        try:
            self.log_sink(message)
        except Exception as e:
            logger.warning(f"Log sink raised: {e}")

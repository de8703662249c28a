"""embedded-python-env - Provision a self-contained Python runtime on demand.

Typical flow (each step is idempotent)::

    config = EnvironmentConfig(install_root=Path("/opt/myapp"), log_sink=print)
    await ensure_runtime(config)
    await ensure_package_manager(config)
    await pip_install(config, "numpy")

Apps inject policy (install location, archive source, log sink) through
EnvironmentConfig; the library never keeps state between calls.
"""

from .archive import extract_archive
from .config import DEFAULT_DISTRIBUTION_URL
from .config import EnvironmentConfig
from .exceptions import PackageManagerUnavailableError
from .exceptions import PackageNameError
from .exceptions import ResourceNotFoundError
from .exceptions import RuntimeEnvError
from .exceptions import TransferCancelledError
from .exceptions import TransferError
from .installer import SetupState
from .installer import ensure_runtime
from .installer import is_runtime_installed
from .outcome import Outcome
from .outcome import OutcomeStatus
from .packages import enable_site_packages
from .packages import ensure_package_manager
from .packages import install_archive
from .packages import install_bundled_archive
from .packages import install_package_manager
from .packages import is_package_installed
from .packages import is_package_manager_installed
from .packages import pip_install
from .packages import pip_install_bundled_archive
from .protocols import AcquisitionSourceProtocol
from .protocols import CommandInvokerProtocol
from .protocols import LogSink
from .runner import CommandResult
from .runner import PosixInvoker
from .runner import WindowsInvoker
from .runner import run_command
from .runner import select_invoker
from .schema import ArchiveFileName
from .schema import PackageRequest
from .sources import BundledSource
from .sources import LocalFileSource
from .sources import RemoteSource
from .transfer import download
from .utils import package_name_from_archive

__all__ = [
    # Configuration
    "EnvironmentConfig",
    "DEFAULT_DISTRIBUTION_URL",
    # Sources
    "AcquisitionSourceProtocol",
    "RemoteSource",
    "BundledSource",
    "LocalFileSource",
    # Runtime installation
    "SetupState",
    "ensure_runtime",
    "is_runtime_installed",
    # Packages
    "install_archive",
    "install_bundled_archive",
    "enable_site_packages",
    "install_package_manager",
    "ensure_package_manager",
    "pip_install",
    "pip_install_bundled_archive",
    "is_package_installed",
    "is_package_manager_installed",
    # Building blocks
    "CommandInvokerProtocol",
    "CommandResult",
    "PosixInvoker",
    "WindowsInvoker",
    "run_command",
    "select_invoker",
    "download",
    "extract_archive",
    "LogSink",
    # Results
    "Outcome",
    "OutcomeStatus",
    # Models
    "ArchiveFileName",
    "PackageRequest",
    "package_name_from_archive",
    # Exceptions
    "RuntimeEnvError",
    "ResourceNotFoundError",
    "PackageNameError",
    "PackageManagerUnavailableError",
    "TransferError",
    "TransferCancelledError",
]

__version__ = "0.1.0"

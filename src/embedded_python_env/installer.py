"""Runtime installation orchestrator.

Linear state machine, no retries::

    ABSENT -> ACQUIRING -> EXTRACTING -> PATCHED
       |          |            |
       +----------+------------+--> FAILED

FAILED is logged and returned as a recoverable Outcome, never raised.
Re-invoking is cheap: an installed runtime short-circuits to PATCHED
after two existence checks.

Apps provide:
- source: where the archive comes from (config.source)
- install_root / directory_name: where the runtime lives
"""

import logging
import os
from enum import Enum
from pathlib import Path

from .archive import extract_archive_async
from .config import EnvironmentConfig
from .outcome import Outcome

logger = logging.getLogger(__name__)


class SetupState(str, Enum):
    ABSENT = "absent"
    ACQUIRING = "acquiring"
    EXTRACTING = "extracting"
    PATCHED = "patched"
    FAILED = "failed"


def is_runtime_installed(config: EnvironmentConfig) -> bool:
    """True if the runtime home and its executable exist."""
    return config.home.is_dir() and config.executable.is_file()


def prepend_to_path(directory: Path) -> None:
    """Put directory first on the process PATH (moved, never duplicated)."""
    entry = str(directory)
    current = os.environ.get("PATH", "")
    entries = [e for e in current.split(os.pathsep) if e] if current else []
    if entries and entries[0] == entry:
        return
    os.environ["PATH"] = os.pathsep.join([entry, *(e for e in entries if e != entry)])


def _enter(config: EnvironmentConfig, state: SetupState) -> None:
    config.log(f"Setup state: {state.value}", logging.DEBUG)


def _remove_restriction_file(config: EnvironmentConfig) -> None:
    # The shipped search path is too narrow for a bootstrapped package manager
    pth = config.restriction_file
    if pth is None:
        config.log(f"No restriction file found in {config.home}", logging.DEBUG)
        return
    try:
        pth.unlink(missing_ok=True)
        logger.debug(f"Removed restriction file {pth}")
    except OSError as e:
        config.log(f"Could not remove restriction file {pth}: {e}", logging.WARNING)


async def ensure_runtime(config: EnvironmentConfig) -> Outcome:
    """
    Ensure the runtime is installed at ``config.home``.

    Process:
    1. Put home on PATH
    2. Skip if installed (unless config.force)
    3. Source retrieves the archive into install_root
    4. Extract archive into home
    5. Remove the restriction file

    Args:
        config: Session configuration

    Returns:
        Outcome: success (skipped=True on the fast path) or recoverable failure

    Raises:
        ResourceNotFoundError: If a bundled source lacks its archive

    Example:
        >>> config = EnvironmentConfig(install_root=Path("/opt/app"), log_sink=print)
        >>> outcome = await ensure_runtime(config)
        >>> outcome.ok
        True
    """
    home = config.home
    prepend_to_path(home)

    _enter(config, SetupState.ABSENT)
    if not config.force and is_runtime_installed(config):
        _enter(config, SetupState.PATCHED)
        return Outcome.success(f"Runtime already installed at {home}", skipped=True)

    _enter(config, SetupState.ACQUIRING)
    try:
        config.install_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        _enter(config, SetupState.FAILED)
        config.log(f"ensure_runtime: cannot create {config.install_root}: {e}", logging.ERROR)
        return Outcome.recoverable(f"Cannot create install root: {e}")

    archive = await config.source.retrieve(config.install_root, config)
    if archive is None:
        _enter(config, SetupState.FAILED)
        config.log("ensure_runtime: error obtaining archive from installation source", logging.ERROR)
        return Outcome.recoverable("Error obtaining archive from installation source")

    _enter(config, SetupState.EXTRACTING)
    try:
        await extract_archive_async(archive, home, force=config.force)
    except Exception as e:
        _enter(config, SetupState.FAILED)
        config.log(f"ensure_runtime: error extracting archive {archive}: {e}", logging.ERROR)
        return Outcome.recoverable(f"Error extracting archive: {e}")

    _remove_restriction_file(config)

    _enter(config, SetupState.PATCHED)
    logger.info(f"Runtime ready at {home}")
    return Outcome.success(f"Runtime installed at {home}")

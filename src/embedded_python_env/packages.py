"""Package installation into a provisioned runtime.

Two independent strategies, both idempotent on package name:

- Archive-based: extract a package archive (wheel) straight into ``Lib``
  and enable ``./Lib`` in the restriction file. Installed = ``Lib/<name>`` exists.
- Package-manager-mediated: bootstrap pip into the runtime, then run
  ``python -m pip install``. Installed = ``Lib/site-packages/<name>/__init__.py`` exists.

Note: archive-based installs may leave an invalid environment when the
wheel does not match the runtime's interpreter version. pip is safer.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from pydantic import ValidationError

from .archive import extract_archive_async
from .config import EnvironmentConfig
from .exceptions import PackageManagerUnavailableError
from .exceptions import PackageNameError
from .exceptions import ResourceNotFoundError
from .installer import is_runtime_installed
from .outcome import Outcome
from .runner import run_command
from .schema import PackageRequest
from .sources import Bundle
from .sources import copy_resource_to_file
from .sources import find_resource
from .transfer import ProgressLog
from .transfer import download
from .utils import package_name_from_archive

logger = logging.getLogger(__name__)

GET_PIP_URL = "https://bootstrap.pypa.io/get-pip.py"
GET_PIP_FILE_NAME = "get-pip.py"

# Restriction-file line that enables packages extracted into Lib
LIB_SEARCH_ENTRY = "./Lib"


def is_package_manager_installed(config: EnvironmentConfig) -> bool:
    return config.package_manager_executable.is_file()


def is_package_installed(config: EnvironmentConfig, name: str) -> bool:
    """True if site-packages holds a ``<name>/__init__.py``."""
    if not is_runtime_installed(config):
        return False
    package_dir = config.site_packages / name
    return package_dir.is_dir() and (package_dir / "__init__.py").is_file()


def _lib_dir(config: EnvironmentConfig) -> Path:
    lib = config.lib_dir
    lib.mkdir(parents=True, exist_ok=True)
    return lib


def enable_site_packages(config: EnvironmentConfig) -> Outcome:
    """
    Append ``./Lib`` to the restriction file unless already listed.

    No-op when the runtime has no restriction file (a full, unrestricted
    search path). Check-then-append is not atomic: concurrent callers on
    the same runtime may both append.

    Returns:
        Outcome (recoverable if the file could not be read or written)
    """
    pth = config.restriction_file
    if pth is None or not pth.is_file():
        return Outcome.success("No restriction file", skipped=True)

    try:
        text = pth.read_text(encoding="utf-8")
        if LIB_SEARCH_ENTRY in (line.strip() for line in text.splitlines()):
            return Outcome.success(f"{LIB_SEARCH_ENTRY} already enabled", skipped=True)

        separator = "\n" if text and not text.endswith("\n") else ""
        with open(pth, "a", encoding="utf-8") as f:
            f.write(f"{separator}{LIB_SEARCH_ENTRY}\n")
    except OSError as e:
        config.log(f"Could not update restriction file {pth}: {e}", logging.WARNING)
        return Outcome.recoverable(f"Could not update restriction file: {e}")

    logger.debug(f"Enabled {LIB_SEARCH_ENTRY} in {pth}")
    return Outcome.success(f"Enabled {LIB_SEARCH_ENTRY}")


async def _install_into_lib(config: EnvironmentConfig, archive: Path, lib: Path) -> Outcome:
    """Extract archive into lib, then patch the restriction file regardless."""
    extract_error: Exception | None = None
    try:
        await extract_archive_async(archive, lib)
    except Exception as e:
        extract_error = e
        config.log(f"Error extracting archive {archive}: {e}", logging.ERROR)

    patched = enable_site_packages(config)

    if extract_error is not None:
        return Outcome.recoverable(f"Error extracting archive: {extract_error}")
    if not patched.ok:
        return patched
    return Outcome.success(f"Installed {archive.name}")


async def install_archive(config: EnvironmentConfig, archive_path: Path, force: bool = False) -> Outcome:
    """
    Install a package archive from a file path into ``Lib``.

    The archive is copied into Lib, extracted there and the copy removed.

    Args:
        config: Session configuration
        archive_path: Path to e.g. ``numpy-1.16.3-cp37-cp37m-win_amd64.whl``
        force: Install even if ``Lib/<name>`` exists

    Returns:
        Outcome

    Raises:
        PackageNameError: If the file name yields no package name
    """
    archive_path = Path(archive_path)
    package_name = package_name_from_archive(archive_path.name)
    lib = _lib_dir(config)

    if not force and (lib / package_name).is_dir():
        config.log(f"Package '{package_name}' already installed")
        return Outcome.success(f"Package '{package_name}' already installed", skipped=True)

    if not archive_path.is_file():
        config.log(f"Package archive not found: {archive_path}", logging.ERROR)
        return Outcome.recoverable(f"Package archive not found: {archive_path}")

    staged = lib / archive_path.name
    is_copy = staged.resolve() != archive_path.resolve()
    try:
        if is_copy:
            await asyncio.to_thread(shutil.copyfile, archive_path, staged)
        return await _install_into_lib(config, staged, lib)
    except OSError as e:
        config.log(f"Could not stage archive {archive_path}: {e}", logging.ERROR)
        return Outcome.recoverable(f"Could not stage archive: {e}")
    finally:
        if is_copy:
            staged.unlink(missing_ok=True)


async def install_bundled_archive(
    config: EnvironmentConfig,
    bundle: Bundle,
    resource_name: str,
    force: bool = False,
) -> Outcome:
    """
    Install a package archive packaged as a resource of the application.

    Raises:
        ResourceNotFoundError: If the resource is not in the bundle
        PackageNameError: If the resource name yields no package name

    Example:
        >>> await install_bundled_archive(config, "myapp.wheels", "numpy-1.16.3-cp37-cp37m-win_amd64.whl")
    """
    staged_name = _require_resource(bundle, resource_name)
    package_name = package_name_from_archive(resource_name)
    lib = _lib_dir(config)

    if not force and (lib / package_name).is_dir():
        config.log(f"Package '{package_name}' already installed")
        return Outcome.success(f"Package '{package_name}' already installed", skipped=True)

    staged = lib / staged_name
    try:
        await asyncio.to_thread(copy_resource_to_file, bundle, resource_name, staged)
        return await _install_into_lib(config, staged, lib)
    except OSError as e:
        config.log(f"Unable to extract bundled resource '{resource_name}': {e}", logging.ERROR)
        return Outcome.recoverable(f"Unable to extract bundled resource: {e}")
    finally:
        staged.unlink(missing_ok=True)


def _require_resource(bundle: Bundle, resource_name: str) -> str:
    resource = find_resource(bundle, resource_name)
    if resource is None:
        raise ResourceNotFoundError(
            f"The resource '{resource_name}' was not found in bundle '{bundle}'",
            context={"bundle": str(bundle), "resource_name": resource_name},
        )
    return resource.name


async def install_package_manager(
    config: EnvironmentConfig,
    cancel_event: asyncio.Event | None = None,
) -> Outcome:
    """
    Download the pip bootstrap script into ``Lib`` and run it with the runtime.

    Returns:
        Outcome (recoverable on download failure or non-zero exit)
    """
    lib = _lib_dir(config)
    script = lib / GET_PIP_FILE_NAME

    try:
        config.log("Downloading package manager...")
        await download(
            GET_PIP_URL,
            script,
            progress=ProgressLog(config.log),
            cancel_event=cancel_event,
            transport=config.transport,
        )
        config.log("Done!")
    except Exception as e:
        config.log(f"There was a problem downloading the package manager: {e}", logging.ERROR)
        return Outcome.recoverable(f"Package manager download failed: {e}")

    command = config.invoker.join([str(config.executable), str(script)])
    result = await run_command(command, config, cwd=config.home, cancel_event=cancel_event)
    if not result.success:
        return Outcome.recoverable(f"Package manager bootstrap exited with {result.exit_code}")
    return Outcome.success("Package manager installed")


async def ensure_package_manager(
    config: EnvironmentConfig,
    force: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> Outcome:
    """
    Bootstrap the package manager if absent (or forced).

    Returns:
        Outcome (skipped=True when it was already present)

    Raises:
        PackageManagerUnavailableError: If it is still missing after the attempt
    """
    bootstrapped = False
    if force or not is_package_manager_installed(config):
        bootstrapped = True
        try:
            await install_package_manager(config, cancel_event=cancel_event)
        except Exception as e:
            raise PackageManagerUnavailableError(
                f"Package manager is not installed: {e}",
                context={"home": str(config.home)},
            ) from e

    if not is_package_manager_installed(config):
        raise PackageManagerUnavailableError(
            f"Package manager is not installed: {config.package_manager_executable} missing",
            context={"home": str(config.home)},
        )

    return Outcome.success("Package manager available", skipped=not bootstrapped)


async def pip_install(
    config: EnvironmentConfig,
    name: str,
    version: str = "",
    force: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> Outcome:
    """
    Install a package from the index with the runtime's package manager.

    Args:
        config: Session configuration (index_url is passed as ``-i``)
        name: Package name
        version: Optional exact version pin
        force: Reinstall even if already present (``--force-reinstall``)
        cancel_event: Setting it kills the package manager process

    Returns:
        Outcome (recoverable on non-zero exit or cancellation)

    Raises:
        PackageNameError: If name is blank or malformed
        PackageManagerUnavailableError: If pip cannot be bootstrapped

    Example:
        >>> await pip_install(config, "numpy", version="1.26.4")
    """
    try:
        request = PackageRequest(name=name, version=version or "", force=force)
    except ValidationError as e:
        raise PackageNameError(f"Invalid package name '{name}'", context={"name": name}) from e

    await ensure_package_manager(config, cancel_event=cancel_event)

    if not force and is_package_installed(config, request.name):
        config.log(f"Package '{request.name}' already installed")
        return Outcome.success(f"Package '{request.name}' already installed", skipped=True)

    command = config.invoker.join([str(config.executable), "-m", *request.install_args(config.index_url)])
    return await _run_package_manager(config, command, request.requirement, cancel_event)


async def pip_install_bundled_archive(
    config: EnvironmentConfig,
    bundle: Bundle,
    resource_name: str,
    force: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> Outcome:
    """
    Install a bundled package archive through the package manager.

    Raises:
        ResourceNotFoundError: If the resource is not in the bundle
        PackageNameError: If the resource name yields no package name
        PackageManagerUnavailableError: If pip cannot be bootstrapped
    """
    staged_name = _require_resource(bundle, resource_name)
    package_name = package_name_from_archive(resource_name)

    if not force and is_package_installed(config, package_name):
        config.log(f"Package '{package_name}' already installed")
        return Outcome.success(f"Package '{package_name}' already installed", skipped=True)

    staged = _lib_dir(config) / staged_name
    try:
        await asyncio.to_thread(copy_resource_to_file, bundle, resource_name, staged)
        await ensure_package_manager(config, cancel_event=cancel_event)

        args = [str(config.executable), "-m", "pip", "install", str(staged)]
        if force:
            args.append("--force-reinstall")
        return await _run_package_manager(config, config.invoker.join(args), staged_name, cancel_event)
    except OSError as e:
        config.log(f"Unable to extract bundled resource '{resource_name}': {e}", logging.ERROR)
        return Outcome.recoverable(f"Unable to extract bundled resource: {e}")
    finally:
        staged.unlink(missing_ok=True)


async def _run_package_manager(
    config: EnvironmentConfig,
    command: str,
    target: str,
    cancel_event: asyncio.Event | None,
) -> Outcome:
    result = await run_command(command, config, cwd=config.home, cancel_event=cancel_event)
    if result.cancelled:
        return Outcome.recoverable(f"Install of {target} cancelled")
    if not result.success:
        return Outcome.recoverable(f"Install of {target} exited with {result.exit_code}")
    return Outcome.success(f"Installed {target}")

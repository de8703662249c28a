"""Name derivations for distributions and package archives.

All functions here are pure: they never touch the filesystem or network.
"""

import re
from pathlib import PurePath
from pathlib import PurePosixPath
from urllib.parse import unquote
from urllib.parse import urlsplit

from .schema import ArchiveFileName

_VERSION_PATTERN = re.compile(r"python-(\d+)\.(\d+)", re.IGNORECASE)


def file_name_from_url(url: str) -> str:
    """Extract the archive file name from a URL's path component.

    Examples:
        >>> file_name_from_url("https://www.python.org/ftp/python/3.10.9/python-3.10.9-embed-amd64.zip")
        'python-3.10.9-embed-amd64.zip'
    """
    if not url:
        return ""
    return PurePosixPath(unquote(urlsplit(url).path)).name


def distribution_name_from_file_name(file_name: str) -> str:
    """Strip the extension from an archive file name.

    Examples:
        >>> distribution_name_from_file_name("python-3.10.9-embed-amd64.zip")
        'python-3.10.9-embed-amd64'
    """
    name = PurePath(file_name).name
    if "." not in name.lstrip("."):
        return name
    return name[: name.rfind(".")]


def version_tag_from_distribution(distribution_name: str) -> str | None:
    """Derive the interpreter version tag used to name the restriction file.

    Examples:
        >>> version_tag_from_distribution("python-3.10.9-embed-amd64")
        'python310'
        >>> version_tag_from_distribution("custom-runtime") is None
        True
    """
    match = _VERSION_PATTERN.search(distribution_name or "")
    if not match:
        return None
    return f"python{match.group(1)}{match.group(2)}"


def package_name_from_archive(file_name: str) -> str:
    """Package name of a package archive (text before the first hyphen).

    Raises:
        PackageNameError: If the derived name is empty
    """
    return ArchiveFileName.from_file_name(file_name).package_name

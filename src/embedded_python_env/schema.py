"""Package archive and install request models.

Package archives follow the wheel file-name convention:
``{name}-{version}(-{build})?-{python}-{abi}-{platform}.whl``.
Only the text before the first hyphen matters for installation.
"""

import re
from pathlib import PurePath

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from .exceptions import PackageNameError

ARCHIVE_EXTENSIONS = (".whl", ".zip")

# PEP 508 distribution name; nothing a shell could interpret
PACKAGE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9._-]*[A-Za-z0-9])?$")


class ArchiveFileName(BaseModel):
    """Parsed package archive file name."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    package_name: str
    version: str | None = None
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_file_name(cls, file_name: str) -> "ArchiveFileName":
        """
        Parse a package archive file name (a path is accepted, only its base name is used).

        Args:
            file_name: Archive file name, e.g. ``numpy-1.16.3-cp37-cp37m-win_amd64.whl``

        Returns:
            ArchiveFileName with package_name ``numpy``

        Raises:
            PackageNameError: If no package name precedes the first hyphen

        Example:
            >>> ArchiveFileName.from_file_name("numpy.whl").package_name
            'numpy'
        """
        base = PurePath(file_name).name
        stem = base
        if stem.lower().endswith(ARCHIVE_EXTENSIONS):
            stem = stem[: stem.rfind(".")]

        parts = stem.split("-")
        package_name = parts[0].strip()
        if not package_name:
            raise PackageNameError(
                f"The file name '{base}' did not contain a valid package name",
                context={"file_name": str(file_name)},
            )

        return cls(
            file_name=base,
            package_name=package_name,
            version=parts[1] if len(parts) > 1 and parts[1] else None,
            tags=parts[2:],
        )


class PackageRequest(BaseModel):
    """Package-manager install request."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = ""
    force: bool = False

    @field_validator("name")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        value = value.strip()
        if not PACKAGE_NAME_PATTERN.match(value):
            raise ValueError(f"invalid package name: {value!r}")
        return value

    @field_validator("version")
    @classmethod
    def _strip_version(cls, value: str) -> str:
        return value.strip()

    @property
    def requirement(self) -> str:
        """Requirement specifier, pinned when a version was given."""
        if self.version:
            return f"{self.name}=={self.version}"
        return self.name

    def install_args(self, index_url: str | None = None) -> list[str]:
        """Arguments following ``python -m``."""
        args = ["pip", "install"]
        if index_url:
            args.extend(["-i", index_url])
        args.append(self.requirement)
        if self.force:
            args.append("--force-reinstall")
        return args

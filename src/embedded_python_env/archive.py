"""Zip archive extraction with an existence-based idempotence check.

Note: "already extracted" means every entry path exists at the
destination. Contents are not compared, so an earlier partial or
corrupted extraction that left all paths behind counts as complete.
"""

import asyncio
import logging
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def all_entries_present(archive: zipfile.ZipFile, destination: Path) -> bool:
    """True if every entry of archive already exists under destination."""
    return all((destination / info.filename).exists() for info in archive.infolist())


def extract_archive(archive_path: Path, destination: Path, force: bool = False) -> bool:
    """
    Extract a zip archive unless all of its entries are already present.

    Args:
        archive_path: Zip file to extract
        destination: Directory to extract into (created if needed)
        force: Extract (overwriting) even if all entries are present

    Returns:
        True if files were extracted, False if extraction was skipped

    Raises:
        zipfile.BadZipFile: If archive_path is not a zip file
        OSError: On filesystem errors
    """
    destination = Path(destination)
    with zipfile.ZipFile(archive_path) as archive:
        if not force and destination.is_dir() and all_entries_present(archive, destination):
            logger.debug(f"All entries of {archive_path} already present in {destination}")
            return False

        destination.mkdir(parents=True, exist_ok=True)
        archive.extractall(destination)

    logger.debug(f"Extracted {archive_path} to {destination}")
    return True


async def extract_archive_async(archive_path: Path, destination: Path, force: bool = False) -> bool:
    """``extract_archive`` in a worker thread."""
    return await asyncio.to_thread(extract_archive, archive_path, destination, force)

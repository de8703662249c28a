"""Tests for zip extraction with the existence check."""

import zipfile

import pytest
from embedded_python_env import extract_archive
from embedded_python_env.archive import all_entries_present
from embedded_python_env.archive import extract_archive_async
from helpers import WHEEL_ENTRIES
from helpers import make_zip


def test_extracts_all_entries(tmp_path):
    archive = make_zip(tmp_path / "mypkg-1.0-py3-none-any.whl", WHEEL_ENTRIES)
    destination = tmp_path / "lib"

    assert extract_archive(archive, destination) is True

    for name, content in WHEEL_ENTRIES.items():
        assert (destination / name).read_bytes() == content


def test_skips_when_all_entries_present(tmp_path):
    archive = make_zip(tmp_path / "pkg.whl", WHEEL_ENTRIES)
    destination = tmp_path / "lib"
    extract_archive(archive, destination)

    # A user edit must survive the second call
    (destination / "mypkg" / "core.py").write_text("edited")

    assert extract_archive(archive, destination) is False
    assert (destination / "mypkg" / "core.py").read_text() == "edited"


def test_extracts_when_an_entry_is_missing(tmp_path):
    archive = make_zip(tmp_path / "pkg.whl", WHEEL_ENTRIES)
    destination = tmp_path / "lib"
    extract_archive(archive, destination)
    (destination / "mypkg" / "core.py").unlink()

    assert extract_archive(archive, destination) is True
    assert (destination / "mypkg" / "core.py").exists()


def test_force_overwrites(tmp_path):
    archive = make_zip(tmp_path / "pkg.whl", WHEEL_ENTRIES)
    destination = tmp_path / "lib"
    extract_archive(archive, destination)
    (destination / "mypkg" / "core.py").write_text("edited")

    assert extract_archive(archive, destination, force=True) is True
    assert (destination / "mypkg" / "core.py").read_bytes() == WHEEL_ENTRIES["mypkg/core.py"]


def test_all_entries_present(tmp_path):
    archive = make_zip(tmp_path / "pkg.whl", WHEEL_ENTRIES)
    with zipfile.ZipFile(archive) as zf:
        assert not all_entries_present(zf, tmp_path / "lib")
        zf.extractall(tmp_path / "lib")
        assert all_entries_present(zf, tmp_path / "lib")


def test_bad_archive_raises(tmp_path):
    archive = tmp_path / "broken.whl"
    archive.write_bytes(b"not a zip")

    with pytest.raises(zipfile.BadZipFile):
        extract_archive(archive, tmp_path / "lib")


@pytest.mark.asyncio
async def test_extract_archive_async(tmp_path):
    archive = make_zip(tmp_path / "pkg.whl", WHEEL_ENTRIES)

    assert await extract_archive_async(archive, tmp_path / "lib") is True
    assert (tmp_path / "lib" / "mypkg" / "__init__.py").exists()

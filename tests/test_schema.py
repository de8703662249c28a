"""Tests for archive file name and install request models."""

import pytest
from embedded_python_env import ArchiveFileName
from embedded_python_env import PackageNameError
from embedded_python_env import PackageRequest
from pydantic import ValidationError


def test_archive_file_name_wheel_convention():
    parsed = ArchiveFileName.from_file_name("numpy-1.16.3-cp37-cp37m-win_amd64.whl")

    assert parsed.file_name == "numpy-1.16.3-cp37-cp37m-win_amd64.whl"
    assert parsed.package_name == "numpy"
    assert parsed.version == "1.16.3"
    assert parsed.tags == ["cp37", "cp37m", "win_amd64"]


def test_archive_file_name_without_hyphen():
    parsed = ArchiveFileName.from_file_name("numpy.whl")

    assert parsed.package_name == "numpy"
    assert parsed.version is None
    assert parsed.tags == []


def test_archive_file_name_uses_base_name():
    parsed = ArchiveFileName.from_file_name("/opt/wheels/six-1.16.0-py2.py3-none-any.whl")
    assert parsed.file_name == "six-1.16.0-py2.py3-none-any.whl"
    assert parsed.package_name == "six"


def test_archive_file_name_is_frozen():
    parsed = ArchiveFileName.from_file_name("numpy.whl")
    with pytest.raises(ValidationError):
        parsed.package_name = "other"  # type: ignore[misc]


def test_archive_file_name_empty_package_name():
    with pytest.raises(PackageNameError) as exc_info:
        ArchiveFileName.from_file_name("-1.0.whl")
    assert exc_info.value.context["file_name"] == "-1.0.whl"


def test_package_request_requirement():
    assert PackageRequest(name="numpy").requirement == "numpy"
    assert PackageRequest(name="numpy", version="1.26.4").requirement == "numpy==1.26.4"
    assert PackageRequest(name=" numpy ", version=" 1.26.4 ").requirement == "numpy==1.26.4"


def test_package_request_install_args():
    request = PackageRequest(name="numpy", version="1.26.4", force=True)

    assert request.install_args() == ["pip", "install", "numpy==1.26.4", "--force-reinstall"]
    assert request.install_args("https://pypi.example.test/simple") == [
        "pip",
        "install",
        "-i",
        "https://pypi.example.test/simple",
        "numpy==1.26.4",
        "--force-reinstall",
    ]


@pytest.mark.parametrize(
    "name",
    ["", "   ", "numpy scipy", "numpy&calc", "numpy|more", "numpy^", "-numpy", "numpy."],
)
def test_package_request_rejects_bad_names(name):
    with pytest.raises(ValidationError):
        PackageRequest(name=name)


@pytest.mark.parametrize("name", ["numpy", "zope.interface", "ruamel_yaml", "typing-extensions", "  pip  "])
def test_package_request_accepts_distribution_names(name):
    assert PackageRequest(name=name).name == name.strip()

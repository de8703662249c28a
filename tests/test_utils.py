"""Tests for name derivation utilities."""

import pytest
from embedded_python_env import PackageNameError
from embedded_python_env.utils import distribution_name_from_file_name
from embedded_python_env.utils import file_name_from_url
from embedded_python_env.utils import package_name_from_archive
from embedded_python_env.utils import version_tag_from_distribution


def test_file_name_from_url():
    url = "https://www.python.org/ftp/python/3.10.9/python-3.10.9-embed-amd64.zip"
    assert file_name_from_url(url) == "python-3.10.9-embed-amd64.zip"


def test_file_name_from_url_ignores_query_and_decodes():
    url = "https://mirror.example.test/dist/python%203.11.zip?token=abc#frag"
    assert file_name_from_url(url) == "python 3.11.zip"


def test_file_name_from_empty_url():
    assert file_name_from_url("") == ""


def test_distribution_name_strips_extension():
    assert distribution_name_from_file_name("python-3.10.9-embed-amd64.zip") == "python-3.10.9-embed-amd64"
    assert distribution_name_from_file_name("runtime") == "runtime"


def test_version_tag_from_distribution():
    assert version_tag_from_distribution("python-3.10.9-embed-amd64") == "python310"
    assert version_tag_from_distribution("python-3.7.3-embed-win32") == "python37"
    assert version_tag_from_distribution("custom-runtime") is None
    assert version_tag_from_distribution("") is None


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("numpy-1.16.3-cp37-cp37m-win_amd64.whl", "numpy"),
        ("numpy.whl", "numpy"),
        ("numpy", "numpy"),
        ("/tmp/wheels/requests-2.31.0-py3-none-any.whl", "requests"),
    ],
)
def test_package_name_from_archive(file_name, expected):
    assert package_name_from_archive(file_name) == expected


@pytest.mark.parametrize("file_name", ["-1.0-py3-none-any.whl", ".whl", "", "  -1.0.whl"])
def test_package_name_from_garbage_raises(file_name):
    with pytest.raises(PackageNameError, match="did not contain a valid package name"):
        package_name_from_archive(file_name)

"""Shared fixtures: fake distributions and sessions."""

import os

import pytest
from embedded_python_env import EnvironmentConfig
from embedded_python_env import PosixInvoker
from embedded_python_env import RemoteSource
from helpers import DISTRIBUTION_ENTRIES
from helpers import DISTRIBUTION_URL
from helpers import CountingTransport
from helpers import make_zip


@pytest.fixture(autouse=True)
def _restore_path(monkeypatch):
    """ensure_runtime prepends to PATH; undo it after each test."""
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))


@pytest.fixture
def log_lines() -> list[str]:
    return []


@pytest.fixture
def distribution_zip(tmp_path) -> bytes:
    archive = make_zip(tmp_path / "build" / "python-3.10.9-embed-amd64.zip", DISTRIBUTION_ENTRIES)
    return archive.read_bytes()


@pytest.fixture
def transport(distribution_zip) -> CountingTransport:
    return CountingTransport({DISTRIBUTION_URL: distribution_zip})


@pytest.fixture
def config(tmp_path, transport, log_lines) -> EnvironmentConfig:
    return EnvironmentConfig(
        install_root=tmp_path / "root",
        source=RemoteSource(url=DISTRIBUTION_URL, transport=transport),
        log_sink=log_lines.append,
        invoker=PosixInvoker(shell="/bin/sh"),
        transport=transport,
    )


@pytest.fixture
def installed_config(config) -> EnvironmentConfig:
    """Session whose runtime home already holds an interpreter and a restriction file."""
    config.home.mkdir(parents=True)
    (config.home / "python.exe").write_bytes(DISTRIBUTION_ENTRIES["python.exe"])
    (config.home / "python310._pth").write_bytes(DISTRIBUTION_ENTRIES["python310._pth"])
    return config

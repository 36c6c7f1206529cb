"""Shared test configuration for ICSForge."""

import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from icsforge.config.settings import ENV_PREFIX, ICSForgeSettings, reset_settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep tests away from the developer's environment, .env and config.yaml."""
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def test_settings(tmp_path: Path) -> ICSForgeSettings:
    """Settings with an empty, private config directory."""
    return ICSForgeSettings(config_dir=tmp_path / "config")


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")

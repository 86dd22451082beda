"""
Pytest configuration and fixtures for disklru tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from disklru.config import clear_settings_cache

START_MS = 1_700_000_000_000


class FakeClock:
    """Controllable millisecond clock for TTL and recency tests."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """A cache directory path that does not exist yet."""
    return temp_dir / "cache"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_env_vars(cache_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide DISKLRU_* environment variables pointing at cache_dir."""
    env_vars = {
        "DISKLRU_DIR": str(cache_dir),
        "DISKLRU_MAX_SIZE": "3",
        "DISKLRU_MAX_SIZE_UNIT": "file",
        "DISKLRU_TTL": "",
        "DISKLRU_CLEAR": "false",
        "DISKLRU_LOG_LEVEL": "WARNING",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()

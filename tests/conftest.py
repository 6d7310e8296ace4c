"""
Pytest configuration and fixtures for kash tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from kash.config import Settings, clear_settings_cache
from kash.disk_cache import DiskCache


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock KASH_* environment variables for testing."""
    env_vars = {
        "KASH_ROOT_PATH": str(temp_dir / "root"),
        "KASH_CACHE_NAME": "test-cache",
        "KASH_MEMORY_CACHE_ENABLED": "true",
        "KASH_MEMORY_CACHE_MAX_ENTRIES": "3",
        "KASH_MEMORY_CACHE_MAX_ENTRY_BYTES": "16",
        "KASH_CHARSET": "utf-8",
        "KASH_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance loaded from the mock environment."""
    clear_settings_cache()
    from kash.config import get_settings

    settings = get_settings()
    yield settings
    clear_settings_cache()


@pytest.fixture
def disk_cache(temp_dir: Path) -> DiskCache:
    """A disk cache without memory tier under the temp directory."""
    return DiskCache(temp_dir, "test-cache")


@pytest.fixture
def memory_disk_cache(temp_dir: Path) -> DiskCache:
    """A disk cache with a small memory tier (3 entries, 16 bytes per entry)."""
    return DiskCache(
        temp_dir,
        "test-cache",
        memory_cache_enabled=True,
        memory_cache_max_entries=3,
        memory_cache_max_entry_bytes=16,
    )


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()

"""
Tests for configuration module.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from kash.config import Settings, clear_settings_cache, default_root_path, get_settings


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self, temp_dir: Path) -> None:
        with patch.dict(os.environ, {"HOME": str(temp_dir)}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.ROOT_PATH == temp_dir / ".cache"
        assert settings.CACHE_NAME == "kash"
        assert settings.MEMORY_CACHE_ENABLED is False
        assert settings.MEMORY_CACHE_MAX_ENTRIES == 5
        assert settings.MEMORY_CACHE_MAX_ENTRY_BYTES == 8192
        assert settings.CHARSET == "utf-8"
        assert settings.cache_dir == temp_dir / ".cache" / "kash"

    def test_root_falls_back_to_working_directory(self) -> None:
        with patch.dict(os.environ, {"HOME": ""}, clear=True):
            assert default_root_path() == Path(".")
        with patch.dict(os.environ, {}, clear=True):
            assert default_root_path() == Path(".")


class TestSettingsValidation:
    """Tests for Settings validation."""

    def test_settings_loads_from_env(self, mock_env_vars: dict[str, str]) -> None:
        """Test that settings correctly loads from KASH_* environment variables."""
        settings = get_settings()

        assert settings.ROOT_PATH == Path(mock_env_vars["KASH_ROOT_PATH"])
        assert settings.CACHE_NAME == "test-cache"
        assert settings.MEMORY_CACHE_ENABLED is True
        assert settings.MEMORY_CACHE_MAX_ENTRIES == 3
        assert settings.MEMORY_CACHE_MAX_ENTRY_BYTES == 16
        assert settings.LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_memory_capacity_must_be_positive(self, value: str) -> None:
        with patch.dict(os.environ, {"KASH_MEMORY_CACHE_MAX_ENTRIES": value}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_entry_ceiling_must_not_be_negative(self) -> None:
        with patch.dict(os.environ, {"KASH_MEMORY_CACHE_MAX_ENTRY_BYTES": "-1"}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    @pytest.mark.parametrize("name", ["", "   ", "..", "a/b", "a\\b"])
    def test_cache_name_must_be_single_component(self, name: str) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CACHE_NAME=name)

    def test_cache_name_is_stripped(self) -> None:
        assert Settings(_env_file=None, CACHE_NAME="  blobs ").CACHE_NAME == "blobs"

    def test_unknown_charset_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, CHARSET="no-such-charset")

        assert "charset" in str(exc_info.value).lower()

    def test_invalid_log_level_rejected(self) -> None:
        with patch.dict(os.environ, {"KASH_LOG_LEVEL": "LOUD"}):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)


class TestSettingsCache:
    """Tests for the settings singleton."""

    def test_get_settings_is_cached(self, mock_env_vars: dict[str, str]) -> None:
        assert get_settings() is get_settings()

    def test_clear_settings_cache_reloads(self, mock_env_vars: dict[str, str]) -> None:
        first = get_settings()

        with patch.dict(os.environ, {"KASH_CACHE_NAME": "other"}):
            assert get_settings().CACHE_NAME == "test-cache"
            clear_settings_cache()
            assert get_settings().CACHE_NAME == "other"

        assert get_settings() is not first

    def test_display(self, mock_settings: Settings) -> None:
        display = mock_settings.display()

        assert display["CACHE_NAME"] == "test-cache"
        assert display["ROOT_PATH"] == str(mock_settings.ROOT_PATH)
        assert set(display) == {
            "ROOT_PATH",
            "CACHE_NAME",
            "MEMORY_CACHE_ENABLED",
            "MEMORY_CACHE_MAX_ENTRIES",
            "MEMORY_CACHE_MAX_ENTRY_BYTES",
            "CHARSET",
            "LOG_LEVEL",
        }

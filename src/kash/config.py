"""
Configuration management using pydantic-settings.

Loads configuration from KASH_* environment variables and .env files.
Validates values once and provides typed access to settings.
"""

from __future__ import annotations

import codecs
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CACHE_NAME = "kash"


def default_root_path() -> Path:
    """``$HOME/.cache`` when HOME is set and non-empty, else the working directory."""
    home = os.environ.get("HOME")
    if home:
        return Path(home) / ".cache"
    return Path(".")


class Settings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        KASH_ROOT_PATH: Parent directory of the cache directory
        KASH_CACHE_NAME: Name of the cache directory under the root
        KASH_MEMORY_CACHE_ENABLED: Keep small values in an in-memory LRU tier
        KASH_MEMORY_CACHE_MAX_ENTRIES: Entry capacity of the memory tier
        KASH_MEMORY_CACHE_MAX_ENTRY_BYTES: Largest value kept in the memory tier
        KASH_CHARSET: Charset for string values
        KASH_LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_prefix="KASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ROOT_PATH: Path = Field(
        default_factory=default_root_path,
        description="Parent directory of the cache directory",
    )
    CACHE_NAME: str = Field(
        default=DEFAULT_CACHE_NAME, description="Cache directory name under ROOT_PATH"
    )

    # Memory tier
    MEMORY_CACHE_ENABLED: bool = Field(
        default=False, description="Serve repeated small reads from memory"
    )
    MEMORY_CACHE_MAX_ENTRIES: int = Field(
        default=5, gt=0, description="Maximum entries held in the memory tier"
    )
    MEMORY_CACHE_MAX_ENTRY_BYTES: int = Field(
        default=8192, ge=0, description="Largest value (bytes) admitted to the memory tier"
    )

    CHARSET: str = Field(default="utf-8", description="Charset for string values")

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )

    @field_validator("CACHE_NAME")
    @classmethod
    def validate_cache_name(cls, v: str) -> str:
        """Cache name must be a single, non-empty path component."""
        v = v.strip()
        if not v:
            raise ValueError("CACHE_NAME must not be empty")
        if v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError("CACHE_NAME must be a single directory name")
        return v

    @field_validator("CHARSET")
    @classmethod
    def validate_charset(cls, v: str) -> str:
        """Charset must be known to the codecs registry."""
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown charset: {v}") from e
        return v

    @property
    def cache_dir(self) -> Path:
        """Directory holding the metadata document and payload files."""
        return self.ROOT_PATH / self.CACHE_NAME

    def display(self) -> dict[str, str | int | bool]:
        """Return settings as display-ready values."""
        return {
            "ROOT_PATH": str(self.ROOT_PATH),
            "CACHE_NAME": self.CACHE_NAME,
            "MEMORY_CACHE_ENABLED": self.MEMORY_CACHE_ENABLED,
            "MEMORY_CACHE_MAX_ENTRIES": self.MEMORY_CACHE_MAX_ENTRIES,
            "MEMORY_CACHE_MAX_ENTRY_BYTES": self.MEMORY_CACHE_MAX_ENTRY_BYTES,
            "CHARSET": self.CHARSET,
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()

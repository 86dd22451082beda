"""
Configuration management using pydantic-settings.

Loads cache defaults from DISKLRU_* environment variables and .env files.
These settings feed the CLI and FileLRUCache.from_settings(); the cache
constructor still performs its own synchronous option checks.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        DISKLRU_DIR: Cache directory
        DISKLRU_MAX_SIZE: Capacity bound (<= 0 means unbounded)
        DISKLRU_MAX_SIZE_UNIT: "file" or "byte"
        DISKLRU_TTL: Time-to-live in seconds (unset or <= 0 means no expiry)
        DISKLRU_CLEAR: Evict everything when the cache is opened
        DISKLRU_LOG_LEVEL: Logging level
        DISKLRU_LOG_FILE: JSON-lines log file
    """

    model_config = SettingsConfigDict(
        env_prefix="DISKLRU_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DIR: Path = Field(default=Path(".cache/disklru"), description="Cache directory")
    MAX_SIZE: float = Field(
        default=0, description="Capacity bound; zero or negative means unbounded"
    )
    MAX_SIZE_UNIT: Literal["file", "byte"] = Field(
        default="file", description="Unit of MAX_SIZE"
    )
    TTL: float | None = Field(default=None, description="Time-to-live in seconds")
    CLEAR: bool = Field(default=False, description="Evict everything on open")

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON-lines log file")

    @field_validator("MAX_SIZE_UNIT", mode="before")
    @classmethod
    def normalize_unit(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("TTL", mode="before")
    @classmethod
    def empty_ttl_is_none(cls, v: object) -> object:
        """Treat an empty DISKLRU_TTL as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def display(self) -> dict[str, str | float | bool | None]:
        """Return settings for display."""
        return {
            "DIR": str(self.DIR),
            "MAX_SIZE": self.MAX_SIZE,
            "MAX_SIZE_UNIT": self.MAX_SIZE_UNIT,
            "TTL": self.TTL,
            "CLEAR": self.CLEAR,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If a setting is present but invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()

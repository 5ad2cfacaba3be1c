"""
Configuration Management for Poker Dues

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The settlement tolerance is deliberately NOT configurable: it is part of
the settlement rules, not a deployment choice.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POKER_DUES_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Storage backend: 'json' files on disk or in-process 'memory'"
    )
    data_dir: str = Field(
        default=".poker_dues",
        description="Directory holding one JSON document per storage slot"
    )

    # Slot names within the store
    players_slot: str = Field(default="participants")
    transactions_slot: str = Field(default="transactions")
    stats_slot: str = Field(default="stats")
    current_game_slot: str = Field(default="current_game_id")
    stats_year_slot: str = Field(default="last_stats_year")

    # Retry policy for disk writes
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed write is attempted"
    )

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        """Reject a data dir that points at an existing file."""
        if Path(v).is_file():
            raise ValueError(f"Storage data_dir {v} is a file, expected a directory")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="POKER_DUES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Sanity thresholds
    max_reasonable_amount: float = Field(
        default=100000.0,
        gt=0,
        description="Amounts above this raise a (non-blocking) warning"
    )
    max_name_length: int = Field(
        default=100,
        ge=1,
        le=100,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    `<name>_error` entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

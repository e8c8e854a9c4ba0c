"""
Configuration Management for Milk Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Runtime configuration (where data lives, which storage
backend to use) is kept apart from the user's default Settings record.
The user record is data and is persisted; this is deployment config.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """
    Main runtime configuration.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MILK_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    # Storage
    storage_backend: str = Field(
        default="json_file",
        pattern="^(json_file|memory)$",
        description="Key-value storage backend"
    )
    data_dir: Path = Field(
        default=Path.home() / ".milk_tracker",
        description="Directory holding the persisted records"
    )
    settings_key: str = Field(
        default="settings",
        min_length=1,
        description="Storage key of the user settings record"
    )
    calendar_key: str = Field(
        default="calendarData",
        min_length=1,
        description="Storage key of the calendar data record"
    )
    write_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a failing file write before giving up"
    )

    # Audit
    audit_history_limit: int = Field(
        default=500,
        ge=0,
        description="Audit events kept in memory (0 disables the history)"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Expand ~ so env values like ~/milk work."""
        return v.expanduser()


@lru_cache()
def get_config() -> TrackerSettings:
    """
    Get runtime configuration (cached).

    Call get_config.cache_clear() to reload if needed.
    """
    return TrackerSettings()

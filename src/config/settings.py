"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The timezone in particular is the single source of truth for every
day and hour boundary in the system, so it is validated at startup.
"""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from EXPENSES_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPENSES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level for structlog output"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///data/expenses.db",
        description="SQLAlchemy URL of the local expense database"
    )
    persist_audit_events: bool = Field(
        default=True,
        description="Append audit events to the audit_log table"
    )

    # Time policy
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used for day and hour bucketing"
    )

    # Entry rules
    currency_symbol: str = Field(
        default="₹",
        min_length=1,
        max_length=4,
        description="Currency symbol used in messages and exports"
    )
    max_notes_length: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Maximum length of the notes field (can only tighten the stored limit)"
    )

    # Reports
    report_window_days: int = Field(
        default=7,
        ge=1,
        le=366,
        description="Length of the trailing report window, today included"
    )

    # Reactive layer
    live_query_stop_timeout: float = Field(
        default=5.0,
        ge=0.0,
        description="Seconds a live query stays warm after its last subscriber leaves"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown zones early rather than at the first day query."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def tzinfo(self) -> ZoneInfo:
        """Get the configured timezone as a tzinfo object."""
        return ZoneInfo(self.timezone)


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
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results

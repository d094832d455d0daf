"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_DATA_DIR = Path.home() / ".doneday"
LOG_FORMATS = frozenset({"text", "json"})


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load the project `.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    cors_origins: str = ""
    database_url: str = f"sqlite+aiosqlite:///{DEFAULT_DATA_DIR / 'doneday.db'}"

    # Database lifecycle
    db_auto_migrate: bool = False

    # Smart lists are evaluated against this timezone's calendar days.
    timezone: str = "UTC"
    upcoming_days: int = Field(default=7, ge=1)

    # Reminders
    snooze_minutes: int = Field(default=15, ge=1, le=1440)
    notification_title: str = "Task reminder"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        if self.log_format not in LOG_FORMATS:
            raise ValueError("LOG_FORMAT must be one of: json, text.")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"TIMEZONE is not a known IANA zone: {self.timezone}") from exc
        # In dev, default to applying Alembic migrations at startup to avoid
        # schema drift (e.g. missing newly-added reminder columns).
        if "db_auto_migrate" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_migrate = True
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


settings = Settings()

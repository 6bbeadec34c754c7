"""Runtime settings for the event notification service.

Values come from ``EVENTS_``-prefixed environment variables or a ``.env``
file, falling back to the field defaults.  The listen port also honours a
bare ``PORT`` variable.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="EVENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    host: str = "0.0.0.0"
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("EVENTS_PORT", "PORT", "port"),
    )

    # -- Engine cadence -------------------------------------------------------
    conflict_window_ms: int = Field(default=3_600_000, gt=0)
    reminder_horizon_ms: int = Field(default=300_000, gt=0)
    lifecycle_tick_interval: float = Field(default=60.0, gt=0)
    log_tick_interval: float = Field(default=86_400.0, gt=0)

    # -- Audit log ------------------------------------------------------------
    audit_log_path: Path = Path("event_history.log")
    dedupe_audit_log: bool = False

    # -- Live notifications ---------------------------------------------------
    subscriber_queue_size: int = Field(default=100, ge=1)

    # -- Logging --------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_LOG_LEVELS)}"
            )
        return upper

    @property
    def conflict_window(self) -> timedelta:
        return timedelta(milliseconds=self.conflict_window_ms)

    @property
    def reminder_horizon(self) -> timedelta:
        return timedelta(milliseconds=self.reminder_horizon_ms)


@lru_cache
def get_settings() -> Settings:
    return Settings()

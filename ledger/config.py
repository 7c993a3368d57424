"""Runtime configuration for the compliance ledger."""
from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


# "dev" | "test" | "staging" | "prod"
ENV = os.getenv("LEDGER_ENV", "dev").lower()

# The export expiry sweep runs in-process; enable it on a single replica.
SCHEDULER_ENABLED = _env_flag("LEDGER_SCHEDULER_ENABLED")


class Settings(BaseSettings):
    """Ledger settings read from the environment and an optional ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = Field(default=ENV, validation_alias="LEDGER_ENV")
    database_url: str = "sqlite:///compliance_ledger.db"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000"]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = True
    ALLOW_DB_CREATE_ALL: bool = False
    # Read from LEDGER_SCHEDULER_ENABLED only, same as the module toggle.
    SCHEDULER_ENABLED: bool = Field(default=SCHEDULER_ENABLED, validation_alias="LEDGER_SCHEDULER_ENABLED")
    EXPORT_SWEEP_INTERVAL_MINUTES: int = 30

    @field_validator("SENTRY_DSN")
    @classmethod
    def _blank_dsn_disables_sentry(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("EXPORT_SWEEP_INTERVAL_MINUTES")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        if value < 1:
            raise ValueError("EXPORT_SWEEP_INTERVAL_MINUTES must be at least 1")
        return value


class AppInfo(BaseModel):
    name: str = "clinic-compliance-ledger"
    version: str = "0.1.0"


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    return settings


__all__ = [
    "ENV",
    "SCHEDULER_ENABLED",
    "Settings",
    "AppInfo",
    "settings",
    "get_settings",
]

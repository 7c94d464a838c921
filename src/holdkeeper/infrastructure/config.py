"""Runtime settings, read from ``HOLDKEEPER_*`` environment variables or ``.env``."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///holdkeeper.db"
    redis_url: str | None = None
    notification_url: str | None = None
    notification_timeout_seconds: float = Field(default=5.0, gt=0)

    processor_interval_seconds: float = Field(default=60.0, gt=0)
    retention_days: int = Field(default=30, ge=1)
    policy_cache_ttl_seconds: int = Field(default=3600, ge=1)
    default_ttl_minutes: int = Field(default=30, ge=1)

    log_level: str = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HOLDKEEPER_",
        case_sensitive=False,
        extra="ignore",
    )


def load_settings(**overrides) -> Settings:
    return Settings(**overrides)

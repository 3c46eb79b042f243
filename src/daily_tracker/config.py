"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    data_dir: Path = Path(".tracker-data")
    storage_backend: str = "file"
    timezone: str = "UTC"
    max_history_size: int = 10
    seed_dummy_data: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_storage_backend(raw: str | None) -> str:
    """Normalize the configured storage backend name."""
    if raw is None:
        return "file"
    cleaned = raw.strip().lower()
    if cleaned in {"memory", "in-memory", "inmemory"}:
        return "memory"
    return "file"

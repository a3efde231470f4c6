"""Application-wide configuration loaded from the environment."""

from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Centralized settings for the Finanz-Weg backend service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FINANZWEG_",
        extra="ignore",
    )

    api_host: str = "0.0.0.0"  # noqa: S104
    api_port: int = 3000
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]
    deck_path: Path | None = None
    profiles_path: Path | None = None


@cache
def get_settings() -> BackendSettings:
    """Return the cached settings instance."""

    return BackendSettings()


__all__ = ["BackendSettings", "get_settings"]

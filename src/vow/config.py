"""Application settings via pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables with VOW_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="VOW_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Storage ---
    storage_backend: Literal["file", "sql", "memory"] = "file"
    data_dir: str = "data"
    backup_dir: str = "data/backups"
    database_url: str = "sqlite+aiosqlite:///data/vow.db"

    # --- Rate limiting (disabled when redis_url is empty) ---
    redis_url: str = ""
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60

    # --- Domain policy ---
    strict_transitions: bool = True
    leaderboard_default_limit: int = 10
    default_session_ip: str = "simulated_ip"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="STOREFRONT_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Storefront API"
    api_prefix: str = "/api"
    # Origin used in emailed links; the request host is used when unset.
    public_base_url: str | None = None

    # Database
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    database_echo: bool = False

    # Security
    secret_key: str = "change-me"
    access_token_expire_minutes: int = 60 * 24
    reset_token_expire_minutes: int = 10
    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Mail delivery
    mail_api_url: str | None = None  # unset: reset links are written to the log
    mail_api_key: str | None = None
    mail_from: str = "no-reply@storefront.local"
    mail_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_dir: str | None = None

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()

"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="USER_RECORDS_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "User Records"

    # Database
    database_url: str = "sqlite+aiosqlite:///./users.db"
    database_echo: bool = False

    # Password hashing
    password_hash_rounds: int = Field(default=10, ge=4, le=31)
    password_hash_workers: int = Field(default=4, ge=1)

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://localhost:3000",
        "https://127.0.0.1:3000",
    ]

    log_level: str = "INFO"

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()

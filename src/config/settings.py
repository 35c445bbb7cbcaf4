"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file).

It enforces the invariants the store relies on, such as locking the DB session timezone to UTC so
`published_at` and `created_at` round-trip as UTC instants.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(alias="DATABASE_URL")
    db_timezone: str = Field(default="UTC", alias="DB_TIMEZONE")
    db_pool_min_size: int = Field(default=1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(default=10, alias="DB_POOL_MAX_SIZE")
    query_timeout_s: float = Field(default=3.0, alias="QUERY_TIMEOUT_S")

    title_max_bytes: int = Field(default=500, alias="TITLE_MAX_BYTES")
    description_max_bytes: int = Field(default=5000, alias="DESCRIPTION_MAX_BYTES")
    language_max_bytes: int = Field(default=2, alias="LANGUAGE_MAX_BYTES")

    app_env: str = Field(default="development", alias="APP_ENV")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=4000, alias="API_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("db_timezone")
    @classmethod
    def validate_db_timezone_is_utc(cls, value: str) -> str:
        """Validate that the DB timezone is locked to UTC."""

        if value.upper() != "UTC":
            raise ValueError("DB_TIMEZONE must be UTC")
        return "UTC"

    @field_validator("query_timeout_s")
    @classmethod
    def validate_query_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("QUERY_TIMEOUT_S must be positive")
        return value

    @model_validator(mode="after")
    def validate_limits(self) -> Settings:
        """Validate pool sizing and field length limits.

        Every limit must be positive, and the pool must be able to hold at least its minimum size.
        """

        for name in ("title_max_bytes", "description_max_bytes", "language_max_bytes"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive integer")
        if self.db_pool_min_size < 0 or self.db_pool_max_size < max(self.db_pool_min_size, 1):
            raise ValueError("DB_POOL_MAX_SIZE must be >= DB_POOL_MIN_SIZE and >= 1")
        return self


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc

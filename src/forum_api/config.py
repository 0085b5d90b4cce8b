"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

# Backends with an INSERT .. ON CONFLICT DO NOTHING construct
SUPPORTED_DATABASE_BACKENDS = ("sqlite", "postgresql")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Forum API"
    debug: bool = False
    secret_key: str  # Required, no default

    # Database
    database_url: str = "sqlite+aiosqlite:///./forum.db"
    create_tables_on_startup: bool = False

    # JWT Authentication (sessions last two weeks)
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 14

    # Password hashing
    password_hash_rounds: int = Field(default=12, ge=4, le=31)

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Trending topics
    trending_window_hours: int = Field(default=48, ge=1)
    trending_limit: int = Field(default=7, ge=1)

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate that secret_key is secure."""
        if not v:
            raise ValueError("SECRET_KEY is required")

        # In production mode, ensure secret key is strong
        debug = info.data.get("debug", False)
        if not debug:
            if len(v) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production mode")
            if v in ("change-me-in-production", "secret", "password", "changeme"):
                raise ValueError("SECRET_KEY must not be a common weak value")

        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Only accept backends the topic and save upserts can run on."""
        try:
            backend = make_url(v).get_backend_name()
        except ArgumentError as e:
            raise ValueError(f"DATABASE_URL is not a valid database URL: {e}") from e
        if backend not in SUPPORTED_DATABASE_BACKENDS:
            raise ValueError(
                f"DATABASE_URL backend {backend!r} is not supported - use sqlite or postgresql"
            )
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: object) -> object:
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    def validate_runtime_config(self) -> list[str]:
        """Validate runtime configuration and return warnings."""
        warnings = []

        if self.database_url.startswith("sqlite"):
            warnings.append("DATABASE_URL points at SQLite - use PostgreSQL in production")

        if self.password_hash_rounds < 10:
            warnings.append(
                f"PASSWORD_HASH_ROUNDS is {self.password_hash_rounds} - "
                "bcrypt cost below 10 is only suitable for development"
            )

        # Warn about debug mode in production
        if self.debug:
            warnings.append("DEBUG mode is enabled - should be disabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

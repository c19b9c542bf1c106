"""
Yellow Book API: Application Configuration
===========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the CLI and Alembic.
When:  Loaded once at module import time; `create_app(settings=...)` accepts
       an explicit instance for tests and alternate deployments.

Database URL normalization:
    The async engine needs an async driver, so plain URLs are rewritten:

        file:./dev.db              → sqlite+aiosqlite:///./dev.db
        sqlite:///./dev.db         → sqlite+aiosqlite:///./dev.db
        postgres://u:p@h/db        → postgresql+asyncpg://u:p@h/db
        postgresql://u:p@h/db      → postgresql+asyncpg://u:p@h/db

    Anything else that is not already `sqlite+aiosqlite` or
    `postgresql+asyncpg` is rejected at startup.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

SUPPORTED_DRIVERS = ("sqlite+aiosqlite://", "postgresql+asyncpg://")


def normalize_database_url(url: str) -> str:
    """Rewrite a storage connection string to use an async driver."""
    url = url.strip()
    if url.startswith("file:"):
        # Bare file URL with a relative path: file:./dev.db
        return "sqlite+aiosqlite:///" + url[len("file:"):]
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    if url.startswith(SUPPORTED_DRIVERS):
        return url
    raise ValueError(
        f"Unsupported database URL scheme '{url.split(':')[0]}'. "
        "Use sqlite+aiosqlite:// or postgresql+asyncpg://"
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults (local SQLite file, frontend on
    port 4200). Production deployments override DATABASE_URL and CORS_ORIGINS.
    """

    # ── Database ──────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///./dev.db",
        description="Storage connection string (normalized to an async driver)",
    )

    # Pool sizing only applies to PostgreSQL; SQLite uses SQLAlchemy's default pool
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=5, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create missing tables on startup (development flow without Alembic)
    db_create_tables: bool = Field(default=True)

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        return normalize_database_url(v)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # ── Server ────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3333, ge=1, le=65535)

    # Comma-separated list of allowed origins
    cors_origins: str = Field(default="http://localhost:4200")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Caching ───────────────────────────────────────────────────────────
    # Shared-cache lifetime for read endpoints; matches the frontend's
    # incremental revalidation interval
    revalidate_seconds: int = Field(default=60, ge=0, le=86400)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_requests: int = Field(default=300, ge=1, le=100000)
    rate_limit_window: int = Field(default=60, ge=1, le=86400)  # seconds

    # ── Seed Data ─────────────────────────────────────────────────────────
    # Overrides the bundled yellowbook/data/seed_entries.json
    seed_file: Optional[str] = Field(default=None)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Singleton instance used when no explicit Settings is passed
settings = Settings()

"""
Yellow Book API: Database Engine & Session Management
======================================================

What:  Async SQLAlchemy engine, session factory and metadata helpers wrapped
       in one explicitly constructed `Database` object.
How:   `create_app()` builds a single Database at process start and stores it
       on `app.state`; the lifespan handler disposes it at shutdown. Scripts
       (CLI, tests) build their own instance from a URL.
Who:   Used by YellowBookGateway (sessions), the readiness probe (ping), the
       CLI (create_all/drop_all) and Alembic (Base.metadata).

Connection Pooling:
    PostgreSQL (asyncpg):  pool_size / max_overflow / pre_ping from settings,
                           connections recycled hourly.
    SQLite (aiosqlite):    SQLAlchemy's default pool for the file/memory mode;
                           pool sizing arguments are not passed.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from yellowbook.config import Settings, normalize_database_url

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers models with a single metadata object, used by create_all() and
    by Alembic for migrations.
    """
    pass


def _engine_options(
    url: str,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    echo: bool,
) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": echo, "pool_pre_ping": pool_pre_ping}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_recycle=3600,
        )
    return options


class Database:
    """
    Owns the async engine and session factory for one storage backend.

    Lifecycle:
        1. Constructed once (app factory, CLI command or test fixture)
        2. session() hands out per-operation sessions
        3. dispose() closes every pooled connection (shutdown)
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = normalize_database_url(url)
        self.engine: AsyncEngine = create_async_engine(
            self.url,
            **_engine_options(self.url, pool_size, max_overflow, pool_pre_ping, echo),
        )
        # expire_on_commit=False: attributes stay readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide a transactional session for one gateway operation.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller
            3. On success: commits the transaction
            4. On error: rolls back and re-raises
            5. Always: closes the session (returns connection to pool)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_all(self) -> None:
        """Create every table registered on Base.metadata that is missing."""
        # Registers the models on Base.metadata
        from yellowbook.models import yellow_book  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop the application tables and Alembic's version table."""
        from yellowbook.models import yellow_book  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.execute(text("DROP TABLE IF EXISTS alembic_version"))

    async def ping(self) -> bool:
        """Run SELECT 1; False if the backend cannot be reached."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all connections in the pool."""
        await self.engine.dispose()

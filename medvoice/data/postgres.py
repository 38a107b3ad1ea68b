# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Database engine management.

Supports:
- PostgreSQL via asyncpg (production)
- SQLite via aiosqlite (development / tests)

The active backend is determined by DATABASE_URL in settings.
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Module-level singletons
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_settings():
    """Lazy import to avoid circular deps with settings module."""
    from ..core.settings import get_settings

    return get_settings()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_in_memory(url: str) -> bool:
    return ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:")


async def create_tables(engine: AsyncEngine) -> None:
    """Create every table from ORM metadata."""
    from .models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_database(url: str | None = None) -> AsyncEngine:
    """Create the async engine and session factory.

    Called once during application startup (lifespan).
    Tables are created from metadata for SQLite, or for any backend when
    DATABASE_CREATE_TABLES is set.
    """
    global _engine, _session_factory

    settings = _get_settings()
    url = url or settings.database.url

    engine_kwargs: dict = {}

    if _is_sqlite(url):
        engine_kwargs.update(
            connect_args={"check_same_thread": False},
            pool_pre_ping=False,
        )
        if _is_in_memory(url):
            # One shared connection, otherwise each checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
        logger.info("Initializing SQLite database: %s", url)
    else:
        engine_kwargs.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
        )
        logger.info("Initializing PostgreSQL database")

    _engine = create_async_engine(
        url,
        echo=settings.database.echo,
        **engine_kwargs,
    )

    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    if _is_sqlite(url) or settings.database.create_tables:
        await create_tables(_engine)
        logger.info("Tables created from ORM metadata")

    logger.info("Database initialized")
    return _engine


async def close_database() -> None:
    """Dispose the engine and release all connections.

    Called during application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database connections closed")
    _engine = None
    _session_factory = None


def get_database() -> AsyncEngine:
    """Return the active engine instance.

    Raises RuntimeError if init_database() hasn't been called.
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _session_factory


async def ping_database() -> bool:
    """Run a trivial query against the active engine."""
    async with get_database().connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async session.

    Usage in route handlers::

        @router.get("/conversations")
        async def list_conversations(session: AsyncSession = Depends(get_db_session)):
            repo = ConversationRepository(session)
            ...

    The session is committed on success and rolled back on exception.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

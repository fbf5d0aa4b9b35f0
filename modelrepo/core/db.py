"""
Database connection and session management.

Provides SQLAlchemy engines and session factories built from settings,
plus context managers that own a session for the duration of a block.

Supports both sync and async SQLAlchemy sessions.
"""

import logging
from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from modelrepo.core.config import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_sessionmaker: sessionmaker | None = None

_async_engine: AsyncEngine | None = None
_async_sessionmaker: async_sessionmaker | None = None


def _engine_kwargs(url: str) -> dict[str, Any]:
    """Pool configuration for the given URL.

    SQLite in-memory databases live inside a single connection, so they
    share one connection across the pool; other backends get a sized pool.
    """
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_size": 20,  # Number of connections to maintain
        "max_overflow": 10,  # Additional connections allowed beyond pool_size
        "pool_timeout": 30,  # Seconds to wait before giving up on a connection
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_pre_ping": True,  # Verify connections before use
    }


def get_engine() -> Engine:
    """
    Create (once) and return the sync SQLAlchemy engine.

    Returns:
        Configured SQLAlchemy engine
    """
    global _engine

    if _engine is not None:
        return _engine

    url = settings.sync_url
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    _engine = create_engine(url, echo=settings.database_echo, **_engine_kwargs(url))
    logger.debug("Created database engine", extra={"dialect": _engine.dialect.name})
    return _engine


def get_sessionmaker() -> sessionmaker:
    global _sessionmaker
    if _sessionmaker is not None:
        return _sessionmaker
    _sessionmaker = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _sessionmaker


@contextmanager
def get_db() -> Generator[Session]:
    """
    Context manager for database sessions.

    Usage:
        with get_db() as db:
            users = UserRepository(db, User).get_active()

    Yields:
        Database session

    Ensures:
        Session is properly closed after use, even if exception occurs
    """
    session_local = get_sessionmaker()
    db = session_local()
    try:
        yield db
    finally:
        db.close()


def reset_engine() -> None:
    """Dispose the sync engine and forget the cached sessionmaker."""
    global _engine, _sessionmaker
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessionmaker = None


# ============================================================================
# Async Database Support
# ============================================================================


def get_async_engine() -> AsyncEngine:
    """
    Create (once) and return the async SQLAlchemy engine.

    Uses asyncpg for PostgreSQL and aiosqlite for SQLite.

    Returns:
        Configured async SQLAlchemy engine
    """
    global _async_engine

    if _async_engine is not None:
        return _async_engine

    url = settings.async_url
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    _async_engine = create_async_engine(url, echo=settings.database_echo, **_engine_kwargs(url))
    return _async_engine


def get_async_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the async sessionmaker.

    Returns:
        Async sessionmaker factory
    """
    global _async_sessionmaker
    if _async_sessionmaker is not None:
        return _async_sessionmaker

    _async_sessionmaker = async_sessionmaker(
        bind=get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    return _async_sessionmaker


@asynccontextmanager
async def get_async_db() -> AsyncIterator[AsyncSession]:
    """Async context manager for database sessions.

    Usage:
        async with get_async_db() as db:
            total = await UserRepository(db, User).get_count_for_active()
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        yield session


async def reset_async_engine() -> None:
    """Reset the async database engine and sessionmaker.

    Useful for tests to ensure fresh connections on new event loops.
    """
    global _async_engine, _async_sessionmaker
    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_sessionmaker = None

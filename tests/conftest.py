"""
Pytest configuration and shared fixtures.

Provides:
- In-memory SQLite databases (sync and async SQLAlchemy)
- Seeded teams and users
- Repository-ready model fixtures shared with tests/models.py

Async SQLAlchemy Fixtures:
- async_engine: Function-scoped aiosqlite engine with the schema created
- async_db_session: Function-scoped async session over seeded data
"""

from __future__ import annotations

import sys
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402 (import after path setup)
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tests.models import Base, Membership, Team, User  # noqa: E402

# =============================================================================
# AnyIO Backend Configuration
# =============================================================================
# Per AnyIO testing docs: https://anyio.readthedocs.io/en/stable/testing.html
@pytest.fixture
def anyio_backend():
    return "asyncio"


# ============================================================================
# Seed data
# ============================================================================


def seed_rows() -> list:
    """Two teams, five users (one inactive per team), two memberships."""
    return [
        Team(team_id=1, name="Platform"),
        Team(team_id=2, name="Payments"),
        User(id=1, name="ada", email="ada@example.com", is_active=True, team_id=1),
        User(id=2, name="grace", email="grace@example.com", is_active=True, team_id=1),
        User(id=3, name="linus", email="linus@example.com", is_active=False, team_id=1),
        User(id=4, name="ada", email="ada.b@example.com", is_active=True, team_id=2),
        User(id=5, name="ken", email="ken@example.com", is_active=False, team_id=2),
        Membership(user_id=1, team_id=1, role="admin"),
        Membership(user_id=4, team_id=2, role="member"),
    ]


# ============================================================================
# Sync Database
# ============================================================================


@pytest.fixture
def test_engine() -> Generator[Engine]:
    """In-memory SQLite engine; StaticPool keeps the single database alive."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def empty_db_session(test_engine: Engine) -> Generator[Session]:
    """Session over an empty schema."""
    session_factory = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def db_session(empty_db_session: Session) -> Session:
    """Session over the seeded schema."""
    empty_db_session.add_all(seed_rows())
    empty_db_session.commit()
    return empty_db_session


# ============================================================================
# Async Database
# ============================================================================


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session_factory = async_sessionmaker(
        bind=async_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )
    async with session_factory() as session:
        session.add_all(seed_rows())
        await session.commit()
        yield session

"""Pytest fixtures for SQLAlchemy integration tests."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from alphacopy.infrastructure.persistence.sqlalchemy import create_session_factory, init_db


@pytest.fixture
async def engine():
    """Create async SQLite engine for testing.

    Returns:
        Async SQLAlchemy engine.
    """
    # In-memory SQLite: every session-per-call repository shares one connection
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Async session factory the repositories open sessions from."""
    return create_session_factory(engine)

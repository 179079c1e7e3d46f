"""Pytest fixtures for integration tests against an in-memory SQLite database."""
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from cryptosignals.core.database import Base
import cryptosignals.models  # noqa: F401
import logging

logger = logging.getLogger(__name__)


@pytest.fixture
async def test_engine():
    """
    Create a fresh in-memory database for each test.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.debug("Test engine created")
    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


@pytest.fixture
async def test_db(session_factory):
    """Database session for a single test."""
    async with session_factory() as session:
        yield session

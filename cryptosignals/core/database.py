"""Async SQLAlchemy engine, session factory and declarative base."""
from pathlib import Path
from typing import Any, AsyncGenerator, Dict
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from cryptosignals.core.config import settings
import logging
import re
import time

logger = logging.getLogger(__name__)

# Connection pool sizing for server databases (Postgres)
POOL_OPTIONS = {
    "pool_size": 10,
    "max_overflow": 20,
    "pool_timeout": 30,
    "pool_recycle": 3600,
}


def mask_db_url(url: str) -> str:
    """Replace the password of a database URL with asterisks."""
    return re.sub(r'://([^:/@]+):([^@]+)@', r'://\1:****@', url)


def engine_options(url: str) -> Dict[str, Any]:
    """Engine keyword arguments for ``url``; SQLite pools take no sizing options."""
    options: Dict[str, Any] = {
        "echo": settings.log_level == "DEBUG",
        "pool_pre_ping": True,
    }
    if make_url(url).get_backend_name() != "sqlite":
        options.update(POOL_OPTIONS)
    return options


logger.info(f"Database: {mask_db_url(settings.database_url)}")

engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session for one request.

    Services commit their own work; anything left uncommitted when an error
    escapes the request is rolled back here.
    """
    opened = time.perf_counter()

    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Rolled back request session: {e}", exc_info=True)
            raise
        finally:
            logger.debug(f"Request session closed after {time.perf_counter() - opened:.3f}s")


def get_async_session() -> AsyncSession:
    """Session for code running outside a request (startup hooks, scripts)."""
    return AsyncSessionLocal()


async def init_db():
    """Create any missing tables from the model metadata."""
    url = engine.url

    # aiosqlite will not create missing parent directories
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(f"Could not create tables on {mask_db_url(str(url))}: {e}", exc_info=True)
        raise

    logger.info(f"Database ready ({len(Base.metadata.tables)} tables)")

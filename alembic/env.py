"""Alembic migration environment for the cryptosignals schema.

The database URL always comes from ``cryptosignals.core.config.settings``
(``DATABASE_URL``), never from alembic.ini.
"""
from logging.config import fileConfig
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context
import asyncio
import sys

from cryptosignals.core.config import settings
from cryptosignals.core.database import Base, mask_db_url
import cryptosignals.models  # noqa: F401  registers every table on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = settings.database_url
config.set_main_option("sqlalchemy.url", DATABASE_URL)

# SQLite cannot ALTER most constraints in place
MIGRATION_OPTIONS = {
    "target_metadata": Base.metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def migrate_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **MIGRATION_OPTIONS
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate_with(connection) -> None:
    context.configure(connection=connection, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    """Apply migrations over a throwaway async engine."""
    print(f"Migrating {mask_db_url(DATABASE_URL)}", file=sys.stderr)

    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_with)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())

from __future__ import annotations

import asyncio

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

import factory_kpi.db.models  # noqa: F401  registers tables on Base.metadata
from factory_kpi.db.base import Base
from factory_kpi.db.config import get_settings

config = context.config
target_metadata = Base.metadata

# batch mode lets SQLite alter tables; harmless on MSSQL
CONFIGURE_OPTIONS = dict(target_metadata=target_metadata, compare_type=True, render_as_batch=True)


def run_migrations_offline() -> None:
    """Emit SQL for the sync URL set by run_migrations.build_config, without connecting."""
    url = config.get_main_option("sqlalchemy.url") or get_settings().sync_database_url
    context.configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"}, **CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection) -> None:
    context.configure(connection=connection, **CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations over the same async driver the application uses."""
    engine = create_async_engine(get_settings().async_database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
            await connection.commit()
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

"""
Process-wide async engine and session factory.

The engine is created lazily from the DB settings (or explicitly through init_engine,
which StorageManager does at startup) and forgotten by dispose_engine so tests and
the memory fallback can start over.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .base import Base
from .config import Settings, get_settings

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


# PUBLIC_INTERFACE
def init_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the engine and session factory unless they already exist."""
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        settings = settings or get_settings()
        url = settings.async_database_url
        # MSSQL connections drop when idle; SQLite files do not need pre-ping
        _ENGINE = create_async_engine(url, echo=settings.SQL_ECHO, pool_pre_ping=not url.startswith("sqlite"))
        _SESSION_MAKER = async_sessionmaker(bind=_ENGINE, expire_on_commit=False, autoflush=False)
    return _ENGINE


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    return init_engine()


# PUBLIC_INTERFACE
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    init_engine()
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER


# PUBLIC_INTERFACE
async def create_schema() -> None:
    """Create any missing tables. Existing tables are left untouched."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# PUBLIC_INTERFACE
async def ping() -> None:
    """Run a trivial statement; raises when the database is unreachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


# PUBLIC_INTERFACE
async def dispose_engine() -> None:
    """Dispose the engine and forget it so the next call re-creates it."""
    global _ENGINE, _SESSION_MAKER
    engine, _ENGINE, _SESSION_MAKER = _ENGINE, None, None
    if engine is not None:
        await engine.dispose()

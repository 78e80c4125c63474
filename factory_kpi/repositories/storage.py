"""
Storage bundles and backend selection.

A Storage groups one repository per domain, all backed by the same adapter.
StorageManager decides once, at startup, whether the process serves from SQL or
from memory; every request then gets a Storage of that kind.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from factory_kpi.core.settings import AppSettings, get_app_settings
from factory_kpi.db.config import Settings
from factory_kpi.db.run_migrations import main as run_alembic
from factory_kpi.db.session import create_schema, dispose_engine, get_session_maker, init_engine, ping
from .claims import SqlClaimRepository
from .dashboard import SqlDashboardRepository
from .interfaces import (
    ActionRepository,
    ActivityRepository,
    ClaimRepository,
    DashboardRepository,
    DepartmentRepository,
    KpiRepository,
    StationRepository,
    UserRepository,
)
from .kpi import SqlActionRepository, SqlKpiRepository
from .memory import (
    MemoryActionRepository,
    MemoryActivityRepository,
    MemoryClaimRepository,
    MemoryDashboardRepository,
    MemoryDatabase,
    MemoryDepartmentRepository,
    MemoryKpiRepository,
    MemoryStationRepository,
    MemoryUserRepository,
)
from .stations import SqlStationRepository
from .users import SqlActivityRepository, SqlDepartmentRepository, SqlUserRepository

logger = logging.getLogger(__name__)

SQL_BACKEND = "sql"
MEMORY_BACKEND = "memory"


class Storage:
    """One repository per domain, all served by the same backend."""

    backend: str
    users: UserRepository
    departments: DepartmentRepository
    activity: ActivityRepository
    kpi: KpiRepository
    actions: ActionRepository
    stations: StationRepository
    claims: ClaimRepository
    dashboard: DashboardRepository


class SqlStorage(Storage):
    """Repositories sharing one AsyncSession."""

    backend = SQL_BACKEND

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = SqlUserRepository(session)
        self.departments = SqlDepartmentRepository(session)
        self.activity = SqlActivityRepository(session)
        self.kpi = SqlKpiRepository(session)
        self.actions = SqlActionRepository(session)
        self.stations = SqlStationRepository(session)
        self.claims = SqlClaimRepository(session)
        self.dashboard = SqlDashboardRepository(session)


class MemoryStorage(Storage):
    """Repositories over the process-wide MemoryDatabase."""

    backend = MEMORY_BACKEND

    def __init__(self, db: MemoryDatabase) -> None:
        self.db = db
        self.users = MemoryUserRepository(db)
        self.departments = MemoryDepartmentRepository(db)
        self.activity = MemoryActivityRepository(db)
        self.kpi = MemoryKpiRepository(db)
        self.actions = MemoryActionRepository(db)
        self.stations = MemoryStationRepository(db)
        self.claims = MemoryClaimRepository(db)
        self.dashboard = MemoryDashboardRepository(db)


class StorageManager:
    """
    Chooses the storage backend for the whole process.

    With STORAGE_BACKEND=sql the schema is prepared (Alembic or create_all) and the
    connection verified; if that fails and STORAGE_FALLBACK_TO_MEMORY is set, the
    process switches to memory for every entity.
    """

    def __init__(self) -> None:
        self.backend: Optional[str] = None
        self.memory = MemoryDatabase()

    # PUBLIC_INTERFACE
    async def initialize(
        self,
        settings: AppSettings | None = None,
        db_settings: Settings | None = None,
    ) -> str:
        """Select and prepare the backend. Returns 'sql' or 'memory'."""
        settings = settings or get_app_settings()
        if settings.STORAGE_BACKEND == MEMORY_BACKEND:
            logger.info("Using in-memory storage (STORAGE_BACKEND=memory)")
            self.backend = MEMORY_BACKEND
            return self.backend

        try:
            init_engine(db_settings)
            if settings.RUN_MIGRATIONS_ON_STARTUP:
                logger.info("Running Alembic migrations: upgrade head")
                # env.py drives its own event loop
                await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            elif settings.CREATE_SCHEMA_ON_STARTUP:
                logger.info("Creating missing tables")
                await create_schema()
            await ping()
            self.backend = SQL_BACKEND
            logger.info("Using SQL storage")
        except Exception as exc:
            logger.exception("SQL storage initialization failed: %s", exc)
            await dispose_engine()
            if not settings.STORAGE_FALLBACK_TO_MEMORY:
                raise
            logger.warning("Falling back to in-memory storage; data will not survive a restart.")
            self.backend = MEMORY_BACKEND
        return self.backend

    # PUBLIC_INTERFACE
    @asynccontextmanager
    async def open(self) -> AsyncIterator[Storage]:
        """Yield a Storage for one unit of work (one request)."""
        if self.backend is None:
            await self.initialize()
        if self.backend == MEMORY_BACKEND:
            yield MemoryStorage(self.memory)
            return
        async with get_session_maker()() as session:
            yield SqlStorage(session)

    # PUBLIC_INTERFACE
    async def reset(self) -> None:
        """Forget the selected backend and drop all in-memory rows."""
        self.memory.clear()
        self.backend = None
        await dispose_engine()


storage_manager = StorageManager()

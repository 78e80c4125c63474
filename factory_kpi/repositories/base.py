from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from sqlalchemy import Executable, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from factory_kpi.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository:
    """
    Shared helpers for the SQL adapters.

    Every write commits immediately; there are no multi-statement transactions,
    which keeps the SQL adapters behaving like the memory ones.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        await self.session.commit()

    async def get_by_id(self, model: Type[ModelT], entity_id: str) -> Optional[ModelT]:
        stmt = select(model).where(model.id == entity_id)
        return await self.scalar_one_or_none(stmt)

    async def insert(self, entity: ModelT) -> ModelT:
        """Persist a new entity and return it with defaults populated."""
        self.session.add(entity)
        await self.commit()
        return entity

    async def update_by_id(self, model: Type[ModelT], entity_id: str, values: dict[str, Any]) -> Optional[ModelT]:
        """Apply attribute values to one row; returns the reloaded row or None when missing."""
        if values:
            stmt = (
                update(model)
                .where(model.id == entity_id)
                .values({getattr(model, key): value for key, value in values.items()})
                .execution_options(synchronize_session="fetch")
            )
            await self.execute(stmt)
            await self.commit()
        stmt = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
        return await self.scalar_one_or_none(stmt)

    async def delete_by_id(self, model: Type[ModelT], entity_id: str) -> bool:
        result = await self.execute(delete(model).where(model.id == entity_id))
        await self.commit()
        return (result.rowcount or 0) > 0

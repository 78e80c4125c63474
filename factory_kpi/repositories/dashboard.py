from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm.attributes import flag_modified

from factory_kpi.db.base import utcnow
from factory_kpi.db.models.dashboard import CalendarMonth, UserPreference
from .base import BaseRepository
from .interfaces import DashboardRepository


class SqlDashboardRepository(BaseRepository, DashboardRepository):
    """SQL adapter for user preferences and calendar months."""

    async def get_preference(self, user_id: str, key: str) -> Optional[UserPreference]:
        stmt = select(UserPreference).where(UserPreference.user_id == user_id, UserPreference.key == key)
        return await self.scalar_one_or_none(stmt)

    async def set_preference(self, user_id: str, key: str, value: Any) -> UserPreference:
        existing = await self.get_preference(user_id, key)
        if existing is None:
            return await self.insert(UserPreference(user_id=user_id, key=key, value=value))
        existing.value = value
        # JSON columns are not mutation-tracked
        flag_modified(existing, "value")
        existing.updated_at = utcnow()
        await self.commit()
        return existing

    async def delete_preference(self, user_id: str, key: str) -> bool:
        stmt = delete(UserPreference).where(UserPreference.user_id == user_id, UserPreference.key == key)
        result = await self.execute(stmt)
        await self.commit()
        return (result.rowcount or 0) > 0

    async def get_calendar_month(self, calendar: str, scope: str, year: int, month: int) -> Optional[CalendarMonth]:
        stmt = select(CalendarMonth).where(
            CalendarMonth.calendar == calendar,
            CalendarMonth.scope == scope,
            CalendarMonth.year == year,
            CalendarMonth.month == month,
        )
        return await self.scalar_one_or_none(stmt)

    async def save_calendar_month(
        self,
        calendar: str,
        scope: str,
        year: int,
        month: int,
        days: Dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> CalendarMonth:
        existing = await self.get_calendar_month(calendar, scope, year, month)
        if existing is None:
            entity = CalendarMonth(
                calendar=calendar, scope=scope, year=year, month=month, days=dict(days), updated_by=updated_by
            )
            return await self.insert(entity)
        existing.days = dict(days)
        flag_modified(existing, "days")
        existing.updated_by = updated_by
        existing.updated_at = utcnow()
        await self.commit()
        return existing

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from factory_kpi.db.models.kpi import ActionItem, KpiData
from .base import BaseRepository
from .interfaces import ActionRepository, KpiRepository


class SqlKpiRepository(BaseRepository, KpiRepository):
    """SQL adapter for department KPI records."""

    async def list_kpi(
        self,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[KpiData]:
        stmt = select(KpiData).order_by(KpiData.created_at.desc())
        if department:
            stmt = stmt.where(KpiData.department == department)
        if start:
            stmt = stmt.where(KpiData.created_at >= start)
        if end:
            stmt = stmt.where(KpiData.created_at <= end)
        result = await self.scalars(stmt)
        return list(result)

    async def get_kpi(self, kpi_id: str) -> Optional[KpiData]:
        return await self.get_by_id(KpiData, kpi_id)

    async def latest_kpi(self, department: str) -> Optional[KpiData]:
        stmt = (
            select(KpiData)
            .where(KpiData.department == department)
            .order_by(KpiData.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(stmt)

    async def create_kpi(self, kpi: KpiData) -> KpiData:
        return await self.insert(kpi)

    async def update_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[KpiData]:
        return await self.update_by_id(KpiData, kpi_id, values)


class SqlActionRepository(BaseRepository, ActionRepository):
    """SQL adapter for action items."""

    async def list_actions(
        self,
        department: Optional[str] = None,
        status: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> List[ActionItem]:
        stmt = select(ActionItem).order_by(ActionItem.created_at.desc())
        if department:
            stmt = stmt.where(ActionItem.department == department)
        if status:
            stmt = stmt.where(ActionItem.status == status)
        if assignee_id:
            stmt = stmt.where(ActionItem.assignee_id == assignee_id)
        result = await self.scalars(stmt)
        return list(result)

    async def get_action(self, action_id: str) -> Optional[ActionItem]:
        return await self.get_by_id(ActionItem, action_id)

    async def create_action(self, action: ActionItem) -> ActionItem:
        return await self.insert(action)

    async def update_action(self, action_id: str, values: Dict[str, Any]) -> Optional[ActionItem]:
        return await self.update_by_id(ActionItem, action_id, values)

    async def delete_action(self, action_id: str) -> bool:
        return await self.delete_by_id(ActionItem, action_id)

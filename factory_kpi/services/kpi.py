from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status

from factory_kpi.db.models import ActionItem, KpiData, User
from factory_kpi.schemas.kpi import ActionCreate, ActionRead, ActionUpdate, KpiCreate, KpiUpdate, LatestKpi
from factory_kpi.services.base import BaseService, drop_nulls

logger = logging.getLogger(__name__)

DASHBOARD_DEPARTMENTS = ("Safety", "Quality", "Production", "Logistics")
UNKNOWN_USER = "Unknown"


def compute_percentage(value: Optional[float], target: Optional[float]) -> Optional[float]:
    """value / target * 100 rounded to 2 places; None unless both are known and target > 0."""
    if value is None or target is None or target <= 0:
        return None
    return round(value / target * 100, 2)


class KpiService(BaseService):
    """Department KPI values."""

    async def list_kpi(
        self,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[KpiData]:
        return await self.storage.kpi.list_kpi(department=department, start=start, end=end)

    # PUBLIC_INTERFACE
    async def create_kpi(self, payload: KpiCreate, actor: User) -> KpiData:
        """Record a KPI value; percentage is derived from value and target."""
        kpi = KpiData(
            department=payload.department,
            value=payload.value,
            target=payload.target,
            percentage=compute_percentage(payload.value, payload.target),
            details=payload.details,
            month=payload.month,
            year=payload.year,
            updated_by=actor.id,
        )
        created = await self.storage.kpi.create_kpi(kpi)
        await self._log_activity(actor.id, "update_kpi", f"KPI recorded for {created.department}")
        return created

    # PUBLIC_INTERFACE
    async def update_kpi(self, kpi_id: str, payload: KpiUpdate, actor: User) -> KpiData:
        existing = await self.storage.kpi.get_kpi(kpi_id)
        if existing is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="KPI not found")
        values = drop_nulls(payload.model_dump(exclude_unset=True), "department")
        value = values.get("value", existing.value)
        target = values.get("target", existing.target)
        values["percentage"] = compute_percentage(value, target)
        values["updated_by"] = actor.id
        updated = await self.storage.kpi.update_kpi(kpi_id, values)
        await self._log_activity(actor.id, "update_kpi", f"KPI updated for {updated.department}")
        return updated

    # PUBLIC_INTERFACE
    async def latest(self) -> List[LatestKpi]:
        """Latest value of each dashboard department; nothing is invented for empty ones."""
        result = []
        for department in DASHBOARD_DEPARTMENTS:
            kpi = await self.storage.kpi.latest_kpi(department)
            if kpi is None:
                result.append(LatestKpi(department=department, has_data=False))
                continue
            result.append(
                LatestKpi(
                    department=department,
                    has_data=True,
                    id=kpi.id,
                    value=kpi.value,
                    target=kpi.target,
                    percentage=kpi.percentage,
                    month=kpi.month,
                    year=kpi.year,
                    updated_at=kpi.updated_at,
                )
            )
        return result


class ActionService(BaseService):
    """Action items raised against departments."""

    async def _read(self, action: ActionItem, names: dict) -> ActionRead:
        read = ActionRead.model_validate(action)
        read.assignee_name = names.get(action.assignee_id, UNKNOWN_USER) if action.assignee_id else None
        read.created_by_name = names.get(action.created_by, UNKNOWN_USER) if action.created_by else UNKNOWN_USER
        return read

    # PUBLIC_INTERFACE
    async def list_actions(
        self,
        department: Optional[str] = None,
        status_filter: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> List[ActionRead]:
        names = await self.storage.users.get_user_names()
        rows = await self.storage.actions.list_actions(
            department=department, status=status_filter, assignee_id=assignee_id
        )
        return [await self._read(a, names) for a in rows]

    # PUBLIC_INTERFACE
    async def create_action(self, payload: ActionCreate, actor: User) -> ActionRead:
        action = ActionItem(**payload.model_dump(), created_by=actor.id)
        created = await self.storage.actions.create_action(action)
        await self._log_activity(actor.id, "create_action", f"Action created: {created.title}")
        return await self._read(created, await self.storage.users.get_user_names())

    # PUBLIC_INTERFACE
    async def update_action(self, action_id: str, payload: ActionUpdate, actor: User) -> ActionRead:
        updated = await self.storage.actions.update_action(
            action_id,
            drop_nulls(payload.model_dump(exclude_unset=True), "title", "department", "priority", "status"),
        )
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
        await self._log_activity(actor.id, "update_action", f"Action updated: {updated.title}")
        return await self._read(updated, await self.storage.users.get_user_names())

    # PUBLIC_INTERFACE
    async def delete_action(self, action_id: str, actor: User) -> None:
        action = await self.storage.actions.get_action(action_id)
        if action is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
        await self.storage.actions.delete_action(action_id)
        await self._log_activity(actor.id, "delete_action", f"Action deleted: {action.title}")

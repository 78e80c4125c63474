from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from factory_kpi.core.deps import get_current_user, get_storage
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.common import SuccessResponse, UtcDateTime
from factory_kpi.schemas.kpi import (
    ActionCreate,
    ActionRead,
    ActionUpdate,
    ActivityRead,
    KpiCreate,
    KpiRead,
    KpiUpdate,
    LatestKpi,
)
from factory_kpi.services.kpi import ActionService, KpiService
from factory_kpi.services.users import UserService

router = APIRouter(prefix="/kpi", tags=["KPI"])
actions_router = APIRouter(prefix="/actions", tags=["Actions"])
activity_router = APIRouter(prefix="/activity", tags=["Activity"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[KpiRead],
    summary="List KPI values",
    description="Newest first. startDate/endDate bound the creation time inclusively.",
)
async def list_kpi(
    department: Optional[str] = Query(None),
    start_date: Optional[UtcDateTime] = Query(None, alias="startDate"),
    end_date: Optional[UtcDateTime] = Query(None, alias="endDate"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[KpiRead]:
    rows = await KpiService(storage).list_kpi(department=department, start=start_date, end=end_date)
    return [KpiRead.model_validate(k) for k in rows]


# PUBLIC_INTERFACE
@router.get(
    "/latest",
    response_model=List[LatestKpi],
    summary="Latest KPI per department",
    description="One entry for each of Safety, Quality, Production and Logistics; hasData=false when empty.",
)
async def latest_kpi(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[LatestKpi]:
    return await KpiService(storage).latest()


# PUBLIC_INTERFACE
@router.post("", response_model=KpiRead, summary="Record KPI value")
async def create_kpi(
    payload: KpiCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> KpiRead:
    return KpiRead.model_validate(await KpiService(storage).create_kpi(payload, user))


# PUBLIC_INTERFACE
@router.put("/{kpi_id}", response_model=KpiRead, summary="Update KPI value")
async def update_kpi(
    payload: KpiUpdate,
    kpi_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> KpiRead:
    return KpiRead.model_validate(await KpiService(storage).update_kpi(kpi_id, payload, user))


# PUBLIC_INTERFACE
@actions_router.get("", response_model=List[ActionRead], summary="List action items")
async def list_actions(
    department: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None, alias="assigneeId"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[ActionRead]:
    return await ActionService(storage).list_actions(department, status, assignee_id)


# PUBLIC_INTERFACE
@actions_router.post("", response_model=ActionRead, summary="Create action item")
async def create_action(
    payload: ActionCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ActionRead:
    return await ActionService(storage).create_action(payload, user)


# PUBLIC_INTERFACE
@actions_router.put("/{action_id}", response_model=ActionRead, summary="Update action item")
async def update_action(
    payload: ActionUpdate,
    action_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ActionRead:
    return await ActionService(storage).update_action(action_id, payload, user)


# PUBLIC_INTERFACE
@actions_router.delete("/{action_id}", response_model=SuccessResponse, summary="Delete action item")
async def delete_action(
    action_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await ActionService(storage).delete_action(action_id, user)
    return SuccessResponse(message="Action deleted")


# PUBLIC_INTERFACE
@activity_router.get("", response_model=List[ActivityRead], summary="Activity log")
async def list_activity(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[ActivityRead]:
    return await UserService(storage).list_activity(user_id=user_id, limit=limit)

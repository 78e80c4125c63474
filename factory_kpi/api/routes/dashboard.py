from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from factory_kpi.core.deps import get_current_user, get_storage
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.dashboard import (
    CalendarDayValue,
    CalendarMonthRead,
    CalendarName,
    ContainerSize,
    LayoutRead,
    LayoutSave,
    PreferenceRead,
    PreferenceWrite,
    WidgetAdd,
    WidgetPatch,
)
from factory_kpi.services.dashboard import CalendarService, DashboardService

router = APIRouter(prefix="/dashboard/layout", tags=["Dashboard"])
preferences_router = APIRouter(prefix="/preferences", tags=["Dashboard"])
calendars_router = APIRouter(prefix="/calendars", tags=["Calendars"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=LayoutRead,
    summary="Dashboard layout",
    description="Saved layout merged over the default widgets; the defaults when nothing was saved.",
)
async def get_layout(
    container_width: Optional[float] = Query(None, gt=0, alias="containerWidth"),
    container_height: Optional[float] = Query(None, gt=0, alias="containerHeight"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    size = ContainerSize(container_width=container_width, container_height=container_height)
    return await DashboardService(storage).get_layout(user, size)


# PUBLIC_INTERFACE
@router.put("", response_model=LayoutRead, summary="Save dashboard layout")
async def save_layout(
    payload: LayoutSave,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).save_layout(user, payload)


# PUBLIC_INTERFACE
@router.delete("", response_model=LayoutRead, summary="Reset dashboard layout to the defaults")
async def reset_layout(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).reset_layout(user)


# PUBLIC_INTERFACE
@router.post(
    "/undo",
    response_model=LayoutRead,
    summary="Undo last layout save",
    description="Restores the previously saved layout; 400 when there is none.",
)
async def undo_layout(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).undo_layout(user)


# PUBLIC_INTERFACE
@router.post("/widgets", response_model=LayoutRead, summary="Add widget")
async def add_widget(
    payload: WidgetAdd,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).add_widget(user, payload.type)


# PUBLIC_INTERFACE
@router.patch(
    "/widgets/{widget_id}",
    response_model=LayoutRead,
    summary="Move, resize, maximize or hide a widget",
    description="Positions are clamped into the container; sizes never drop below the widget minimum.",
)
async def patch_widget(
    payload: WidgetPatch,
    widget_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).patch_widget(user, widget_id, payload)


# PUBLIC_INTERFACE
@router.delete("/widgets/{widget_id}", response_model=LayoutRead, summary="Remove widget")
async def remove_widget(
    widget_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> LayoutRead:
    return await DashboardService(storage).remove_widget(user, widget_id)


# PUBLIC_INTERFACE
@preferences_router.get("/{key}", response_model=PreferenceRead, summary="Read preference")
async def get_preference(
    key: str = Path(..., min_length=1, max_length=100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> PreferenceRead:
    return await DashboardService(storage).get_preference(user, key)


# PUBLIC_INTERFACE
@preferences_router.put("/{key}", response_model=PreferenceRead, summary="Store preference")
async def put_preference(
    payload: PreferenceWrite,
    key: str = Path(..., min_length=1, max_length=100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> PreferenceRead:
    return await DashboardService(storage).set_preference(user, key, payload.value)


# PUBLIC_INTERFACE
@calendars_router.get(
    "/{calendar}/{year}/{month}",
    response_model=CalendarMonthRead,
    summary="Calendar month",
    description="Day statuses (or production efficiency values) with a monthly summary.",
)
async def get_calendar_month(
    calendar: CalendarName,
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    scope: str = Query("", max_length=100, description="Production line or other sub-calendar"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> CalendarMonthRead:
    return await CalendarService(storage).get_month(calendar, year, month, scope)


# PUBLIC_INTERFACE
@calendars_router.post(
    "/{calendar}/{year}/{month}/days/{day}/toggle",
    response_model=CalendarMonthRead,
    summary="Toggle day status",
    description="safe/incident, satisfied/dissatisfied or freight/none. Future days of safety and quality are rejected.",
)
async def toggle_calendar_day(
    calendar: CalendarName,
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    day: int = Path(..., ge=1, le=31),
    scope: str = Query("", max_length=100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> CalendarMonthRead:
    return await CalendarService(storage).toggle_day(calendar, year, month, day, user, scope)


# PUBLIC_INTERFACE
@calendars_router.put(
    "/{calendar}/{year}/{month}/days/{day}",
    response_model=CalendarMonthRead,
    summary="Set production efficiency for a day",
)
async def set_calendar_day_value(
    payload: CalendarDayValue,
    calendar: CalendarName,
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    day: int = Path(..., ge=1, le=31),
    scope: str = Query("", max_length=100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> CalendarMonthRead:
    return await CalendarService(storage).set_day_value(calendar, year, month, day, payload.value, user, scope)

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from factory_kpi.core.deps import get_current_user, get_storage, require_admin
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.common import SuccessResponse
from factory_kpi.schemas.stations import (
    StationCreate,
    StationDataCreate,
    StationDataRead,
    StationDataUpdate,
    StationKpiCreate,
    StationKpiRead,
    StationKpiUpdate,
    StationRead,
    StationSummary,
    StationUpdate,
)
from factory_kpi.services.stations import StationService

admin_router = APIRouter(prefix="/admin/production-stations", tags=["Stations"])
data_router = APIRouter(prefix="/station-data", tags=["Stations"])
kpi_router = APIRouter(prefix="/station-kpis", tags=["Stations"])
summary_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# PUBLIC_INTERFACE
@admin_router.get("", response_model=List[StationRead], summary="List production stations")
async def list_stations(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> List[StationRead]:
    return [StationRead.model_validate(s) for s in await StationService(storage).list_stations()]


# PUBLIC_INTERFACE
@admin_router.post(
    "",
    response_model=StationRead,
    summary="Create production station",
    description="Station codes are unique; a duplicate code is rejected with 400.",
)
async def create_station(
    payload: StationCreate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> StationRead:
    return StationRead.model_validate(await StationService(storage).create_station(payload, admin))


# PUBLIC_INTERFACE
@admin_router.put("/{station_id}", response_model=StationRead, summary="Update production station")
async def update_station(
    payload: StationUpdate,
    station_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> StationRead:
    return StationRead.model_validate(await StationService(storage).update_station(station_id, payload, admin))


# PUBLIC_INTERFACE
@admin_router.delete(
    "/{station_id}",
    response_model=SuccessResponse,
    summary="Delete production station",
    description="Also deletes the station's data entries and KPIs.",
)
async def delete_station(
    station_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await StationService(storage).delete_station(station_id, admin)
    return SuccessResponse(message="Station deleted")


# PUBLIC_INTERFACE
@data_router.get("", response_model=List[StationDataRead], summary="List station data entries")
async def list_station_data(
    station_id: Optional[str] = Query(None, alias="stationId"),
    data_type: Optional[str] = Query(None, alias="dataType"),
    on_date: Optional[dt.date] = Query(None, alias="date"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[StationDataRead]:
    return await StationService(storage).list_entries(
        station_id=station_id, data_type=data_type, on_date=on_date, month=month, year=year
    )


# PUBLIC_INTERFACE
@data_router.post("", response_model=StationDataRead, summary="Record station data entry")
async def create_station_data(
    payload: StationDataCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> StationDataRead:
    return await StationService(storage).create_entry(payload, user)


# PUBLIC_INTERFACE
@data_router.put("/{entry_id}", response_model=StationDataRead, summary="Update station data entry")
async def update_station_data(
    payload: StationDataUpdate,
    entry_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> StationDataRead:
    return await StationService(storage).update_entry(entry_id, payload, user)


# PUBLIC_INTERFACE
@data_router.delete("/{entry_id}", response_model=SuccessResponse, summary="Delete station data entry")
async def delete_station_data(
    entry_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await StationService(storage).delete_entry(entry_id, user)
    return SuccessResponse(message="Station data entry deleted")


# PUBLIC_INTERFACE
@kpi_router.get("", response_model=List[StationKpiRead], summary="List station KPIs")
async def list_station_kpis(
    station_id: Optional[str] = Query(None, alias="stationId"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[StationKpiRead]:
    return [StationKpiRead.model_validate(k) for k in await StationService(storage).list_station_kpis(station_id)]


# PUBLIC_INTERFACE
@kpi_router.post(
    "",
    response_model=StationKpiRead,
    summary="Create station KPI",
    description="Returns the existing KPI when the station already has one for the category.",
)
async def create_station_kpi(
    payload: StationKpiCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> StationKpiRead:
    return StationKpiRead.model_validate(await StationService(storage).create_station_kpi(payload, user))


# PUBLIC_INTERFACE
@kpi_router.put("/{kpi_id}", response_model=StationKpiRead, summary="Update station KPI")
async def update_station_kpi(
    payload: StationKpiUpdate,
    kpi_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> StationKpiRead:
    return StationKpiRead.model_validate(await StationService(storage).update_station_kpi(kpi_id, payload, user))


# PUBLIC_INTERFACE
@kpi_router.delete("/{kpi_id}", response_model=SuccessResponse, summary="Delete station KPI")
async def delete_station_kpi(
    kpi_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await StationService(storage).delete_station_kpi(kpi_id, user)
    return SuccessResponse(message="Station KPI deleted")


# PUBLIC_INTERFACE
@summary_router.get(
    "/station-summary",
    response_model=List[StationSummary],
    summary="Monthly station summary",
    description="Entries of one month (default: current) grouped by station code and data type.",
)
async def station_summary(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[StationSummary]:
    return await StationService(storage).station_summary(month=month, year=year)

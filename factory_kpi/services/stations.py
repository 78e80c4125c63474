from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import HTTPException, status

from factory_kpi.db.base import utcnow
from factory_kpi.db.models import ProductionStation, StationDataEntry, StationKpi, User
from factory_kpi.schemas.stations import (
    StationCreate,
    StationDataCreate,
    StationDataRead,
    StationDataUpdate,
    StationEvent,
    StationKpiCreate,
    StationKpiUpdate,
    StationSummary,
    StationUpdate,
)
from factory_kpi.services.base import BaseService, drop_nulls

logger = logging.getLogger(__name__)

CLOSED_ENTRY_STATUSES = ("resolved", "closed")


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


class StationService(BaseService):
    """Production stations, their daily data entries and station KPIs."""

    # Stations

    async def list_stations(self) -> List[ProductionStation]:
        return await self.storage.stations.list_stations()

    async def _ensure_unique_code(self, code: str, station_id: Optional[str] = None) -> None:
        other = await self.storage.stations.get_station_by_code(code)
        if other and other.id != station_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Station code already exists")

    # PUBLIC_INTERFACE
    async def create_station(self, payload: StationCreate, actor: User) -> ProductionStation:
        code = payload.code.strip()
        await self._ensure_unique_code(code)
        station = ProductionStation(**payload.model_dump(exclude={"code"}), code=code)
        created = await self.storage.stations.create_station(station)
        await self._log_activity(actor.id, "create_station", f"Station created: {created.code}")
        return created

    # PUBLIC_INTERFACE
    async def update_station(self, station_id: str, payload: StationUpdate, actor: User) -> ProductionStation:
        values = drop_nulls(payload.model_dump(exclude_unset=True), "name", "code", "is_active")
        if "code" in values:
            values["code"] = values["code"].strip()
            await self._ensure_unique_code(values["code"], station_id)
        updated = await self.storage.stations.update_station(station_id, values)
        if updated is None:
            raise _not_found("Station")
        await self._log_activity(actor.id, "update_station", f"Station updated: {updated.code}")
        return updated

    # PUBLIC_INTERFACE
    async def delete_station(self, station_id: str, actor: User) -> None:
        """Delete a station together with its data entries and KPIs."""
        station = await self.storage.stations.get_station(station_id)
        if station is None:
            raise _not_found("Station")
        await self.storage.stations.delete_station(station_id)
        await self._log_activity(actor.id, "delete_station", f"Station deleted: {station.code}")

    # Data entries

    async def _entry_reads(self, entries: List[StationDataEntry]) -> List[StationDataRead]:
        stations = {s.id: s for s in await self.storage.stations.list_stations()}
        names = await self.storage.users.get_user_names()
        reads = []
        for entry in entries:
            read = StationDataRead.model_validate(entry)
            station = stations.get(entry.station_id)
            read.station_name = station.name if station else None
            read.station_code = station.code if station else None
            read.reported_by_name = names.get(entry.reported_by) if entry.reported_by else None
            read.assigned_to_name = names.get(entry.assigned_to) if entry.assigned_to else None
            reads.append(read)
        return reads

    # PUBLIC_INTERFACE
    async def list_entries(
        self,
        station_id: Optional[str] = None,
        data_type: Optional[str] = None,
        on_date: Optional[date] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[StationDataRead]:
        entries = await self.storage.stations.list_entries(
            station_id=station_id, data_type=data_type, on_date=on_date, month=month, year=year
        )
        return await self._entry_reads(entries)

    async def _require_station(self, station_id: str) -> ProductionStation:
        station = await self.storage.stations.get_station(station_id)
        if station is None:
            raise _not_found("Station")
        return station

    # PUBLIC_INTERFACE
    async def create_entry(self, payload: StationDataCreate, actor: User) -> StationDataRead:
        """Record a station event; `day` is taken from the entry date."""
        station = await self._require_station(payload.station_id)
        entry = StationDataEntry(
            **payload.model_dump(),
            day=payload.date.day,
            reported_by=actor.id,
            resolved_at=utcnow() if payload.status in CLOSED_ENTRY_STATUSES else None,
        )
        created = await self.storage.stations.create_entry(entry)
        await self._log_activity(
            actor.id, "create_station_data", f"{created.data_type} entry for {station.code} on {created.date}"
        )
        return (await self._entry_reads([created]))[0]

    # PUBLIC_INTERFACE
    async def update_entry(self, entry_id: str, payload: StationDataUpdate, actor: User) -> StationDataRead:
        existing = await self.storage.stations.get_entry(entry_id)
        if existing is None:
            raise _not_found("Station data entry")
        values = drop_nulls(
            payload.model_dump(exclude_unset=True),
            "station_id", "date", "data_type", "event_type", "severity", "status",
        )
        if "station_id" in values:
            await self._require_station(values["station_id"])
        if "date" in values:
            values["day"] = values["date"].day
        new_status = values.get("status")
        if new_status in CLOSED_ENTRY_STATUSES and existing.resolved_at is None and "resolved_at" not in values:
            values["resolved_at"] = utcnow()
        elif new_status == "active" and "resolved_at" not in values:
            values["resolved_at"] = None
        updated = await self.storage.stations.update_entry(entry_id, values)
        await self._log_activity(actor.id, "update_station_data", f"Station data entry {entry_id} updated")
        return (await self._entry_reads([updated]))[0]

    # PUBLIC_INTERFACE
    async def delete_entry(self, entry_id: str, actor: User) -> None:
        if not await self.storage.stations.delete_entry(entry_id):
            raise _not_found("Station data entry")
        await self._log_activity(actor.id, "delete_station_data", f"Station data entry {entry_id} deleted")

    # Station KPIs

    async def list_station_kpis(self, station_id: Optional[str] = None) -> List[StationKpi]:
        return await self.storage.stations.list_station_kpis(station_id)

    # PUBLIC_INTERFACE
    async def create_station_kpi(self, payload: StationKpiCreate, actor: User) -> StationKpi:
        """Create a station KPI; an existing KPI of the same station and category is returned as is."""
        await self._require_station(payload.station_id)
        existing = await self.storage.stations.get_station_kpi_by_category(payload.station_id, payload.category)
        if existing is not None:
            return existing
        kpi = StationKpi(**payload.model_dump(), updated_by=actor.id)
        created = await self.storage.stations.create_station_kpi(kpi)
        await self._log_activity(actor.id, "create_station_kpi", f"Station KPI created: {created.title}")
        return created

    # PUBLIC_INTERFACE
    async def update_station_kpi(self, kpi_id: str, payload: StationKpiUpdate, actor: User) -> StationKpi:
        values = drop_nulls(payload.model_dump(exclude_unset=True), "title", "unit")
        values["updated_by"] = actor.id
        updated = await self.storage.stations.update_station_kpi(kpi_id, values)
        if updated is None:
            raise _not_found("Station KPI")
        await self._log_activity(actor.id, "update_station_kpi", f"Station KPI updated: {updated.title}")
        return updated

    # PUBLIC_INTERFACE
    async def delete_station_kpi(self, kpi_id: str, actor: User) -> None:
        if not await self.storage.stations.delete_station_kpi(kpi_id):
            raise _not_found("Station KPI")
        await self._log_activity(actor.id, "delete_station_kpi", f"Station KPI {kpi_id} deleted")

    # Dashboard

    # PUBLIC_INTERFACE
    async def station_summary(self, month: Optional[int] = None, year: Optional[int] = None) -> List[StationSummary]:
        """Entries of one month (default: the current one) grouped by station code and data type."""
        today = date.today()
        entries = await self.list_entries(month=month or today.month, year=year or today.year)
        groups: Dict[str, StationSummary] = {}
        for entry in entries:
            key = f"{entry.station_code}-{entry.data_type}"
            if key not in groups:
                groups[key] = StationSummary(
                    station_name=entry.station_name,
                    station_code=entry.station_code,
                    data_type=entry.data_type,
                )
            groups[key].events.append(
                StationEvent(
                    id=entry.id,
                    day=entry.day,
                    description=entry.description,
                    severity=entry.severity,
                    status=entry.status,
                    created_at=entry.created_at,
                )
            )
        return list(groups.values())

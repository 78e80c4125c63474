from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, extract, select

from factory_kpi.db.models.stations import ProductionStation, StationDataEntry, StationKpi
from .base import BaseRepository
from .interfaces import StationRepository


class SqlStationRepository(BaseRepository, StationRepository):
    """SQL adapter for stations, station data entries and station KPIs."""

    # Stations
    async def list_stations(self) -> List[ProductionStation]:
        stmt = select(ProductionStation).order_by(ProductionStation.code)
        result = await self.scalars(stmt)
        return list(result)

    async def get_station(self, station_id: str) -> Optional[ProductionStation]:
        return await self.get_by_id(ProductionStation, station_id)

    async def get_station_by_code(self, code: str) -> Optional[ProductionStation]:
        stmt = select(ProductionStation).where(ProductionStation.code == code)
        return await self.scalar_one_or_none(stmt)

    async def create_station(self, station: ProductionStation) -> ProductionStation:
        return await self.insert(station)

    async def update_station(self, station_id: str, values: Dict[str, Any]) -> Optional[ProductionStation]:
        return await self.update_by_id(ProductionStation, station_id, values)

    async def delete_station(self, station_id: str) -> bool:
        # Children first; SQLite does not enforce ON DELETE CASCADE by default.
        await self.execute(delete(StationKpi).where(StationKpi.station_id == station_id))
        await self.execute(delete(StationDataEntry).where(StationDataEntry.station_id == station_id))
        return await self.delete_by_id(ProductionStation, station_id)

    # Data entries
    async def list_entries(
        self,
        station_id: Optional[str] = None,
        data_type: Optional[str] = None,
        on_date: Optional[date] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[StationDataEntry]:
        stmt = select(StationDataEntry).order_by(
            StationDataEntry.date.desc(), StationDataEntry.created_at.desc()
        )
        if station_id:
            stmt = stmt.where(StationDataEntry.station_id == station_id)
        if data_type:
            stmt = stmt.where(StationDataEntry.data_type == data_type)
        if on_date:
            stmt = stmt.where(StationDataEntry.date == on_date)
        if month:
            stmt = stmt.where(extract("month", StationDataEntry.date) == month)
        if year:
            stmt = stmt.where(extract("year", StationDataEntry.date) == year)
        result = await self.scalars(stmt)
        return list(result)

    async def get_entry(self, entry_id: str) -> Optional[StationDataEntry]:
        return await self.get_by_id(StationDataEntry, entry_id)

    async def create_entry(self, entry: StationDataEntry) -> StationDataEntry:
        return await self.insert(entry)

    async def update_entry(self, entry_id: str, values: Dict[str, Any]) -> Optional[StationDataEntry]:
        return await self.update_by_id(StationDataEntry, entry_id, values)

    async def delete_entry(self, entry_id: str) -> bool:
        return await self.delete_by_id(StationDataEntry, entry_id)

    # Station KPIs
    async def list_station_kpis(self, station_id: Optional[str] = None) -> List[StationKpi]:
        stmt = select(StationKpi).order_by(StationKpi.station_id, StationKpi.category)
        if station_id:
            stmt = stmt.where(StationKpi.station_id == station_id)
        result = await self.scalars(stmt)
        return list(result)

    async def get_station_kpi(self, kpi_id: str) -> Optional[StationKpi]:
        return await self.get_by_id(StationKpi, kpi_id)

    async def get_station_kpi_by_category(self, station_id: str, category: str) -> Optional[StationKpi]:
        stmt = select(StationKpi).where(
            StationKpi.station_id == station_id, StationKpi.category == category
        )
        return await self.scalar_one_or_none(stmt)

    async def create_station_kpi(self, kpi: StationKpi) -> StationKpi:
        return await self.insert(kpi)

    async def update_station_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[StationKpi]:
        return await self.update_by_id(StationKpi, kpi_id, values)

    async def delete_station_kpi(self, kpi_id: str) -> bool:
        return await self.delete_by_id(StationKpi, kpi_id)

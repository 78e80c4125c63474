"""
In-process adapters for the repository interfaces.

Rows are transient ORM instances kept in per-table lists, so both adapters hand
the same model classes to services. Column defaults declared on the models
(ids, timestamps, flags) are applied here the way a flush would apply them.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from sqlalchemy import inspect

from factory_kpi.db.base import Base
from factory_kpi.db.models import (
    ActionItem,
    ActivityLog,
    CalendarMonth,
    ClaimAttachment,
    ClaimComment,
    ClaimWorkflow,
    CustomerClaim,
    Department,
    KpiData,
    ProductionStation,
    StationDataEntry,
    StationKpi,
    User,
    UserPreference,
)
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

ModelT = TypeVar("ModelT", bound=Base)


def _default_value(default) -> Any:
    return default.arg(None) if default.is_callable else default.arg


def _apply_defaults(entity: Base, *, on_update: bool = False, skip: tuple = ()) -> None:
    """Fill column defaults (insert) or onupdate values (update) the way a flush would."""
    for prop in inspect(type(entity)).column_attrs:
        if prop.key in skip:
            continue
        column = prop.columns[0]
        default = column.onupdate if on_update else column.default
        if default is None:
            continue
        if on_update or getattr(entity, prop.key) is None:
            setattr(entity, prop.key, _default_value(default))


class MemoryDatabase:
    """Table name -> list of rows. One instance lives for the whole process."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Any]] = defaultdict(list)

    def table(self, model: Type[ModelT]) -> List[ModelT]:
        return self.tables[model.__tablename__]

    def clear(self) -> None:
        self.tables.clear()


class MemoryRepository:
    """Base class for memory adapters, mirroring the SQL BaseRepository helpers."""

    def __init__(self, db: MemoryDatabase) -> None:
        self.db = db

    def _rows(self, model: Type[ModelT]) -> List[ModelT]:
        return self.db.table(model)

    def _filter(self, model: Type[ModelT], predicate: Callable[[ModelT], bool]) -> List[ModelT]:
        return [row for row in self._rows(model) if predicate(row)]

    def _first(self, model: Type[ModelT], predicate: Callable[[ModelT], bool]) -> Optional[ModelT]:
        return next((row for row in self._rows(model) if predicate(row)), None)

    async def get_by_id(self, model: Type[ModelT], entity_id: str) -> Optional[ModelT]:
        return self._first(model, lambda row: row.id == entity_id)

    async def insert(self, entity: ModelT) -> ModelT:
        _apply_defaults(entity)
        self._rows(type(entity)).append(entity)
        return entity

    async def update_by_id(self, model: Type[ModelT], entity_id: str, values: Dict[str, Any]) -> Optional[ModelT]:
        entity = await self.get_by_id(model, entity_id)
        if entity is None or not values:
            return entity
        for key, value in values.items():
            setattr(entity, key, value)
        _apply_defaults(entity, on_update=True, skip=tuple(values))
        return entity

    async def delete_by_id(self, model: Type[ModelT], entity_id: str) -> bool:
        return self._delete_where(model, lambda row: row.id == entity_id) > 0

    def _delete_where(self, model: Type[ModelT], predicate: Callable[[ModelT], bool]) -> int:
        rows = self._rows(model)
        keep = [row for row in rows if not predicate(row)]
        removed = len(rows) - len(keep)
        rows[:] = keep
        return removed


def _newest_first(rows: List[ModelT], *attrs: str) -> List[ModelT]:
    def key(row):
        return tuple(getattr(row, attr) or datetime.min for attr in attrs)

    return sorted(rows, key=key, reverse=True)


class MemoryUserRepository(MemoryRepository, UserRepository):
    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.get_by_id(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return self._first(User, lambda u: u.username == username)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return self._first(User, lambda u: u.email == email)

    async def list_users(self) -> List[User]:
        return sorted(self._rows(User), key=lambda u: u.name or "")

    async def count_users(self) -> int:
        return len(self._rows(User))

    async def create_user(self, user: User) -> User:
        return await self.insert(user)

    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[User]:
        return await self.update_by_id(User, user_id, values)

    async def delete_user(self, user_id: str) -> bool:
        return await self.delete_by_id(User, user_id)


class MemoryDepartmentRepository(MemoryRepository, DepartmentRepository):
    async def list_departments(self) -> List[Department]:
        return sorted(self._rows(Department), key=lambda d: d.name or "")

    async def get_department(self, department_id: str) -> Optional[Department]:
        return await self.get_by_id(Department, department_id)

    async def get_department_by_name(self, name: str) -> Optional[Department]:
        return self._first(Department, lambda d: d.name == name)

    async def create_department(self, department: Department) -> Department:
        return await self.insert(department)

    async def update_department(self, department_id: str, values: Dict[str, Any]) -> Optional[Department]:
        return await self.update_by_id(Department, department_id, values)

    async def delete_department(self, department_id: str) -> bool:
        return await self.delete_by_id(Department, department_id)


class MemoryActivityRepository(MemoryRepository, ActivityRepository):
    async def add_activity(self, entry: ActivityLog) -> ActivityLog:
        return await self.insert(entry)

    async def list_activity(self, user_id: Optional[str] = None, limit: int = 50) -> List[ActivityLog]:
        rows = self._filter(ActivityLog, lambda a: not user_id or a.user_id == user_id)
        # Insertion order breaks timestamp ties.
        ordered = [row for _, row in sorted(enumerate(rows), key=lambda p: (p[1].timestamp, p[0]), reverse=True)]
        return ordered[:limit]


class MemoryKpiRepository(MemoryRepository, KpiRepository):
    async def list_kpi(
        self,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[KpiData]:
        def match(k: KpiData) -> bool:
            if department and k.department != department:
                return False
            if start and k.created_at < start:
                return False
            if end and k.created_at > end:
                return False
            return True

        return _newest_first(self._filter(KpiData, match), "created_at")

    async def get_kpi(self, kpi_id: str) -> Optional[KpiData]:
        return await self.get_by_id(KpiData, kpi_id)

    async def latest_kpi(self, department: str) -> Optional[KpiData]:
        rows = [k for k in self._rows(KpiData) if k.department == department]
        # Later inserts win ties on created_at.
        return max(reversed(rows), key=lambda k: k.created_at, default=None)

    async def create_kpi(self, kpi: KpiData) -> KpiData:
        return await self.insert(kpi)

    async def update_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[KpiData]:
        return await self.update_by_id(KpiData, kpi_id, values)


class MemoryActionRepository(MemoryRepository, ActionRepository):
    async def list_actions(
        self,
        department: Optional[str] = None,
        status: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> List[ActionItem]:
        def match(a: ActionItem) -> bool:
            return (
                (not department or a.department == department)
                and (not status or a.status == status)
                and (not assignee_id or a.assignee_id == assignee_id)
            )

        return _newest_first(self._filter(ActionItem, match), "created_at")

    async def get_action(self, action_id: str) -> Optional[ActionItem]:
        return await self.get_by_id(ActionItem, action_id)

    async def create_action(self, action: ActionItem) -> ActionItem:
        return await self.insert(action)

    async def update_action(self, action_id: str, values: Dict[str, Any]) -> Optional[ActionItem]:
        return await self.update_by_id(ActionItem, action_id, values)

    async def delete_action(self, action_id: str) -> bool:
        return await self.delete_by_id(ActionItem, action_id)


class MemoryStationRepository(MemoryRepository, StationRepository):
    # Stations
    async def list_stations(self) -> List[ProductionStation]:
        return sorted(self._rows(ProductionStation), key=lambda s: s.code or "")

    async def get_station(self, station_id: str) -> Optional[ProductionStation]:
        return await self.get_by_id(ProductionStation, station_id)

    async def get_station_by_code(self, code: str) -> Optional[ProductionStation]:
        return self._first(ProductionStation, lambda s: s.code == code)

    async def create_station(self, station: ProductionStation) -> ProductionStation:
        return await self.insert(station)

    async def update_station(self, station_id: str, values: Dict[str, Any]) -> Optional[ProductionStation]:
        return await self.update_by_id(ProductionStation, station_id, values)

    async def delete_station(self, station_id: str) -> bool:
        self._delete_where(StationKpi, lambda k: k.station_id == station_id)
        self._delete_where(StationDataEntry, lambda e: e.station_id == station_id)
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
        def match(e: StationDataEntry) -> bool:
            return (
                (not station_id or e.station_id == station_id)
                and (not data_type or e.data_type == data_type)
                and (not on_date or e.date == on_date)
                and (not month or e.date.month == month)
                and (not year or e.date.year == year)
            )

        rows = self._filter(StationDataEntry, match)
        return sorted(rows, key=lambda e: (e.date, e.created_at or datetime.min), reverse=True)

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
        rows = self._filter(StationKpi, lambda k: not station_id or k.station_id == station_id)
        return sorted(rows, key=lambda k: (k.station_id, k.category))

    async def get_station_kpi(self, kpi_id: str) -> Optional[StationKpi]:
        return await self.get_by_id(StationKpi, kpi_id)

    async def get_station_kpi_by_category(self, station_id: str, category: str) -> Optional[StationKpi]:
        return self._first(StationKpi, lambda k: k.station_id == station_id and k.category == category)

    async def create_station_kpi(self, kpi: StationKpi) -> StationKpi:
        return await self.insert(kpi)

    async def update_station_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[StationKpi]:
        return await self.update_by_id(StationKpi, kpi_id, values)

    async def delete_station_kpi(self, kpi_id: str) -> bool:
        return await self.delete_by_id(StationKpi, kpi_id)


class MemoryClaimRepository(MemoryRepository, ClaimRepository):
    async def list_claims(self, status: Optional[str] = None) -> List[CustomerClaim]:
        rows = self._filter(CustomerClaim, lambda c: not status or c.status == status)
        return _newest_first(rows, "claim_date", "created_at")

    async def get_claim(self, claim_id: str) -> Optional[CustomerClaim]:
        return await self.get_by_id(CustomerClaim, claim_id)

    async def get_claim_by_number(self, claim_no: str) -> Optional[CustomerClaim]:
        return self._first(CustomerClaim, lambda c: c.customer_claim_no == claim_no)

    async def create_claim(self, claim: CustomerClaim) -> CustomerClaim:
        return await self.insert(claim)

    async def update_claim(self, claim_id: str, values: Dict[str, Any]) -> Optional[CustomerClaim]:
        return await self.update_by_id(CustomerClaim, claim_id, values)

    async def list_comments(self, claim_id: str) -> List[ClaimComment]:
        return self._filter(ClaimComment, lambda c: c.claim_id == claim_id)

    async def add_comment(self, comment: ClaimComment) -> ClaimComment:
        return await self.insert(comment)

    async def list_workflow(self, claim_id: str) -> List[ClaimWorkflow]:
        return self._filter(ClaimWorkflow, lambda w: w.claim_id == claim_id)

    async def add_workflow(self, step: ClaimWorkflow) -> ClaimWorkflow:
        return await self.insert(step)

    async def list_attachments(self, claim_id: str) -> List[ClaimAttachment]:
        rows = self._filter(ClaimAttachment, lambda a: a.claim_id == claim_id)
        return list(reversed(rows))

    async def add_attachment(self, attachment: ClaimAttachment) -> ClaimAttachment:
        return await self.insert(attachment)


class MemoryDashboardRepository(MemoryRepository, DashboardRepository):
    async def get_preference(self, user_id: str, key: str) -> Optional[UserPreference]:
        return self._first(UserPreference, lambda p: p.user_id == user_id and p.key == key)

    async def set_preference(self, user_id: str, key: str, value: Any) -> UserPreference:
        existing = await self.get_preference(user_id, key)
        if existing is None:
            return await self.insert(UserPreference(user_id=user_id, key=key, value=value))
        return await self.update_by_id(UserPreference, existing.id, {"value": value})

    async def delete_preference(self, user_id: str, key: str) -> bool:
        return self._delete_where(UserPreference, lambda p: p.user_id == user_id and p.key == key) > 0

    async def get_calendar_month(self, calendar: str, scope: str, year: int, month: int) -> Optional[CalendarMonth]:
        return self._first(
            CalendarMonth,
            lambda c: c.calendar == calendar and c.scope == scope and c.year == year and c.month == month,
        )

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
        return await self.update_by_id(
            CalendarMonth, existing.id, {"days": dict(days), "updated_by": updated_by}
        )

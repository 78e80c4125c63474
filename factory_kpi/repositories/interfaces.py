"""
Storage-neutral repository interfaces.

Each interface has a SQL adapter (SQLAlchemy, one AsyncSession per request) and a
memory adapter (process-wide lists). Services only depend on these interfaces, so
the backend is chosen once at startup and applies to every entity alike.

Conventions shared by both adapters:
  - lookups return None (or False for deletes) when the row does not exist
  - create_* receives a transient ORM instance and returns it persisted, with
    column defaults (id, timestamps, flags) filled in
  - update_* receives a dict of attribute names to new values
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional

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


class UserRepository(ABC):
    """Users and credentials."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def list_users(self) -> List[User]: ...

    @abstractmethod
    async def count_users(self) -> int: ...

    @abstractmethod
    async def create_user(self, user: User) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[User]: ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool: ...

    async def get_user_names(self) -> Dict[str, str]:
        """Map of user id to display name, used to decorate list responses."""
        return {u.id: u.name for u in await self.list_users()}


class DepartmentRepository(ABC):
    @abstractmethod
    async def list_departments(self) -> List[Department]: ...

    @abstractmethod
    async def get_department(self, department_id: str) -> Optional[Department]: ...

    @abstractmethod
    async def get_department_by_name(self, name: str) -> Optional[Department]: ...

    @abstractmethod
    async def create_department(self, department: Department) -> Department: ...

    @abstractmethod
    async def update_department(self, department_id: str, values: Dict[str, Any]) -> Optional[Department]: ...

    @abstractmethod
    async def delete_department(self, department_id: str) -> bool: ...


class ActivityRepository(ABC):
    """Append-only audit trail."""

    @abstractmethod
    async def add_activity(self, entry: ActivityLog) -> ActivityLog: ...

    @abstractmethod
    async def list_activity(self, user_id: Optional[str] = None, limit: int = 50) -> List[ActivityLog]:
        """Newest first."""


class KpiRepository(ABC):
    @abstractmethod
    async def list_kpi(
        self,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[KpiData]:
        """Newest first; start/end bound created_at inclusively."""

    @abstractmethod
    async def get_kpi(self, kpi_id: str) -> Optional[KpiData]: ...

    @abstractmethod
    async def latest_kpi(self, department: str) -> Optional[KpiData]: ...

    @abstractmethod
    async def create_kpi(self, kpi: KpiData) -> KpiData: ...

    @abstractmethod
    async def update_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[KpiData]: ...


class ActionRepository(ABC):
    @abstractmethod
    async def list_actions(
        self,
        department: Optional[str] = None,
        status: Optional[str] = None,
        assignee_id: Optional[str] = None,
    ) -> List[ActionItem]: ...

    @abstractmethod
    async def get_action(self, action_id: str) -> Optional[ActionItem]: ...

    @abstractmethod
    async def create_action(self, action: ActionItem) -> ActionItem: ...

    @abstractmethod
    async def update_action(self, action_id: str, values: Dict[str, Any]) -> Optional[ActionItem]: ...

    @abstractmethod
    async def delete_action(self, action_id: str) -> bool: ...


class StationRepository(ABC):
    """Production stations with their data entries and station KPIs."""

    # Stations
    @abstractmethod
    async def list_stations(self) -> List[ProductionStation]: ...

    @abstractmethod
    async def get_station(self, station_id: str) -> Optional[ProductionStation]: ...

    @abstractmethod
    async def get_station_by_code(self, code: str) -> Optional[ProductionStation]: ...

    @abstractmethod
    async def create_station(self, station: ProductionStation) -> ProductionStation: ...

    @abstractmethod
    async def update_station(self, station_id: str, values: Dict[str, Any]) -> Optional[ProductionStation]: ...

    @abstractmethod
    async def delete_station(self, station_id: str) -> bool:
        """Also removes the station's data entries and KPIs."""

    # Data entries
    @abstractmethod
    async def list_entries(
        self,
        station_id: Optional[str] = None,
        data_type: Optional[str] = None,
        on_date: Optional[date] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[StationDataEntry]:
        """Ordered by date, newest first."""

    @abstractmethod
    async def get_entry(self, entry_id: str) -> Optional[StationDataEntry]: ...

    @abstractmethod
    async def create_entry(self, entry: StationDataEntry) -> StationDataEntry: ...

    @abstractmethod
    async def update_entry(self, entry_id: str, values: Dict[str, Any]) -> Optional[StationDataEntry]: ...

    @abstractmethod
    async def delete_entry(self, entry_id: str) -> bool: ...

    # Station KPIs
    @abstractmethod
    async def list_station_kpis(self, station_id: Optional[str] = None) -> List[StationKpi]: ...

    @abstractmethod
    async def get_station_kpi(self, kpi_id: str) -> Optional[StationKpi]: ...

    @abstractmethod
    async def get_station_kpi_by_category(self, station_id: str, category: str) -> Optional[StationKpi]: ...

    @abstractmethod
    async def create_station_kpi(self, kpi: StationKpi) -> StationKpi: ...

    @abstractmethod
    async def update_station_kpi(self, kpi_id: str, values: Dict[str, Any]) -> Optional[StationKpi]: ...

    @abstractmethod
    async def delete_station_kpi(self, kpi_id: str) -> bool: ...


class ClaimRepository(ABC):
    """Customer claims with comments, workflow history and attachments."""

    @abstractmethod
    async def list_claims(self, status: Optional[str] = None) -> List[CustomerClaim]:
        """Ordered by claim_date, newest first."""

    @abstractmethod
    async def get_claim(self, claim_id: str) -> Optional[CustomerClaim]: ...

    @abstractmethod
    async def get_claim_by_number(self, claim_no: str) -> Optional[CustomerClaim]: ...

    @abstractmethod
    async def create_claim(self, claim: CustomerClaim) -> CustomerClaim: ...

    @abstractmethod
    async def update_claim(self, claim_id: str, values: Dict[str, Any]) -> Optional[CustomerClaim]: ...

    @abstractmethod
    async def list_comments(self, claim_id: str) -> List[ClaimComment]: ...

    @abstractmethod
    async def add_comment(self, comment: ClaimComment) -> ClaimComment: ...

    @abstractmethod
    async def list_workflow(self, claim_id: str) -> List[ClaimWorkflow]: ...

    @abstractmethod
    async def add_workflow(self, step: ClaimWorkflow) -> ClaimWorkflow: ...

    @abstractmethod
    async def list_attachments(self, claim_id: str) -> List[ClaimAttachment]: ...

    @abstractmethod
    async def add_attachment(self, attachment: ClaimAttachment) -> ClaimAttachment: ...


class DashboardRepository(ABC):
    """Per-user preferences and shared calendar months."""

    @abstractmethod
    async def get_preference(self, user_id: str, key: str) -> Optional[UserPreference]: ...

    @abstractmethod
    async def set_preference(self, user_id: str, key: str, value: Any) -> UserPreference:
        """Insert or replace."""

    @abstractmethod
    async def delete_preference(self, user_id: str, key: str) -> bool: ...

    @abstractmethod
    async def get_calendar_month(self, calendar: str, scope: str, year: int, month: int) -> Optional[CalendarMonth]: ...

    @abstractmethod
    async def save_calendar_month(
        self,
        calendar: str,
        scope: str,
        year: int,
        month: int,
        days: Dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> CalendarMonth:
        """Insert or replace."""

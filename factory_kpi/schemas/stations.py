from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field

from factory_kpi.schemas.common import CamelModel, UtcDateTime

DataType = Literal["safety", "quality", "production", "logistics"]
Severity = Literal["low", "medium", "high", "critical"]
EntryStatus = Literal["active", "resolved", "closed"]

_METADATA_ALIASES = AliasChoices("details", "metadata")


class StationRead(CamelModel):
    """Production station read model."""
    id: str
    name: str
    code: str
    description: Optional[str] = None
    location: Optional[str] = None
    responsible_id: Optional[str] = None
    is_active: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class StationCreate(CamelModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    location: Optional[str] = None
    responsible_id: Optional[str] = None
    is_active: bool = True


class StationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    location: Optional[str] = None
    responsible_id: Optional[str] = None
    is_active: Optional[bool] = None


class StationDataRead(CamelModel):
    """Station data entry decorated with station and user names."""
    id: str
    station_id: str
    station_name: Optional[str] = None
    station_code: Optional[str] = None
    date: dt.date
    day: int
    data_type: str
    event_type: str
    description: Optional[str] = None
    severity: str
    status: str
    reported_by: Optional[str] = None
    reported_by_name: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES, serialization_alias="metadata")
    resolved_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class StationDataCreate(CamelModel):
    station_id: str = Field(..., min_length=1)
    date: dt.date
    data_type: DataType
    event_type: str = Field(..., min_length=1)
    description: Optional[str] = None
    severity: Severity = "medium"
    status: EntryStatus = "active"
    assigned_to: Optional[str] = None
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES)


class StationDataUpdate(CamelModel):
    station_id: Optional[str] = Field(None, min_length=1)
    date: Optional[dt.date] = None
    data_type: Optional[DataType] = None
    event_type: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    severity: Optional[Severity] = None
    status: Optional[EntryStatus] = None
    assigned_to: Optional[str] = None
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES)
    resolved_at: Optional[UtcDateTime] = None


class StationKpiRead(CamelModel):
    id: str
    station_id: str
    category: str
    title: str
    value: Optional[float] = None
    target: Optional[float] = None
    unit: str
    updated_by: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class StationKpiCreate(CamelModel):
    station_id: str = Field(..., min_length=1)
    category: DataType
    title: str = Field(..., min_length=1)
    value: Optional[float] = None
    target: Optional[float] = None
    unit: str = "%"


class StationKpiUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    value: Optional[float] = None
    target: Optional[float] = None
    unit: Optional[str] = None


class StationEvent(CamelModel):
    id: str
    day: int
    description: Optional[str] = None
    severity: str
    status: str
    created_at: dt.datetime


class StationSummary(CamelModel):
    """Entries of one month grouped by station code and data type."""
    station_name: Optional[str] = None
    station_code: Optional[str] = None
    data_type: str
    events: List[StationEvent] = Field(default_factory=list)

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import AliasChoices, Field

from factory_kpi.schemas.common import CamelModel, UtcDateTime

Priority = Literal["high", "medium", "low"]
ActionStatus = Literal["open", "in-progress", "closed"]

# The ORM attribute is "details" because "metadata" is reserved on declarative models;
# it is tried first since every ORM row also exposes Base.metadata.
_METADATA_ALIASES = AliasChoices("details", "metadata")


class KpiRead(CamelModel):
    """Recorded KPI value."""
    id: str
    department: str
    value: Optional[float] = None
    target: Optional[float] = None
    percentage: Optional[float] = Field(None, description="value / target * 100, 2 decimals")
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES, serialization_alias="metadata")
    month: Optional[int] = None
    year: Optional[int] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class KpiCreate(CamelModel):
    department: str = Field(..., min_length=1)
    value: Optional[float] = None
    target: Optional[float] = None
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES)
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=2000, le=2100)


class KpiUpdate(CamelModel):
    department: Optional[str] = Field(None, min_length=1)
    value: Optional[float] = None
    target: Optional[float] = None
    details: Optional[dict] = Field(None, validation_alias=_METADATA_ALIASES)
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=2000, le=2100)


class LatestKpi(CamelModel):
    """Most recent KPI of one department; hasData is false when nothing was recorded."""
    department: str
    has_data: bool
    id: Optional[str] = None
    value: Optional[float] = None
    target: Optional[float] = None
    percentage: Optional[float] = None
    month: Optional[int] = None
    year: Optional[int] = None
    updated_at: Optional[datetime] = None


class ActionRead(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    department: str
    priority: str
    status: str
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ActionCreate(CamelModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    department: str = Field(..., min_length=1)
    priority: Priority = "medium"
    status: ActionStatus = "open"
    assignee_id: Optional[str] = None
    due_date: Optional[UtcDateTime] = None


class ActionUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    department: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    status: Optional[ActionStatus] = None
    assignee_id: Optional[str] = None
    due_date: Optional[UtcDateTime] = None


class ActivityRead(CamelModel):
    id: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    action: str
    description: Optional[str] = None
    timestamp: datetime

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from factory_kpi.schemas.common import CamelModel

CalendarName = Literal["safety", "quality", "production", "premium-freight"]


class WidgetGeometry(CamelModel):
    x: float
    y: float
    width: float
    height: float


class WidgetState(CamelModel):
    """Persisted widget: identity, geometry and visibility."""
    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    title: str = ""
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    x: float = 0
    y: float = 0
    visible: bool = True
    restore: Optional[WidgetGeometry] = Field(None, description="Geometry before maximize; set while maximized")


class LayoutRead(CamelModel):
    widgets: List[WidgetState]
    container_width: float
    container_height: float
    can_undo: bool = Field(False, description="True when a previously saved layout can be restored")
    customized: bool = Field(False, description="False while the default layout is in use")


class ContainerSize(CamelModel):
    container_width: Optional[float] = Field(None, gt=0)
    container_height: Optional[float] = Field(None, gt=0)


class LayoutSave(ContainerSize):
    """Widgets to save; geometry is fitted into the container (default 1920x1200)."""
    widgets: List[WidgetState] = Field(..., min_length=1)


class WidgetPatch(ContainerSize):
    """
    Partial widget update.

    Positions are clamped into the container, sizes are floored at the widget minimum.
    """
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    visible: Optional[bool] = None
    title: Optional[str] = None
    maximized: Optional[bool] = None


class WidgetAdd(CamelModel):
    type: str = Field(..., min_length=1)


class PreferenceRead(CamelModel):
    key: str
    value: Any = None
    updated_at: Optional[datetime] = None


class PreferenceWrite(CamelModel):
    value: Any = None


class CalendarMonthRead(CamelModel):
    calendar: CalendarName
    scope: str
    year: int
    month: int
    days_in_month: int
    days: Dict[int, Any] = Field(default_factory=dict, description="Day of month -> status or value")
    summary: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class CalendarDayValue(CamelModel):
    value: float = Field(..., ge=0, le=100, description="Production efficiency in percent")


class ChartPoint(CamelModel):
    x: Any
    y: float


class ChartStatistics(CamelModel):
    count: int
    max: Optional[float] = None
    min: Optional[float] = None
    avg: Optional[float] = None


class ChartImportResult(CamelModel):
    """Parsed spreadsheet ready for charting."""
    file_name: Optional[str] = None
    encoding: Optional[str] = None
    delimiter: Optional[str] = None
    columns: List[str]
    rows: List[Dict[str, Any]]
    x_column: Optional[str] = None
    y_column: Optional[str] = None
    series: List[ChartPoint] = Field(default_factory=list)
    statistics: ChartStatistics

from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Unicode,
    UnicodeText,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from factory_kpi.db.base import Base, TimestampMixin, UUIDPkMixin


class ProductionStation(UUIDPkMixin, TimestampMixin, Base):
    """Production line or work center."""
    __tablename__ = "production_stations"

    name: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    code: Mapped[str] = mapped_column(Unicode(50), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(Unicode(255), nullable=True)
    responsible_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class StationDataEntry(UUIDPkMixin, TimestampMixin, Base):
    """A daily event recorded against a station (incident, defect, delay...)."""
    __tablename__ = "station_data_entries"

    station_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("production_stations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    data_type: Mapped[str] = mapped_column(String(20), nullable=False)
    event_type: Mapped[str] = mapped_column(Unicode(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    reported_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    details: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    resolved_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)


class StationKpi(UUIDPkMixin, TimestampMixin, Base):
    """KPI tracked per station and category."""
    __tablename__ = "station_kpis"
    __table_args__ = (
        UniqueConstraint("station_id", "category", name="uq_station_kpis_station_category"),
    )

    station_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("production_stations.id", ondelete="CASCADE"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[str] = mapped_column(Unicode(20), nullable=False, default="%")
    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

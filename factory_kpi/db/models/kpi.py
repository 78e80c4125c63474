from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String, Unicode, UnicodeText
from sqlalchemy.orm import Mapped, mapped_column

from factory_kpi.db.base import Base, TimestampMixin, UUIDPkMixin


class KpiData(UUIDPkMixin, TimestampMixin, Base):
    """A recorded KPI value for a department and period."""
    __tablename__ = "kpi_data"

    department: Mapped[str] = mapped_column(Unicode(100), nullable=False, index=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    percentage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)


class ActionItem(UUIDPkMixin, TimestampMixin, Base):
    """Follow-up task raised for a department."""
    __tablename__ = "action_items"

    title: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    department: Mapped[str] = mapped_column(Unicode(100), nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open", index=True)
    assignee_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

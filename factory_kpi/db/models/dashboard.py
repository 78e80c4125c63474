from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Unicode, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from factory_kpi.db.base import Base, UUIDPkMixin, utcnow


class UserPreference(UUIDPkMixin, Base):
    """Per-user JSON blob (dashboard layout, layout undo slot, chart preferences)."""
    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "key", name="uq_user_preferences_user_key"),
    )

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )


class CalendarMonth(UUIDPkMixin, Base):
    """Day-status map of one dashboard calendar for one month."""
    __tablename__ = "calendar_months"
    __table_args__ = (
        UniqueConstraint("calendar", "scope", "year", "month", name="uq_calendar_months_key"),
    )

    calendar: Mapped[str] = mapped_column(String(30), nullable=False)
    scope: Mapped[str] = mapped_column(Unicode(100), nullable=False, default="")
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    days: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, String, Unicode, UnicodeText
from sqlalchemy.orm import Mapped, mapped_column

from factory_kpi.db.base import Base, TimestampMixin, UUIDPkMixin, utcnow


class User(UUIDPkMixin, TimestampMixin, Base):
    """Dashboard user. Passwords are stored as bcrypt hashes."""
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(Unicode(100), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    email: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    department: Mapped[str] = mapped_column(Unicode(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    permissions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    profile_image: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Department(UUIDPkMixin, TimestampMixin, Base):
    """Organisational department; KPIs and action items reference it by name."""
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(Unicode(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    manager_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ActivityLog(UUIDPkMixin, Base):
    """Append-only audit trail entry."""
    __tablename__ = "activity_log"

    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

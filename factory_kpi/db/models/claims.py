from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Unicode, UnicodeText
from sqlalchemy.orm import Mapped, mapped_column

from factory_kpi.db.base import Base, CreatedAtMixin, TimestampMixin, UUIDPkMixin, utcnow


class CustomerClaim(UUIDPkMixin, TimestampMixin, Base):
    """Customer complaint tracked through OPEN -> UNDER_REVIEW -> RESOLVED -> CLOSED."""
    __tablename__ = "customer_claims"

    customer_name: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    defect_type: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    customer_claim_no: Mapped[str] = mapped_column(Unicode(100), nullable=False, unique=True)
    quality_alarm_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    claim_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    gas_claim_sap_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    detection_location: Mapped[Optional[str]] = mapped_column(Unicode(255), nullable=True)
    claim_creator: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    gas_part_name: Mapped[Optional[str]] = mapped_column(Unicode(255), nullable=True)
    gas_part_ref_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    nok_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    claim_type: Mapped[str] = mapped_column(String(20), nullable=False, default="QUALITY")
    cost_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN", index=True)
    issue_description: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    ppm_type: Mapped[Optional[str]] = mapped_column(Unicode(50), nullable=True)
    claim_related_department: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    customer_ref_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    gpq_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    gpq_responsible_person: Mapped[Optional[str]] = mapped_column(Unicode(255), nullable=True)
    supplier_name: Mapped[Optional[str]] = mapped_column(Unicode(255), nullable=True)
    hbr_no: Mapped[Optional[str]] = mapped_column(Unicode(100), nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="MEDIUM")
    assigned_to: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    resolution_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolution_notes: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)


class ClaimComment(UUIDPkMixin, CreatedAtMixin, Base):
    """Comment on a claim; internal comments are hidden from customers."""
    __tablename__ = "claim_comments"

    claim_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customer_claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comment: Mapped[str] = mapped_column(UnicodeText, nullable=False)
    comment_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ClaimWorkflow(UUIDPkMixin, Base):
    """Status transition history of a claim."""
    __tablename__ = "claim_workflow"

    claim_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customer_claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    change_reason: Mapped[Optional[str]] = mapped_column(UnicodeText, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class ClaimAttachment(UUIDPkMixin, Base):
    """File uploaded against a claim; the bytes live under ATTACHMENTS_DIR."""
    __tablename__ = "claim_attachments"

    claim_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customer_claims.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(Unicode(255), nullable=False)
    file_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_path: Mapped[str] = mapped_column(Unicode(500), nullable=False)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from factory_kpi.schemas.common import CamelModel, UtcDateTime

ClaimType = Literal["WARRANTY", "QUALITY", "DELIVERY", "OTHER"]
ClaimStatus = Literal["OPEN", "UNDER_REVIEW", "RESOLVED", "CLOSED"]
ClaimPriority = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]


class _ClaimFields(CamelModel):
    """Optional claim attributes shared by read, create and update models."""
    quality_alarm_no: Optional[str] = None
    gas_claim_sap_no: Optional[str] = None
    detection_location: Optional[str] = None
    gas_part_name: Optional[str] = None
    gas_part_ref_no: Optional[str] = None
    nok_quantity: Optional[int] = Field(None, ge=0)
    cost_amount: Optional[float] = None
    issue_description: Optional[str] = None
    ppm_type: Optional[str] = None
    claim_related_department: Optional[str] = None
    customer_ref_no: Optional[str] = None
    gpq_no: Optional[str] = None
    gpq_responsible_person: Optional[str] = None
    supplier_name: Optional[str] = None
    hbr_no: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None


class ClaimRead(_ClaimFields):
    """Customer claim read model."""
    id: str
    customer_name: str
    defect_type: str
    customer_claim_no: str
    claim_date: datetime
    claim_creator: Optional[str] = None
    claim_type: str
    currency: str
    status: str
    priority: str
    resolution_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ClaimCreate(_ClaimFields):
    customer_name: str = Field(..., min_length=1)
    defect_type: str = Field(..., min_length=1)
    customer_claim_no: str = Field(..., min_length=1)
    claim_date: UtcDateTime
    claim_type: ClaimType = "QUALITY"
    currency: str = Field("EUR", min_length=3, max_length=3)
    status: ClaimStatus = "OPEN"
    priority: ClaimPriority = "MEDIUM"


class ClaimUpdate(_ClaimFields):
    customer_name: Optional[str] = Field(None, min_length=1)
    defect_type: Optional[str] = Field(None, min_length=1)
    customer_claim_no: Optional[str] = Field(None, min_length=1)
    claim_date: Optional[UtcDateTime] = None
    claim_type: Optional[ClaimType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    priority: Optional[ClaimPriority] = None
    resolution_date: Optional[UtcDateTime] = None


class ClaimStats(CamelModel):
    total_claims: int
    open_claims: int
    under_review_claims: int
    resolved_claims: int
    closed_claims: int
    total_cost: float
    avg_resolution_time: Optional[float] = Field(
        None, description="Mean days from claim date to resolution date; null when nothing is resolved"
    )


class ClaimStatusChange(CamelModel):
    from_status: Optional[ClaimStatus] = None
    to_status: ClaimStatus
    change_reason: Optional[str] = None


class CommentRead(CamelModel):
    id: str
    claim_id: str
    comment: str
    comment_by: Optional[str] = None
    comment_by_name: Optional[str] = None
    is_internal: bool
    created_at: datetime


class CommentCreate(CamelModel):
    comment: str = Field(..., min_length=1)
    is_internal: bool = False


class WorkflowRead(CamelModel):
    id: str
    claim_id: str
    from_status: Optional[str] = None
    to_status: str
    changed_by: Optional[str] = None
    changed_by_name: Optional[str] = None
    change_reason: Optional[str] = None
    changed_at: datetime


class AttachmentRead(CamelModel):
    id: str
    claim_id: str
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    uploaded_at: datetime


class NonConformity(CamelModel):
    """Open/closed issue feed item derived from claims and station events."""
    id: str
    description: str
    source: str = Field(..., description="customer_complaint | safety_incident | quality_control | production_problem | supplier_issue")
    status: Literal["open", "in_progress", "closed"]
    severity: Literal["low", "medium", "high"]
    assignee_name: Optional[str] = None
    due_date: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime

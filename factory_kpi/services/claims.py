from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional

from fastapi import HTTPException, status

from factory_kpi.core.settings import get_app_settings
from factory_kpi.db.base import new_id, utcnow
from factory_kpi.db.models import ClaimAttachment, ClaimComment, ClaimWorkflow, CustomerClaim, User
from factory_kpi.schemas.claims import (
    ClaimCreate,
    ClaimStats,
    ClaimStatusChange,
    ClaimUpdate,
    CommentCreate,
    CommentRead,
    NonConformity,
    WorkflowRead,
)
from factory_kpi.services.base import BaseService, drop_nulls

logger = logging.getLogger(__name__)

RESOLVED_STATUSES = ("RESOLVED", "CLOSED")
SECONDS_PER_DAY = 86400

# Issue feed mapping
_CLAIM_NC_STATUS = {"OPEN": "open", "UNDER_REVIEW": "in_progress", "RESOLVED": "closed", "CLOSED": "closed"}
_ENTRY_NC_STATUS = {"active": "open", "resolved": "closed", "closed": "closed"}
_ENTRY_NC_SOURCE = {
    "safety": "safety_incident",
    "quality": "quality_control",
    "production": "production_problem",
    "logistics": "supplier_issue",
}
_NC_SEVERITY = {"low": "low", "medium": "medium", "high": "high", "critical": "high"}

_UNSAFE_FILENAME = re.compile(r"[^\w.\-]+")


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Claim not found")


class ClaimService(BaseService):
    """Customer claims: records, workflow, comments, attachments and statistics."""

    async def list_claims(self, status_filter: Optional[str] = None) -> List[CustomerClaim]:
        return await self.storage.claims.list_claims(status_filter)

    # PUBLIC_INTERFACE
    async def get_claim(self, claim_id: str) -> CustomerClaim:
        claim = await self.storage.claims.get_claim(claim_id)
        if claim is None:
            raise _not_found()
        return claim

    # PUBLIC_INTERFACE
    async def stats(self) -> ClaimStats:
        """
        Claim counters and cost.

        avgResolutionTime is the mean number of days from claim date to resolution
        date over claims that have one; None when no claim has been resolved.
        """
        claims = await self.storage.claims.list_claims()
        durations = [
            (c.resolution_date - c.claim_date).total_seconds() / SECONDS_PER_DAY
            for c in claims
            if c.resolution_date is not None and c.claim_date is not None
        ]
        return ClaimStats(
            total_claims=len(claims),
            open_claims=sum(1 for c in claims if c.status == "OPEN"),
            under_review_claims=sum(1 for c in claims if c.status == "UNDER_REVIEW"),
            resolved_claims=sum(1 for c in claims if c.status == "RESOLVED"),
            closed_claims=sum(1 for c in claims if c.status == "CLOSED"),
            total_cost=round(sum(c.cost_amount or 0 for c in claims), 2),
            avg_resolution_time=round(sum(durations) / len(durations), 1) if durations else None,
        )

    # PUBLIC_INTERFACE
    async def create_claim(self, payload: ClaimCreate, actor: User) -> CustomerClaim:
        """Create a claim and its initial workflow step; claim numbers are unique."""
        claim_no = payload.customer_claim_no.strip()
        if await self.storage.claims.get_claim_by_number(claim_no):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Claim number already exists")

        claim = CustomerClaim(
            **payload.model_dump(exclude={"customer_claim_no"}),
            customer_claim_no=claim_no,
            claim_creator=actor.id,
        )
        if claim.status in RESOLVED_STATUSES:
            claim.resolution_date = utcnow()
        created = await self.storage.claims.create_claim(claim)
        await self.storage.claims.add_workflow(
            ClaimWorkflow(
                claim_id=created.id,
                from_status=None,
                to_status=created.status,
                changed_by=actor.id,
                change_reason="Claim created",
            )
        )
        await self._log_activity(actor.id, "CREATE_CLAIM", f"Claim created: {created.customer_claim_no}")
        return created

    # PUBLIC_INTERFACE
    async def update_claim(self, claim_id: str, payload: ClaimUpdate, actor: User) -> CustomerClaim:
        await self.get_claim(claim_id)
        values = drop_nulls(
            payload.model_dump(exclude_unset=True),
            "customer_name", "defect_type", "customer_claim_no", "claim_date", "claim_type", "currency", "priority",
        )
        if "customer_claim_no" in values:
            values["customer_claim_no"] = values["customer_claim_no"].strip()
            other = await self.storage.claims.get_claim_by_number(values["customer_claim_no"])
            if other and other.id != claim_id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Claim number already exists")
        updated = await self.storage.claims.update_claim(claim_id, values)
        await self._log_activity(actor.id, "UPDATE_CLAIM", f"Claim updated: {updated.customer_claim_no}")
        return updated

    # PUBLIC_INTERFACE
    async def change_status(self, claim_id: str, payload: ClaimStatusChange, actor: User) -> CustomerClaim:
        """
        Move a claim to a new status and record the transition.

        RESOLVED/CLOSED stamp the resolution date unless one is already set.
        """
        claim = await self.get_claim(claim_id)
        values = {"status": payload.to_status}
        if payload.to_status in RESOLVED_STATUSES and claim.resolution_date is None:
            values["resolution_date"] = utcnow()
        from_status = payload.from_status or claim.status
        updated = await self.storage.claims.update_claim(claim_id, values)
        await self.storage.claims.add_workflow(
            ClaimWorkflow(
                claim_id=claim_id,
                from_status=from_status,
                to_status=payload.to_status,
                changed_by=actor.id,
                change_reason=payload.change_reason,
            )
        )
        await self._log_activity(
            actor.id,
            "UPDATE_CLAIM_STATUS",
            f"Claim {updated.customer_claim_no}: {from_status} -> {payload.to_status}",
        )
        return updated

    # Comments and workflow

    # PUBLIC_INTERFACE
    async def list_comments(self, claim_id: str) -> List[CommentRead]:
        await self.get_claim(claim_id)
        names = await self.storage.users.get_user_names()
        result = []
        for comment in await self.storage.claims.list_comments(claim_id):
            read = CommentRead.model_validate(comment)
            read.comment_by_name = names.get(comment.comment_by) if comment.comment_by else None
            result.append(read)
        return result

    # PUBLIC_INTERFACE
    async def add_comment(self, claim_id: str, payload: CommentCreate, actor: User) -> CommentRead:
        await self.get_claim(claim_id)
        comment = await self.storage.claims.add_comment(
            ClaimComment(
                claim_id=claim_id,
                comment=payload.comment,
                comment_by=actor.id,
                is_internal=payload.is_internal,
            )
        )
        read = CommentRead.model_validate(comment)
        read.comment_by_name = actor.name
        return read

    # PUBLIC_INTERFACE
    async def list_workflow(self, claim_id: str) -> List[WorkflowRead]:
        await self.get_claim(claim_id)
        names = await self.storage.users.get_user_names()
        result = []
        for step in await self.storage.claims.list_workflow(claim_id):
            read = WorkflowRead.model_validate(step)
            read.changed_by_name = names.get(step.changed_by) if step.changed_by else None
            result.append(read)
        return result

    # Attachments

    async def list_attachments(self, claim_id: str) -> List[ClaimAttachment]:
        await self.get_claim(claim_id)
        return await self.storage.claims.list_attachments(claim_id)

    # PUBLIC_INTERFACE
    async def add_attachment(
        self,
        claim_id: str,
        file_name: str,
        content_type: Optional[str],
        data: bytes,
        actor: User,
    ) -> ClaimAttachment:
        """Store an uploaded file under ATTACHMENTS_DIR/<claim id>/ and register it; the file is removed again if the row cannot be saved."""
        claim = await self.get_claim(claim_id)
        settings = get_app_settings()
        if not data:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is empty")
        if len(data) > settings.MAX_ATTACHMENT_BYTES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is too large")

        safe_name = _UNSAFE_FILENAME.sub("_", Path(file_name or "attachment").name) or "attachment"
        target = Path(settings.ATTACHMENTS_DIR) / claim_id / f"{new_id()}_{safe_name}"
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_bytes, data)

        try:
            attachment = await self.storage.claims.add_attachment(
                ClaimAttachment(
                    claim_id=claim_id,
                    file_name=file_name or safe_name,
                    file_type=content_type,
                    file_size=len(data),
                    file_path=str(target),
                    uploaded_by=actor.id,
                )
            )
        except Exception:
            # nothing references the file without its row
            await asyncio.to_thread(target.unlink, missing_ok=True)
            raise
        await self._log_activity(
            actor.id, "UPLOAD_CLAIM_ATTACHMENT", f"{attachment.file_name} attached to {claim.customer_claim_no}"
        )
        return attachment

    # Issue feed

    # PUBLIC_INTERFACE
    async def non_conformities(self, status_filter: Optional[str] = None) -> List[NonConformity]:
        """
        Issue feed for the open/closed issue widgets.

        Claims and station data entries are mapped onto a common shape; status_filter
        'open' keeps open and in-progress items, 'closed' keeps closed ones.
        """
        names = await self.storage.users.get_user_names()
        items: List[NonConformity] = []
        for claim in await self.storage.claims.list_claims():
            items.append(
                NonConformity(
                    id=claim.id,
                    description=f"{claim.customer_claim_no} - {claim.customer_name}: {claim.defect_type}",
                    source="customer_complaint",
                    status=_CLAIM_NC_STATUS.get(claim.status, "open"),
                    severity=_NC_SEVERITY.get(claim.priority.lower(), "medium"),
                    assignee_name=names.get(claim.assigned_to) if claim.assigned_to else None,
                    closed_at=claim.resolution_date,
                    created_at=claim.claim_date,
                )
            )
        for entry in await self.storage.stations.list_entries():
            items.append(
                NonConformity(
                    id=entry.id,
                    description=entry.description or entry.event_type,
                    source=_ENTRY_NC_SOURCE.get(entry.data_type, entry.data_type),
                    status=_ENTRY_NC_STATUS.get(entry.status, "open"),
                    severity=_NC_SEVERITY.get(entry.severity, "medium"),
                    assignee_name=names.get(entry.assigned_to) if entry.assigned_to else None,
                    closed_at=entry.resolved_at,
                    created_at=entry.created_at,
                )
            )

        if status_filter == "open":
            items = [i for i in items if i.status != "closed"]
        elif status_filter == "closed":
            items = [i for i in items if i.status == "closed"]
        items.sort(key=lambda i: i.created_at, reverse=True)
        return items

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select

from factory_kpi.db.models.claims import ClaimAttachment, ClaimComment, ClaimWorkflow, CustomerClaim
from .base import BaseRepository
from .interfaces import ClaimRepository


class SqlClaimRepository(BaseRepository, ClaimRepository):
    """SQL adapter for customer claims and their child records."""

    async def list_claims(self, status: Optional[str] = None) -> List[CustomerClaim]:
        stmt = select(CustomerClaim).order_by(CustomerClaim.claim_date.desc(), CustomerClaim.created_at.desc())
        if status:
            stmt = stmt.where(CustomerClaim.status == status)
        result = await self.scalars(stmt)
        return list(result)

    async def get_claim(self, claim_id: str) -> Optional[CustomerClaim]:
        return await self.get_by_id(CustomerClaim, claim_id)

    async def get_claim_by_number(self, claim_no: str) -> Optional[CustomerClaim]:
        stmt = select(CustomerClaim).where(CustomerClaim.customer_claim_no == claim_no)
        return await self.scalar_one_or_none(stmt)

    async def create_claim(self, claim: CustomerClaim) -> CustomerClaim:
        return await self.insert(claim)

    async def update_claim(self, claim_id: str, values: Dict[str, Any]) -> Optional[CustomerClaim]:
        return await self.update_by_id(CustomerClaim, claim_id, values)

    # Comments
    async def list_comments(self, claim_id: str) -> List[ClaimComment]:
        stmt = select(ClaimComment).where(ClaimComment.claim_id == claim_id).order_by(ClaimComment.created_at)
        result = await self.scalars(stmt)
        return list(result)

    async def add_comment(self, comment: ClaimComment) -> ClaimComment:
        return await self.insert(comment)

    # Workflow
    async def list_workflow(self, claim_id: str) -> List[ClaimWorkflow]:
        stmt = select(ClaimWorkflow).where(ClaimWorkflow.claim_id == claim_id).order_by(ClaimWorkflow.changed_at)
        result = await self.scalars(stmt)
        return list(result)

    async def add_workflow(self, step: ClaimWorkflow) -> ClaimWorkflow:
        return await self.insert(step)

    # Attachments
    async def list_attachments(self, claim_id: str) -> List[ClaimAttachment]:
        stmt = (
            select(ClaimAttachment)
            .where(ClaimAttachment.claim_id == claim_id)
            .order_by(ClaimAttachment.uploaded_at.desc())
        )
        result = await self.scalars(stmt)
        return list(result)

    async def add_attachment(self, attachment: ClaimAttachment) -> ClaimAttachment:
        return await self.insert(attachment)

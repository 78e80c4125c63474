from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile

from factory_kpi.core.deps import get_current_user, get_storage
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.claims import (
    AttachmentRead,
    ClaimCreate,
    ClaimRead,
    ClaimStats,
    ClaimStatus,
    ClaimStatusChange,
    ClaimUpdate,
    CommentCreate,
    CommentRead,
    NonConformity,
    WorkflowRead,
)
from factory_kpi.services.claims import ClaimService

router = APIRouter(prefix="/claims", tags=["Claims"])
issues_router = APIRouter(prefix="/non-conformities", tags=["Claims"])


# PUBLIC_INTERFACE
@router.get("", response_model=List[ClaimRead], summary="List customer claims")
async def list_claims(
    status: Optional[ClaimStatus] = Query(None),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[ClaimRead]:
    return [ClaimRead.model_validate(c) for c in await ClaimService(storage).list_claims(status)]


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=ClaimStats,
    summary="Claim statistics",
    description="Totals by status, total cost and the average resolution time in days.",
)
async def claim_stats(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ClaimStats:
    return await ClaimService(storage).stats()


# PUBLIC_INTERFACE
@router.get("/{claim_id}", response_model=ClaimRead, summary="Get claim")
async def get_claim(
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ClaimRead:
    return ClaimRead.model_validate(await ClaimService(storage).get_claim(claim_id))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ClaimRead,
    summary="Create claim",
    description="Claim numbers are unique. The initial status is recorded in the workflow history.",
)
async def create_claim(
    payload: ClaimCreate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ClaimRead:
    return ClaimRead.model_validate(await ClaimService(storage).create_claim(payload, user))


# PUBLIC_INTERFACE
@router.put("/{claim_id}", response_model=ClaimRead, summary="Update claim")
async def update_claim(
    payload: ClaimUpdate,
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ClaimRead:
    return ClaimRead.model_validate(await ClaimService(storage).update_claim(claim_id, payload, user))


# PUBLIC_INTERFACE
@router.put(
    "/{claim_id}/status",
    response_model=ClaimRead,
    summary="Change claim status",
    description="Records the transition; RESOLVED and CLOSED stamp the resolution date when missing.",
)
async def change_claim_status(
    payload: ClaimStatusChange,
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> ClaimRead:
    return ClaimRead.model_validate(await ClaimService(storage).change_status(claim_id, payload, user))


# PUBLIC_INTERFACE
@router.get("/{claim_id}/comments", response_model=List[CommentRead], summary="List claim comments")
async def list_comments(
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[CommentRead]:
    return await ClaimService(storage).list_comments(claim_id)


# PUBLIC_INTERFACE
@router.post("/{claim_id}/comments", response_model=CommentRead, summary="Add claim comment")
async def add_comment(
    payload: CommentCreate,
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> CommentRead:
    return await ClaimService(storage).add_comment(claim_id, payload, user)


# PUBLIC_INTERFACE
@router.get("/{claim_id}/workflow", response_model=List[WorkflowRead], summary="Claim status history")
async def list_workflow(
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[WorkflowRead]:
    return await ClaimService(storage).list_workflow(claim_id)


# PUBLIC_INTERFACE
@router.get("/{claim_id}/attachments", response_model=List[AttachmentRead], summary="List claim attachments")
async def list_attachments(
    claim_id: str = Path(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[AttachmentRead]:
    return [AttachmentRead.model_validate(a) for a in await ClaimService(storage).list_attachments(claim_id)]


# PUBLIC_INTERFACE
@router.post("/{claim_id}/attachments", response_model=AttachmentRead, summary="Upload claim attachment")
async def upload_attachment(
    claim_id: str = Path(...),
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> AttachmentRead:
    data = await file.read()
    attachment = await ClaimService(storage).add_attachment(claim_id, file.filename, file.content_type, data, user)
    return AttachmentRead.model_validate(attachment)


# PUBLIC_INTERFACE
@issues_router.get(
    "",
    response_model=List[NonConformity],
    summary="Non-conformity feed",
    description="Issues derived from claims and station data entries; status=open also includes in-progress items.",
)
async def list_non_conformities(
    status: Optional[Literal["open", "closed"]] = Query(None),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[NonConformity]:
    return await ClaimService(storage).non_conformities(status)

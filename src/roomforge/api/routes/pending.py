from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from roomforge.api.dependencies import Container, get_admin_id, get_container
from roomforge.api.models import PendingListResponse, RejectRequest, ReviewResponse
from roomforge.core.exceptions import NotFoundError
from roomforge.knowledge.models import PendingKnowledgeRecord, PendingStatus

router = APIRouter(prefix="/v1/admin/pending", tags=["pending"])


@router.get("", response_model=PendingListResponse)
async def list_pending(
    status_filter: Optional[PendingStatus] = Query(PendingStatus.PENDING, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    container: Container = Depends(get_container),
):
    items, total = await container.pending.list_pending(status_filter, limit, offset)
    return PendingListResponse(items=items, total=total, limit=limit, offset=offset)


@router.get("/{pending_id}", response_model=PendingKnowledgeRecord)
async def get_pending(
    pending_id: int,
    container: Container = Depends(get_container),
):
    record = await container.pending.get_pending(pending_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Pending item not found",
        )
    return record


@router.post("/{pending_id}/approve", response_model=ReviewResponse)
async def approve_pending(
    pending_id: int,
    container: Container = Depends(get_container),
    admin_id: str = Depends(get_admin_id),
):
    try:
        success, sql_qa_id, message = await container.pending.approve(pending_id, admin_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    if not success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    return ReviewResponse(success=True, pending_id=pending_id, sql_qa_id=sql_qa_id, message=message)


@router.post("/{pending_id}/reject", response_model=ReviewResponse)
async def reject_pending(
    pending_id: int,
    request: Optional[RejectRequest] = None,
    container: Container = Depends(get_container),
    admin_id: str = Depends(get_admin_id),
):
    reason = request.reason if request else None
    try:
        success, message = await container.pending.reject(pending_id, admin_id, reason)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    if not success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    return ReviewResponse(success=True, pending_id=pending_id, message=message)

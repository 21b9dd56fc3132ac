from fastapi import APIRouter, Depends, HTTPException, Query, status

from roomforge.api.dependencies import Container, get_container
from roomforge.api.models import CanonicalListResponse, TeachRequest
from roomforge.core.exceptions import NotFoundError
from roomforge.knowledge.models import TeachResult

router = APIRouter(prefix="/v1/admin/knowledge", tags=["knowledge"])


@router.get("", response_model=CanonicalListResponse)
async def list_canonical(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    container: Container = Depends(get_container),
):
    items = await container.knowledge.list_canonical(limit=limit, offset=offset)
    return CanonicalListResponse(items=items, limit=limit, offset=offset)


@router.post("/teach", response_model=TeachResult)
async def teach_or_update(
    request: TeachRequest,
    container: Container = Depends(get_container),
):
    check = container.query_validator.validate(request.sql)
    if not check.is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"SQL rejected: {check.error}",
        )

    try:
        return await container.knowledge.teach_or_update(
            request.question, check.sanitized_query, record_id=request.id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.delete("/{record_id}")
async def delete_knowledge(
    record_id: int,
    container: Container = Depends(get_container),
):
    deleted = await container.knowledge.delete_knowledge(record_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Canonical QA not found",
        )
    return {"success": True, "id": record_id}

from typing import Optional

from fastapi import APIRouter, Depends

from roomforge.api.dependencies import Container, get_client_ip, get_container, get_current_user_id
from roomforge.api.models import ChatRequest, HistoryMessage, HistoryResponse
from roomforge.schemas.envelope import ResponseEnvelope
from roomforge.session.store import session_key

router = APIRouter(prefix="/v1/chat", tags=["chat"])


@router.post("", response_model=ResponseEnvelope)
async def chat_turn(
    request: ChatRequest,
    container: Container = Depends(get_container),
    user_id: Optional[str] = Depends(get_current_user_id),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    return await container.chat.process_turn(
        request.message,
        user_id=user_id,
        client_ip=client_ip,
        current_page=request.current_page,
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    container: Container = Depends(get_container),
    user_id: Optional[str] = Depends(get_current_user_id),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    messages = await container.chat.get_history(user_id, client_ip)
    return HistoryResponse(
        session_id=session_key(user_id, client_ip) if (user_id or client_ip) else None,
        messages=[
            HistoryMessage(
                role=m.role.value,
                content=m.content,
                timestamp=m.timestamp,
                envelope=m.envelope,
            )
            for m in messages
        ],
    )


@router.delete("/history")
async def clear_history(
    container: Container = Depends(get_container),
    user_id: Optional[str] = Depends(get_current_user_id),
    client_ip: Optional[str] = Depends(get_client_ip),
):
    cleared = await container.chat.clear_history(user_id, client_ip)
    return {"success": cleared}

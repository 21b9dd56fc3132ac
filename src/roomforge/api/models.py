"""Request and response models for the HTTP API."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from roomforge.knowledge.models import PendingKnowledgeRecord
from roomforge.vector_store.models import CanonicalRecord


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    current_page: Optional[str] = Field(default=None, alias="currentPage")

    model_config = {"populate_by_name": True}


class HistoryMessage(BaseModel):
    role: str
    content: str
    timestamp: datetime
    envelope: Optional[dict[str, Any]] = None


class HistoryResponse(BaseModel):
    session_id: Optional[str] = None
    messages: list[HistoryMessage]


class TeachRequest(BaseModel):
    question: str = Field(..., min_length=1)
    sql: str = Field(..., min_length=1)
    id: Optional[int] = None


class CanonicalListResponse(BaseModel):
    items: list[CanonicalRecord]
    limit: int
    offset: int


class PendingListResponse(BaseModel):
    items: list[PendingKnowledgeRecord]
    total: int
    limit: int
    offset: int


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class ReviewResponse(BaseModel):
    success: bool
    pending_id: int
    sql_qa_id: Optional[int] = None
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    sessions: int

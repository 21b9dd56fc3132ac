from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import BigInteger, String, Text
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlmodel import Column, Field, SQLModel

from roomforge.vector_store.models import utc_now


class PendingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingKnowledge(SQLModel, table=True):
    __tablename__ = "pending_knowledge"

    id: Optional[int] = Field(default=None, sa_column=Column(BigInteger, primary_key=True))
    tenant_id: str = Field(sa_column=Column(String(100), nullable=False))
    db_key: str = Field(sa_column=Column(String(100), nullable=False))

    question: str = Field(sa_column=Column(Text, nullable=False))
    canonical_question: Optional[str] = Field(default=None, sa_column=Column(Text))
    sql: str = Field(sa_column=Column(Text, nullable=False))
    evaluation: Optional[str] = Field(default=None, sa_column=Column(Text))
    validator_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONB))
    session_id: Optional[str] = Field(default=None, sa_column=Column(String(200)))
    user_id: Optional[str] = Field(default=None, sa_column=Column(String(100)))

    status: str = Field(default=PendingStatus.PENDING.value, sa_column=Column(String(20), index=True))
    approved_by: Optional[str] = Field(default=None, sa_column=Column(String(100)))
    approved_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    rejected_by: Optional[str] = Field(default=None, sa_column=Column(String(100)))
    rejected_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(Text))
    sql_qa_id: Optional[int] = Field(default=None, sa_column=Column(BigInteger))

    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))


class PendingKnowledgeRecord(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    question: str
    canonical_question: Optional[str] = None
    sql: str
    evaluation: Optional[str] = None
    validator_data: dict[str, Any] = PydanticField(default_factory=dict)
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    status: PendingStatus = PendingStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    sql_qa_id: Optional[int] = None
    created_at: datetime = PydanticField(default_factory=utc_now)
    updated_at: datetime = PydanticField(default_factory=utc_now)


class TeachResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    chunk_id: int
    sql_qa_id: int
    is_update: bool


async def init_pending_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all, tables=[PendingKnowledge.__table__])

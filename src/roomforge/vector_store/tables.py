"""SQLModel tables for the knowledge corpus.

The ``embedding`` columns are pgvector columns added by ``init_vector_tables``
and written through raw SQL; they are not mapped as SQLModel fields.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import BigInteger, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import Column, Field, SQLModel

from roomforge.vector_store.models import utc_now


class KnowledgeChunk(SQLModel, table=True):
    __tablename__ = "knowledge_chunks"

    id: Optional[int] = Field(default=None, sa_column=Column(BigInteger, primary_key=True))
    tenant_id: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    db_key: str = Field(sa_column=Column(String(100), nullable=False))
    collection: str = Field(sa_column=Column(String(20), nullable=False, index=True))
    content: str = Field(sa_column=Column(Text, nullable=False))
    metadata_: Dict[str, Any] = Field(default={}, sa_column=Column("metadata", JSONB))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))


class SqlQA(SQLModel, table=True):
    __tablename__ = "sql_qa"

    id: Optional[int] = Field(default=None, sa_column=Column(BigInteger, primary_key=True))
    tenant_id: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    db_key: str = Field(sa_column=Column(String(100), nullable=False))
    question: str = Field(sa_column=Column(Text, nullable=False))
    question_normalized: str = Field(sa_column=Column(Text, nullable=False, index=True))
    sql: str = Field(sa_column=Column(Text, nullable=False))
    chunk_id: Optional[int] = Field(default=None, sa_column=Column(BigInteger))
    usage_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    last_used_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(TIMESTAMP(timezone=True)))


async def init_vector_tables(engine: AsyncEngine, dimension: int) -> None:
    """Create the knowledge tables and their pgvector columns."""
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(
            SQLModel.metadata.create_all,
            tables=[KnowledgeChunk.__table__, SqlQA.__table__],
        )
        for table in ("knowledge_chunks", "sql_qa"):
            await conn.execute(
                text(f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS embedding vector({int(dimension)})")
            )

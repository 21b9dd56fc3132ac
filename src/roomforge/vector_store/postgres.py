"""PostgreSQL + pgvector implementation of the similarity store."""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np
from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roomforge.vector_store.models import CanonicalRecord, Collection, SearchHit, utc_now
from roomforge.vector_store.tables import KnowledgeChunk, SqlQA

logger = logging.getLogger(__name__)


def _vector_literal(embedding: np.ndarray) -> str:
    return "[" + ",".join(str(float(x)) for x in embedding) + "]"


def _to_record(row: SqlQA, score: Optional[float] = None) -> CanonicalRecord:
    return CanonicalRecord(
        id=row.id,
        question=row.question,
        sql=row.sql,
        chunk_id=row.chunk_id,
        usage_count=row.usage_count or 0,
        last_used_at=row.last_used_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        score=score,
    )


class PgVectorStore:
    """Similarity store backed by the ``knowledge_chunks`` and ``sql_qa`` tables.

    Each call opens its own short transaction from ``session_maker``.
    Similarity is ``1 - cosine_distance`` as computed by pgvector's ``<=>``.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _set_embedding(
        self, session: AsyncSession, table: str, row_id: int, embedding: np.ndarray
    ) -> None:
        await session.execute(
            text(f"UPDATE {table} SET embedding = CAST(:embedding AS vector) WHERE id = :id"),
            {"id": row_id, "embedding": _vector_literal(embedding)},
        )

    async def add_chunk(
        self,
        collection: Collection,
        content: str,
        embedding: np.ndarray,
        tenant: str,
        db_key: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        async with self._session_maker() as session:
            chunk = KnowledgeChunk(
                tenant_id=tenant,
                db_key=db_key,
                collection=Collection(collection).value,
                content=content,
                metadata_=metadata or {},
            )
            session.add(chunk)
            await session.flush()
            await self._set_embedding(session, "knowledge_chunks", chunk.id, embedding)
            await session.commit()
            return chunk.id

    async def update_chunk(self, chunk_id: int, content: str, embedding: np.ndarray) -> bool:
        async with self._session_maker() as session:
            chunk = await session.get(KnowledgeChunk, chunk_id)
            if chunk is None:
                return False
            chunk.content = content
            chunk.updated_at = utc_now()
            await session.flush()
            await self._set_embedding(session, "knowledge_chunks", chunk_id, embedding)
            await session.commit()
            return True

    async def delete_chunk(self, chunk_id: int) -> bool:
        async with self._session_maker() as session:
            result = await session.execute(
                delete(KnowledgeChunk).where(KnowledgeChunk.id == chunk_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def clear_collection(self, collection: Collection, tenant: str, db_key: str) -> int:
        async with self._session_maker() as session:
            result = await session.execute(
                delete(KnowledgeChunk).where(
                    KnowledgeChunk.collection == Collection(collection).value,
                    KnowledgeChunk.tenant_id == tenant,
                    KnowledgeChunk.db_key == db_key,
                )
            )
            await session.commit()
            return result.rowcount

    async def similarity_search(
        self,
        embedding: np.ndarray,
        collection: Collection,
        limit: int,
        threshold: float,
        tenant: str,
        db_key: str,
    ) -> list[SearchHit]:
        stmt = text("""
            SELECT id, content, metadata,
                   1 - (embedding <=> CAST(:embedding AS vector)) AS score
            FROM knowledge_chunks
            WHERE embedding IS NOT NULL
              AND collection = :collection
              AND tenant_id = :tenant
              AND db_key = :db_key
              AND 1 - (embedding <=> CAST(:embedding AS vector)) >= :threshold
            ORDER BY embedding <=> CAST(:embedding AS vector)
            LIMIT :limit
        """)
        async with self._session_maker() as session:
            result = await session.execute(stmt, {
                "embedding": _vector_literal(embedding),
                "collection": Collection(collection).value,
                "tenant": tenant,
                "db_key": db_key,
                "threshold": threshold,
                "limit": limit,
            })
            rows = result.fetchall()

        return [
            SearchHit(
                id=row.id,
                content=row.content,
                score=float(row.score),
                metadata=row.metadata or {},
            )
            for row in rows
        ]

    async def find_canonical_exact(
        self, normalized_question: str, tenant: str, db_key: str
    ) -> Optional[CanonicalRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(SqlQA)
                .where(
                    SqlQA.question_normalized == normalized_question,
                    SqlQA.tenant_id == tenant,
                    SqlQA.db_key == db_key,
                )
                .order_by(SqlQA.updated_at.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
        return _to_record(row, score=1.0) if row else None

    async def search_canonical(
        self, embedding: np.ndarray, limit: int, tenant: str, db_key: str
    ) -> list[CanonicalRecord]:
        stmt = text("""
            SELECT id, 1 - (embedding <=> CAST(:embedding AS vector)) AS score
            FROM sql_qa
            WHERE embedding IS NOT NULL
              AND tenant_id = :tenant
              AND db_key = :db_key
            ORDER BY embedding <=> CAST(:embedding AS vector)
            LIMIT :limit
        """)
        async with self._session_maker() as session:
            result = await session.execute(stmt, {
                "embedding": _vector_literal(embedding),
                "tenant": tenant,
                "db_key": db_key,
                "limit": limit,
            })
            scored = result.fetchall()
            records = []
            for item in scored:
                row = await session.get(SqlQA, item.id)
                if row is not None:
                    records.append(_to_record(row, score=float(item.score)))
        return records

    async def get_canonical(self, record_id: int) -> Optional[CanonicalRecord]:
        async with self._session_maker() as session:
            row = await session.get(SqlQA, record_id)
        return _to_record(row) if row else None

    async def insert_canonical(
        self,
        question: str,
        normalized_question: str,
        sql: str,
        embedding: np.ndarray,
        tenant: str,
        db_key: str,
        chunk_id: Optional[int] = None,
    ) -> CanonicalRecord:
        async with self._session_maker() as session:
            row = SqlQA(
                tenant_id=tenant,
                db_key=db_key,
                question=question,
                question_normalized=normalized_question,
                sql=sql,
                chunk_id=chunk_id,
            )
            session.add(row)
            await session.flush()
            await self._set_embedding(session, "sql_qa", row.id, embedding)
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def update_canonical(
        self,
        record_id: int,
        question: str,
        normalized_question: str,
        sql: str,
        embedding: np.ndarray,
    ) -> Optional[CanonicalRecord]:
        async with self._session_maker() as session:
            row = await session.get(SqlQA, record_id)
            if row is None:
                return None
            row.question = question
            row.question_normalized = normalized_question
            row.sql = sql
            row.updated_at = utc_now()
            await session.flush()
            await self._set_embedding(session, "sql_qa", record_id, embedding)
            await session.commit()
            await session.refresh(row)
            return _to_record(row)

    async def touch_canonical(self, record_id: int) -> None:
        async with self._session_maker() as session:
            await session.execute(
                text("""
                    UPDATE sql_qa
                    SET usage_count = usage_count + 1, last_used_at = now()
                    WHERE id = :id
                """),
                {"id": record_id},
            )
            await session.commit()

    async def delete_canonical(self, record_id: int) -> bool:
        async with self._session_maker() as session:
            result = await session.execute(delete(SqlQA).where(SqlQA.id == record_id))
            await session.commit()
            return result.rowcount > 0

    async def list_canonical(
        self, tenant: str, db_key: str, limit: int = 50, offset: int = 0
    ) -> list[CanonicalRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(SqlQA)
                .where(SqlQA.tenant_id == tenant, SqlQA.db_key == db_key)
                .order_by(SqlQA.updated_at.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = result.scalars().all()
        return [_to_record(row) for row in rows]

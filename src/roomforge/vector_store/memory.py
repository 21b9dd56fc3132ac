"""In-memory similarity store for tests and local runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import numpy as np

from roomforge.vector_store.models import CanonicalRecord, Collection, SearchHit, utc_now


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


@dataclass
class _Chunk:
    id: int
    collection: str
    tenant: str
    db_key: str
    content: str
    embedding: np.ndarray
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class _Canonical:
    id: int
    tenant: str
    db_key: str
    question: str
    normalized: str
    sql: str
    embedding: np.ndarray
    chunk_id: Optional[int]
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_record(self, score: Optional[float] = None) -> CanonicalRecord:
        return CanonicalRecord(
            id=self.id,
            question=self.question,
            sql=self.sql,
            chunk_id=self.chunk_id,
            usage_count=self.usage_count,
            last_used_at=self.last_used_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
            score=score,
        )


class MockVectorStore:
    """Dict-backed store with exact cosine search over numpy vectors."""

    def __init__(self):
        self._chunks: dict[int, _Chunk] = {}
        self._canonical: dict[int, _Canonical] = {}
        self._next_chunk_id = 1
        self._next_canonical_id = 1

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    def chunks(self, collection: Collection) -> list[str]:
        return [c.content for c in self._chunks.values() if c.collection == Collection(collection).value]

    async def add_chunk(
        self,
        collection: Collection,
        content: str,
        embedding: np.ndarray,
        tenant: str,
        db_key: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        chunk_id = self._next_chunk_id
        self._next_chunk_id += 1
        self._chunks[chunk_id] = _Chunk(
            id=chunk_id,
            collection=Collection(collection).value,
            tenant=tenant,
            db_key=db_key,
            content=content,
            embedding=np.asarray(embedding, dtype=np.float32),
            metadata=dict(metadata or {}),
        )
        return chunk_id

    async def update_chunk(self, chunk_id: int, content: str, embedding: np.ndarray) -> bool:
        chunk = self._chunks.get(chunk_id)
        if chunk is None:
            return False
        chunk.content = content
        chunk.embedding = np.asarray(embedding, dtype=np.float32)
        return True

    async def delete_chunk(self, chunk_id: int) -> bool:
        return self._chunks.pop(chunk_id, None) is not None

    async def clear_collection(self, collection: Collection, tenant: str, db_key: str) -> int:
        doomed = [
            c.id for c in self._chunks.values()
            if c.collection == Collection(collection).value and c.tenant == tenant and c.db_key == db_key
        ]
        for chunk_id in doomed:
            del self._chunks[chunk_id]
        return len(doomed)

    async def similarity_search(
        self,
        embedding: np.ndarray,
        collection: Collection,
        limit: int,
        threshold: float,
        tenant: str,
        db_key: str,
    ) -> list[SearchHit]:
        hits = []
        for chunk in self._chunks.values():
            if chunk.collection != Collection(collection).value:
                continue
            if chunk.tenant != tenant or chunk.db_key != db_key:
                continue
            score = _cosine(embedding, chunk.embedding)
            if score >= threshold:
                hits.append(SearchHit(id=chunk.id, content=chunk.content, score=score, metadata=chunk.metadata))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def find_canonical_exact(
        self, normalized_question: str, tenant: str, db_key: str
    ) -> Optional[CanonicalRecord]:
        for entry in sorted(self._canonical.values(), key=lambda e: e.updated_at, reverse=True):
            if entry.tenant == tenant and entry.db_key == db_key and entry.normalized == normalized_question:
                return entry.to_record(score=1.0)
        return None

    async def search_canonical(
        self, embedding: np.ndarray, limit: int, tenant: str, db_key: str
    ) -> list[CanonicalRecord]:
        scored = [
            (_cosine(embedding, entry.embedding), entry)
            for entry in self._canonical.values()
            if entry.tenant == tenant and entry.db_key == db_key
        ]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [entry.to_record(score=score) for score, entry in scored[:limit]]

    async def get_canonical(self, record_id: int) -> Optional[CanonicalRecord]:
        entry = self._canonical.get(record_id)
        return entry.to_record() if entry else None

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
        record_id = self._next_canonical_id
        self._next_canonical_id += 1
        entry = _Canonical(
            id=record_id,
            tenant=tenant,
            db_key=db_key,
            question=question,
            normalized=normalized_question,
            sql=sql,
            embedding=np.asarray(embedding, dtype=np.float32),
            chunk_id=chunk_id,
        )
        self._canonical[record_id] = entry
        return entry.to_record()

    async def update_canonical(
        self,
        record_id: int,
        question: str,
        normalized_question: str,
        sql: str,
        embedding: np.ndarray,
    ) -> Optional[CanonicalRecord]:
        entry = self._canonical.get(record_id)
        if entry is None:
            return None
        entry.question = question
        entry.normalized = normalized_question
        entry.sql = sql
        entry.embedding = np.asarray(embedding, dtype=np.float32)
        entry.updated_at = utc_now()
        return entry.to_record()

    async def touch_canonical(self, record_id: int) -> None:
        entry = self._canonical.get(record_id)
        if entry is not None:
            entry.usage_count += 1
            entry.last_used_at = utc_now()

    async def delete_canonical(self, record_id: int) -> bool:
        return self._canonical.pop(record_id, None) is not None

    async def list_canonical(
        self, tenant: str, db_key: str, limit: int = 50, offset: int = 0
    ) -> list[CanonicalRecord]:
        entries = [
            e for e in self._canonical.values()
            if e.tenant == tenant and e.db_key == db_key
        ]
        entries.sort(key=lambda e: e.updated_at, reverse=True)
        return [e.to_record() for e in entries[offset:offset + limit]]

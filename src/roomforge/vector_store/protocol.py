"""Similarity store protocol."""

from typing import Any, Optional, Protocol, runtime_checkable

import numpy as np

from roomforge.vector_store.models import CanonicalRecord, Collection, SearchHit


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Nearest-neighbour search over chunk collections plus the canonical table."""

    async def add_chunk(
        self,
        collection: Collection,
        content: str,
        embedding: np.ndarray,
        tenant: str,
        db_key: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        ...

    async def update_chunk(self, chunk_id: int, content: str, embedding: np.ndarray) -> bool:
        ...

    async def delete_chunk(self, chunk_id: int) -> bool:
        ...

    async def clear_collection(self, collection: Collection, tenant: str, db_key: str) -> int:
        ...

    async def similarity_search(
        self,
        embedding: np.ndarray,
        collection: Collection,
        limit: int,
        threshold: float,
        tenant: str,
        db_key: str,
    ) -> list[SearchHit]:
        ...

    async def find_canonical_exact(
        self, normalized_question: str, tenant: str, db_key: str
    ) -> Optional[CanonicalRecord]:
        ...

    async def search_canonical(
        self, embedding: np.ndarray, limit: int, tenant: str, db_key: str
    ) -> list[CanonicalRecord]:
        ...

    async def get_canonical(self, record_id: int) -> Optional[CanonicalRecord]:
        ...

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
        ...

    async def update_canonical(
        self,
        record_id: int,
        question: str,
        normalized_question: str,
        sql: str,
        embedding: np.ndarray,
    ) -> Optional[CanonicalRecord]:
        ...

    async def touch_canonical(self, record_id: int) -> None:
        ...

    async def delete_canonical(self, record_id: int) -> bool:
        ...

    async def list_canonical(
        self, tenant: str, db_key: str, limit: int = 50, offset: int = 0
    ) -> list[CanonicalRecord]:
        ...

"""Knowledge service: retrieval, canonical reuse and QA persistence."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from roomforge.core.exceptions import NotFoundError
from roomforge.embedding.protocol import EmbeddingProtocol
from roomforge.knowledge.models import TeachResult
from roomforge.schemas.pipeline import CanonicalDecision, CanonicalMode, PersistOutcome
from roomforge.settings.rag import RagSettings
from roomforge.utils.text import normalize_question
from roomforge.vector_store.models import CanonicalRecord, Collection, SearchHit
from roomforge.vector_store.protocol import VectorStoreProtocol

logger = logging.getLogger(__name__)

_SQL_WHITESPACE = re.compile(r"\s+")


def _same_sql(a: str, b: str) -> bool:
    def canon(sql: str) -> str:
        return _SQL_WHITESPACE.sub(" ", sql.strip().rstrip(";").strip()).lower()
    return canon(a) == canon(b)


def qa_chunk_content(question: str, sql: str) -> str:
    return f"Q: {question}\nSQL: {sql}"


def split_schema(schema_text: str, lines_per_chunk: int) -> list[str]:
    """Split a schema description into chunks of ``lines_per_chunk`` non-empty lines."""
    lines = [line.rstrip() for line in schema_text.splitlines() if line.strip()]
    size = max(1, lines_per_chunk)
    return ["\n".join(lines[i:i + size]) for i in range(0, len(lines), size)]


class KnowledgeService:
    """Facade over the similarity store for every pipeline stage.

    Retrieval helpers never raise: a failed lookup is logged and yields empty
    context. Canonical decisions degrade to ``CanonicalMode.NONE``.

    Example:
        ```python
        knowledge = KnowledgeService(store, embedder)
        await knowledge.ingest_schema(STATIC_SCHEMA)
        decision = await knowledge.decide_canonical("phòng dưới 4 triệu")
        ```
    """

    def __init__(
        self,
        store: VectorStoreProtocol,
        embedder: EmbeddingProtocol,
        settings: Optional[RagSettings] = None,
    ):
        self._store = store
        self._embedder = embedder
        self._settings = settings or RagSettings()

    @property
    def settings(self) -> RagSettings:
        return self._settings

    @property
    def tenant(self) -> str:
        return self._settings.tenant_id

    @property
    def db_key(self) -> str:
        return self._settings.db_key

    # Ingestion

    async def ingest_schema(self, schema_text: str) -> int:
        """Replace the schema collection with chunks of the given description."""
        chunks = split_schema(schema_text, self._settings.schema_chunk_lines)
        return await self._replace_collection(Collection.SCHEMA, chunks)

    async def ingest_business(self, passages: list[str]) -> int:
        return await self._replace_collection(
            Collection.BUSINESS, [p.strip() for p in passages if p.strip()]
        )

    async def _replace_collection(self, collection: Collection, contents: list[str]) -> int:
        embeddings = await self._embedder.embed_batch(contents)
        removed = await self._store.clear_collection(collection, self.tenant, self.db_key)
        for index, (content, embedding) in enumerate(zip(contents, embeddings)):
            await self._store.add_chunk(
                collection,
                content,
                embedding,
                self.tenant,
                self.db_key,
                metadata={"chunk_index": index},
            )
        logger.info(
            f"Ingested {len(contents)} {collection.value} chunks (replaced {removed})"
        )
        return len(contents)

    # Retrieval

    async def similarity_search(
        self,
        query: str,
        collection: Collection,
        limit: int,
        threshold: float,
    ) -> list[SearchHit]:
        embedding = await self._embedder.embed(query)
        return await self._store.similarity_search(
            embedding, collection, limit, threshold, self.tenant, self.db_key
        )

    async def _retrieve_context(
        self, query: str, collection: Collection, limit: int, threshold: float
    ) -> str:
        try:
            hits = await self.similarity_search(query, collection, limit, threshold)
        except Exception as e:
            logger.warning(f"{collection.value} retrieval failed, continuing without it: {e}")
            return ""
        return "\n\n".join(hit.content for hit in hits)

    async def retrieve_schema_context(self, query: str) -> str:
        return await self._retrieve_context(
            query, Collection.SCHEMA, self._settings.schema_limit, self._settings.schema_threshold
        )

    async def retrieve_qa_context(self, query: str) -> str:
        return await self._retrieve_context(
            query, Collection.QA, self._settings.qa_limit, self._settings.qa_threshold
        )

    async def retrieve_business_context(self, query: str) -> str:
        return await self._retrieve_context(
            query,
            Collection.BUSINESS,
            self._settings.business_limit,
            self._settings.business_threshold,
        )

    # Canonical reuse

    async def decide_canonical(self, query: str) -> CanonicalDecision:
        """Two-threshold reuse decision for a question.

        An exact normalized-question match counts as similarity 1.0.
        ``>= hard`` reuses the stored SQL, ``>= soft`` offers it as a hint.
        """
        try:
            exact = await self._store.find_canonical_exact(
                normalize_question(query), self.tenant, self.db_key
            )
            if exact is not None:
                return CanonicalDecision(mode=CanonicalMode.REUSE, record=exact, score=1.0)

            embedding = await self._embedder.embed(query)
            candidates = await self._store.search_canonical(
                embedding, self._settings.canonical_search_limit, self.tenant, self.db_key
            )
        except Exception as e:
            logger.warning(f"Canonical lookup failed, generating from scratch: {e}")
            return CanonicalDecision()

        if not candidates:
            return CanonicalDecision()

        best = candidates[0]
        score = best.score or 0.0
        if score >= self._settings.canonical_hard_threshold:
            mode = CanonicalMode.REUSE
        elif score >= self._settings.canonical_soft_threshold:
            mode = CanonicalMode.HINT
        else:
            mode = CanonicalMode.NONE
        logger.debug(f"Canonical decision {mode.value} (score={score:.3f}, id={best.id})")
        return CanonicalDecision(mode=mode, record=best, score=score)

    async def mark_canonical_used(self, record_id: int) -> None:
        try:
            await self._store.touch_canonical(record_id)
        except Exception as e:
            logger.warning(f"Failed to record canonical usage for {record_id}: {e}")

    # Persistence

    async def save_qa_interaction(
        self,
        question: str,
        sql: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> PersistOutcome:
        """Insert a validated (question, SQL) pair unless an equivalent one exists.

        Reuse order: exact normalized question, then a canonical question with
        similarity at or above the dedup threshold and the same SQL.
        """
        normalized = normalize_question(question)

        exact = await self._store.find_canonical_exact(normalized, self.tenant, self.db_key)
        if exact is not None:
            logger.debug(f"Reusing canonical QA (exact) id={exact.id}")
            return PersistOutcome(
                persisted=True,
                mode="direct",
                record_id=exact.id,
                chunk_id=exact.chunk_id,
                was_reused=True,
                message="Exact question already stored",
            )

        embedding = await self._embedder.embed(question)
        near = await self._store.search_canonical(embedding, 1, self.tenant, self.db_key)
        if near and (near[0].score or 0.0) >= self._settings.dedup_threshold and _same_sql(near[0].sql, sql):
            logger.debug(f"Reusing canonical QA (score={near[0].score:.3f}) id={near[0].id}")
            return PersistOutcome(
                persisted=True,
                mode="direct",
                record_id=near[0].id,
                chunk_id=near[0].chunk_id,
                was_reused=True,
                message="Near-duplicate question with the same SQL already stored",
            )

        chunk_id = await self._store.add_chunk(
            Collection.QA,
            qa_chunk_content(question, sql),
            embedding,
            self.tenant,
            self.db_key,
            metadata={"question": question, **(metadata or {})},
        )
        record = await self._store.insert_canonical(
            question, normalized, sql, embedding, self.tenant, self.db_key, chunk_id=chunk_id
        )
        logger.info(f"Saved QA interaction chunk={chunk_id} sql_qa={record.id}")
        return PersistOutcome(
            persisted=True,
            mode="direct",
            record_id=record.id,
            chunk_id=chunk_id,
            was_reused=False,
            message="Stored new canonical QA",
        )

    # Administration

    async def teach_or_update(
        self,
        question: str,
        sql: str,
        record_id: Optional[int] = None,
    ) -> TeachResult:
        """Insert a canonical pair, or overwrite ``record_id`` when given.

        Raises:
            NotFoundError: If ``record_id`` does not exist
        """
        question = question.strip()
        sql = sql.strip()
        embedding = await self._embedder.embed(question)
        content = qa_chunk_content(question, sql)

        if record_id is None:
            chunk_id = await self._store.add_chunk(
                Collection.QA, content, embedding, self.tenant, self.db_key,
                metadata={"question": question, "source": "admin"},
            )
            record = await self._store.insert_canonical(
                question, normalize_question(question), sql, embedding,
                self.tenant, self.db_key, chunk_id=chunk_id,
            )
            logger.info(f"Taught new canonical QA id={record.id}")
            return TeachResult(chunk_id=chunk_id, sql_qa_id=record.id, is_update=False)

        existing = await self._store.get_canonical(record_id)
        if existing is None:
            raise NotFoundError(f"Canonical QA {record_id} not found", record_id=str(record_id))

        chunk_id = existing.chunk_id
        if chunk_id is None or not await self._store.update_chunk(chunk_id, content, embedding):
            chunk_id = await self._store.add_chunk(
                Collection.QA, content, embedding, self.tenant, self.db_key,
                metadata={"question": question, "source": "admin"},
            )
        await self._store.update_canonical(
            record_id, question, normalize_question(question), sql, embedding
        )
        logger.info(f"Updated canonical QA id={record_id}")
        return TeachResult(chunk_id=chunk_id, sql_qa_id=record_id, is_update=True)

    async def delete_knowledge(self, record_id: int) -> bool:
        existing = await self._store.get_canonical(record_id)
        if existing is None:
            return False
        if existing.chunk_id is not None:
            await self._store.delete_chunk(existing.chunk_id)
        return await self._store.delete_canonical(record_id)

    async def get_canonical(self, record_id: int) -> Optional[CanonicalRecord]:
        return await self._store.get_canonical(record_id)

    async def list_canonical(self, limit: int = 50, offset: int = 0) -> list[CanonicalRecord]:
        return await self._store.list_canonical(self.tenant, self.db_key, limit, offset)

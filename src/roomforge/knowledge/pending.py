"""Pending-knowledge queue: validated pairs awaiting administrator review."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from roomforge.core.exceptions import NotFoundError
from roomforge.knowledge.models import PendingKnowledge, PendingKnowledgeRecord, PendingStatus
from roomforge.knowledge.service import KnowledgeService
from roomforge.schemas.pipeline import PersistOutcome, ValidationResult
from roomforge.settings.rag import RagSettings
from roomforge.vector_store.models import utc_now

logger = logging.getLogger(__name__)

OnClaimed = Callable[[PendingKnowledgeRecord], Awaitable[Optional[int]]]


def _transition_values(target: PendingStatus, actor: str, reason: Optional[str]) -> dict[str, Any]:
    now = utc_now()
    values: dict[str, Any] = {"status": target.value, "updated_at": now}
    if target == PendingStatus.APPROVED:
        values.update(approved_by=actor, approved_at=now)
    else:
        values.update(rejected_by=actor, rejected_at=now, rejection_reason=reason)
    return values


@runtime_checkable
class PendingKnowledgeStoreProtocol(Protocol):
    async def create(
        self,
        question: str,
        sql: str,
        canonical_question: Optional[str] = None,
        evaluation: Optional[str] = None,
        validator_data: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PendingKnowledgeRecord:
        ...

    async def get(self, record_id: int) -> Optional[PendingKnowledgeRecord]:
        ...

    async def list(
        self,
        status: Optional[PendingStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PendingKnowledgeRecord], int]:
        ...

    async def transition(
        self,
        record_id: int,
        target: PendingStatus,
        actor: str,
        reason: Optional[str] = None,
        on_claimed: Optional[OnClaimed] = None,
    ) -> tuple[bool, Optional[int]]:
        """Move a pending record to ``target``.

        Returns ``(False, None)`` when the record is no longer pending. When
        ``on_claimed`` raises, the record stays pending.
        """
        ...


class SqlPendingKnowledgeStore:
    """PostgreSQL-backed queue.

    Transitions run as ``UPDATE ... WHERE status = 'pending'`` inside one
    transaction; the row lock taken by the update serializes concurrent
    reviewers until the claim commits or rolls back.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: Optional[RagSettings] = None,
    ):
        self._session_maker = session_maker
        self._settings = settings or RagSettings()

    @staticmethod
    def _to_record(row: PendingKnowledge) -> PendingKnowledgeRecord:
        data = row.model_dump()
        data["validator_data"] = row.validator_data or {}
        return PendingKnowledgeRecord.model_validate(data)

    async def create(
        self,
        question: str,
        sql: str,
        canonical_question: Optional[str] = None,
        evaluation: Optional[str] = None,
        validator_data: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PendingKnowledgeRecord:
        row = PendingKnowledge(
            tenant_id=self._settings.tenant_id,
            db_key=self._settings.db_key,
            question=question,
            canonical_question=canonical_question,
            sql=sql,
            evaluation=evaluation,
            validator_data=validator_data or {},
            session_id=session_id,
            user_id=user_id,
        )
        async with self._session_maker() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return self._to_record(row)

    async def get(self, record_id: int) -> Optional[PendingKnowledgeRecord]:
        async with self._session_maker() as session:
            row = await session.get(PendingKnowledge, record_id)
            return self._to_record(row) if row else None

    async def list(
        self,
        status: Optional[PendingStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PendingKnowledgeRecord], int]:
        scope = [
            PendingKnowledge.tenant_id == self._settings.tenant_id,
            PendingKnowledge.db_key == self._settings.db_key,
        ]
        if status:
            scope.append(PendingKnowledge.status == status.value)

        async with self._session_maker() as session:
            total = (
                await session.execute(select(func.count(PendingKnowledge.id)).where(*scope))
            ).scalar() or 0
            query = (
                select(PendingKnowledge)
                .where(*scope)
                .order_by(PendingKnowledge.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = (await session.execute(query)).scalars().all()
            return [self._to_record(row) for row in rows], total

    async def transition(
        self,
        record_id: int,
        target: PendingStatus,
        actor: str,
        reason: Optional[str] = None,
        on_claimed: Optional[OnClaimed] = None,
    ) -> tuple[bool, Optional[int]]:
        async with self._session_maker() as session:
            async with session.begin():
                result = await session.execute(
                    update(PendingKnowledge)
                    .where(
                        PendingKnowledge.id == record_id,
                        PendingKnowledge.status == PendingStatus.PENDING.value,
                    )
                    .values(**_transition_values(target, actor, reason))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return False, None

                outcome = None
                if on_claimed is not None:
                    row = await session.get(PendingKnowledge, record_id)
                    outcome = await on_claimed(self._to_record(row))
                    if outcome is not None:
                        await session.execute(
                            update(PendingKnowledge)
                            .where(PendingKnowledge.id == record_id)
                            .values(sql_qa_id=outcome)
                            .execution_options(synchronize_session=False)
                        )
                return True, outcome


class MockPendingKnowledgeStore:
    """In-memory queue; one lock serializes every transition."""

    def __init__(self):
        self._records: dict[int, PendingKnowledgeRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(
        self,
        question: str,
        sql: str,
        canonical_question: Optional[str] = None,
        evaluation: Optional[str] = None,
        validator_data: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PendingKnowledgeRecord:
        async with self._lock:
            record = PendingKnowledgeRecord(
                id=self._next_id,
                question=question,
                canonical_question=canonical_question,
                sql=sql,
                evaluation=evaluation,
                validator_data=validator_data or {},
                session_id=session_id,
                user_id=user_id,
            )
            self._records[record.id] = record
            self._next_id += 1
            return record

    async def get(self, record_id: int) -> Optional[PendingKnowledgeRecord]:
        return self._records.get(record_id)

    async def list(
        self,
        status: Optional[PendingStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PendingKnowledgeRecord], int]:
        records = [r for r in self._records.values() if status is None or r.status == status]
        records.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return records[offset:offset + limit], len(records)

    async def transition(
        self,
        record_id: int,
        target: PendingStatus,
        actor: str,
        reason: Optional[str] = None,
        on_claimed: Optional[OnClaimed] = None,
    ) -> tuple[bool, Optional[int]]:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None or record.status != PendingStatus.PENDING:
                return False, None

            outcome = await on_claimed(record) if on_claimed is not None else None
            values = _transition_values(target, actor, reason)
            values["status"] = target
            if outcome is not None:
                values["sql_qa_id"] = outcome
            self._records[record_id] = record.model_copy(update=values)
            return True, outcome


class PendingKnowledgeService:
    """Review workflow: list, inspect, approve into the knowledge base, reject."""

    def __init__(self, store: PendingKnowledgeStoreProtocol, knowledge: KnowledgeService):
        self._store = store
        self._knowledge = knowledge

    async def submit(
        self,
        question: str,
        sql: str,
        validation: Optional[ValidationResult] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        canonical_question: Optional[str] = None,
    ) -> PersistOutcome:
        record = await self._store.create(
            question=question,
            sql=sql,
            canonical_question=canonical_question,
            evaluation=validation.evaluation if validation else None,
            validator_data=validation.model_dump(mode="json") if validation else None,
            session_id=session_id,
            user_id=user_id,
        )
        logger.info(f"Queued pending knowledge id={record.id}")
        return PersistOutcome(
            persisted=True,
            mode="pending",
            record_id=record.id,
            message="Queued for review",
        )

    async def list_pending(
        self,
        status: Optional[PendingStatus] = PendingStatus.PENDING,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[PendingKnowledgeRecord], int]:
        return await self._store.list(status, limit, offset)

    async def get_pending(self, record_id: int) -> Optional[PendingKnowledgeRecord]:
        return await self._store.get(record_id)

    async def _require(self, record_id: int) -> PendingKnowledgeRecord:
        record = await self._store.get(record_id)
        if record is None:
            raise NotFoundError("Pending item not found", record_id=str(record_id))
        return record

    async def _already_processed(self, record_id: int) -> str:
        record = await self._require(record_id)
        return f"Item already {record.status.value}"

    async def approve(self, record_id: int, approver: str) -> tuple[bool, Optional[int], str]:
        """Approve a pending pair and persist it as canonical knowledge.

        Returns:
            ``(success, sql_qa_id, message)``

        Raises:
            NotFoundError: If the record does not exist
        """
        await self._require(record_id)

        async def persist(record: PendingKnowledgeRecord) -> Optional[int]:
            outcome = await self._knowledge.save_qa_interaction(
                record.canonical_question or record.question,
                record.sql,
                metadata={"source": "pending", "pending_id": record.id},
            )
            return outcome.record_id

        try:
            success, sql_qa_id = await self._store.transition(
                record_id, PendingStatus.APPROVED, approver, on_claimed=persist
            )
        except Exception as e:
            logger.error(f"Approval of pending knowledge id={record_id} failed: {e}")
            return False, None, f"Approval failed: {e}"
        if not success:
            return False, None, await self._already_processed(record_id)

        logger.info(f"Approved pending knowledge id={record_id} by {approver}")
        return True, sql_qa_id, "Item approved successfully"

    async def reject(
        self,
        record_id: int,
        rejecter: str,
        reason: Optional[str] = None,
    ) -> tuple[bool, str]:
        await self._require(record_id)
        success, _ = await self._store.transition(
            record_id, PendingStatus.REJECTED, rejecter, reason=reason
        )
        if not success:
            return False, await self._already_processed(record_id)

        logger.info(f"Rejected pending knowledge id={record_id} by {rejecter}")
        return True, "Item rejected"

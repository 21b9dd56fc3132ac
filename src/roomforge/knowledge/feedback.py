"""Persistence of validated interactions back into the knowledge base."""

from __future__ import annotations

import logging
from typing import Optional

from roomforge.knowledge.pending import PendingKnowledgeService
from roomforge.knowledge.service import KnowledgeService
from roomforge.schemas.pipeline import PersistOutcome, ValidationResult, ValidationSeverity

logger = logging.getLogger(__name__)


def should_persist(validation: Optional[ValidationResult], sql: Optional[str]) -> bool:
    if validation is None or not sql or not sql.strip():
        return False
    return validation.is_valid and validation.severity != ValidationSeverity.ERROR


class FeedbackRecorder:
    """Stores passing (question, SQL) pairs directly or queues them for review.

    ``record`` never raises; failures are logged and reported in the outcome.
    """

    def __init__(
        self,
        knowledge: KnowledgeService,
        pending: PendingKnowledgeService,
        auto_persist: bool = True,
    ):
        self._knowledge = knowledge
        self._pending = pending
        self._auto_persist = auto_persist

    async def record(
        self,
        question: str,
        sql: Optional[str],
        validation: Optional[ValidationResult],
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        canonical_question: Optional[str] = None,
    ) -> PersistOutcome:
        """Persist ``question`` and ``sql``.

        ``canonical_question`` is the self-contained form of a follow-up; when
        given it is what gets stored as the canonical question.
        """
        if not should_persist(validation, sql):
            reason = validation.reason if validation else "no validation"
            return PersistOutcome(persisted=False, message=f"Not persisted: {reason}")

        try:
            if self._auto_persist:
                metadata = {"source": "chat", "session_id": session_id}
                if canonical_question:
                    metadata["original_question"] = question
                return await self._knowledge.save_qa_interaction(
                    canonical_question or question, sql, metadata=metadata
                )
            return await self._pending.submit(
                question,
                sql,
                validation=validation,
                session_id=session_id,
                user_id=user_id,
                canonical_question=canonical_question,
            )
        except Exception as e:
            logger.error(f"Failed to persist interaction: {e}")
            return PersistOutcome(persisted=False, mode="failed", message=str(e))

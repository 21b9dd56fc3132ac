"""Retrieval-augmented SQL generation with a bounded generate/check/execute loop."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from roomforge.core.exceptions import AuthorizationError, SqlGenerationError
from roomforge.prompts.registry import PromptRegistry, get_prompt_registry
from roomforge.prompts.schema import STATIC_SCHEMA
from roomforge.schemas.pipeline import (
    CanonicalDecision,
    CanonicalMode,
    GenerationAttempt,
    GenerationResult,
    IntentAction,
    IntentDecision,
    UserRole,
)
from roomforge.settings.generation import GenerationSettings
from roomforge.utils.query_validator import RENTAL_TABLES, QueryValidator
from roomforge.utils.serializer import serialize_rows
from roomforge.utils.text import ensure_terminator, sql_literal, strip_code_fences, truncate

if TYPE_CHECKING:
    from roomforge.db.executor import QueryExecutorProtocol
    from roomforge.inference.client import InferenceClient
    from roomforge.knowledge.service import KnowledgeService
    from roomforge.session.models import ChatSession

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def scope_column(role: UserRole) -> str:
    return "rentals.owner_id" if role == UserRole.LANDLORD else "rentals.tenant_id"


def format_intent_hints(intent: IntentDecision) -> str:
    lines = [f"- Intent action: {intent.intent_action.value}"]
    if intent.entity_hint:
        lines.append(f"- Entity: {intent.entity_hint}")
    if intent.filters_hint:
        lines.append(f"- Filters: {intent.filters_hint}")
    if intent.tables_hint:
        lines.append(f"- Tables (minimal): {', '.join(intent.tables_hint)}")
    if intent.relationships_hint:
        lines.append(f"- Joins: {intent.relationships_hint}")
    return "\n".join(lines)


class SqlGenerationAgent:
    """Turns a classified question into executed, serialized rows.

    1. Canonical decision: reuse stored SQL (hard threshold), offer it as a
       hint (soft threshold) or ignore it.
    2. Context: schema passages always, QA examples only in hint mode; empty
       retrieval falls back to the static schema.
    3. Up to ``max_attempts`` passes of generate, safety gate, execute. Each
       failure is recorded as an immutable ``GenerationAttempt`` and shown to
       the next pass.

    Raises:
        AuthorizationError: Personal data requested without a caller id
        SqlGenerationError: All attempts failed
    """

    def __init__(
        self,
        llm: "InferenceClient",
        knowledge: "KnowledgeService",
        executor: "QueryExecutorProtocol",
        settings: Optional[GenerationSettings] = None,
        validator: Optional[QueryValidator] = None,
        prompts: Optional[PromptRegistry] = None,
        history_window: int = 10,
        sleep: Sleep = asyncio.sleep,
    ):
        self._llm = llm
        self._knowledge = knowledge
        self._executor = executor
        self._settings = settings or GenerationSettings()
        self._validator = validator or QueryValidator(
            max_limit=self._settings.max_row_limit, allowed_tables=RENTAL_TABLES
        )
        self._prompts = prompts or get_prompt_registry()
        self._history_window = history_window
        self._sleep = sleep

    def security_context(self, intent: IntentDecision) -> str:
        if not intent.user_id:
            return self._prompts.get("security_anonymous")
        variables = dict(
            user_id=intent.user_id,
            user_role=intent.user_role.value,
            scope_column=scope_column(intent.user_role),
            user_literal=sql_literal(intent.user_id),
        )
        if intent.intent_action == IntentAction.OWN:
            return self._prompts.get("security_own", **variables)
        return self._prompts.get("security_search", **variables)

    async def generate(
        self,
        query: str,
        session: "ChatSession",
        intent: IntentDecision,
    ) -> GenerationResult:
        if intent.intent_action == IntentAction.OWN and not intent.user_id:
            raise AuthorizationError("Personal data query reached SQL generation without a caller id")

        decision = await self._knowledge.decide_canonical(query)
        if decision.mode == CanonicalMode.REUSE and intent.intent_action == IntentAction.OWN:
            # Stored SQL embeds another caller's id
            decision = decision.model_copy(update={"mode": CanonicalMode.HINT})

        if decision.mode == CanonicalMode.REUSE:
            reused = await self._reuse(decision, intent)
            if reused is not None:
                return reused

        schema_context = await self._knowledge.retrieve_schema_context(query)
        qa_examples = ""
        if decision.mode == CanonicalMode.HINT:
            qa_examples = await self._knowledge.retrieve_qa_context(query)

        base_vars = dict(
            schema_context=schema_context,
            static_schema=STATIC_SCHEMA,
            qa_examples=qa_examples,
            business_context=intent.business_context,
            intent_hints=format_intent_hints(intent),
            security_context=self.security_context(intent),
            recent_messages=session.recent_transcript(self._history_window),
            query=query,
            limit=self._settings.max_row_limit,
        )
        if decision.mode == CanonicalMode.HINT and decision.record is not None:
            base_vars.update(
                canonical_hint=decision.record.sql,
                canonical_question=decision.record.question,
                canonical_score=f"{decision.score:.2f}",
            )
        context_summary = (
            f"schema={'rag' if schema_context else 'static'} "
            f"qa={'yes' if qa_examples else 'no'} canonical={decision.mode.value}"
        )

        history: list[GenerationAttempt] = []
        max_attempts = max(1, self._settings.max_attempts)
        for number in range(1, max_attempts + 1):
            attempt, rows = await self._attempt(number, base_vars, context_summary, history)
            history.append(attempt)
            if attempt.succeeded:
                logger.info(f"SQL generated in {number} attempt(s), {len(rows)} rows")
                return GenerationResult(
                    sql=attempt.sql or "",
                    results=rows,
                    count=len(rows),
                    attempts=number,
                    user_id=intent.user_id,
                    user_role=intent.user_role,
                    canonical=decision,
                    history=tuple(history),
                )
            logger.warning(f"SQL attempt {number}/{max_attempts} failed: {attempt.error}")
            if number < max_attempts:
                await self._sleep(self._settings.retry_delay_seconds)

        last_error = history[-1].error if history else "unknown error"
        raise SqlGenerationError(
            f"Failed to generate valid SQL after {max_attempts} attempts. Last error: {last_error}",
            attempts=history,
        )

    async def _reuse(
        self, decision: CanonicalDecision, intent: IntentDecision
    ) -> Optional[GenerationResult]:
        record = decision.record
        try:
            rows = serialize_rows(await self._executor.execute_read_only(record.sql))
        except Exception as e:
            logger.warning(f"Canonical SQL {record.id} failed, generating instead: {e}")
            return None

        await self._knowledge.mark_canonical_used(record.id)
        logger.info(f"Reused canonical SQL {record.id} (score={decision.score:.3f})")
        return GenerationResult(
            sql=record.sql,
            results=rows,
            count=len(rows),
            attempts=1,
            user_id=intent.user_id,
            user_role=intent.user_role,
            canonical=decision,
            history=(
                GenerationAttempt(attempt=1, context_summary="canonical reuse", sql=record.sql),
            ),
        )

    async def _attempt(
        self,
        number: int,
        base_vars: dict,
        context_summary: str,
        history: list[GenerationAttempt],
    ) -> tuple[GenerationAttempt, list[dict[str, Any]]]:
        previous = history[-1] if history else None
        prompt = self._prompts.get(
            "sql_generation",
            **base_vars,
            last_error=previous.error if previous else None,
            previous_attempt=previous.attempt if previous else None,
            last_sql=previous.sql if previous else None,
        )

        raw = ""
        sql: Optional[str] = None
        try:
            raw = await self._llm.generate(prompt)
            sql = ensure_terminator(strip_code_fences(raw))
            check = self._validator.validate(sql)
            if not check.is_valid:
                return GenerationAttempt(
                    attempt=number,
                    context_summary=context_summary,
                    raw_output=raw,
                    sql=sql,
                    safety_violations=tuple(check.violations),
                    error=f"SQL rejected by safety check: {check.error}",
                ), []
            sql = check.sanitized_query
            rows = serialize_rows(await self._executor.execute_read_only(sql))
        except Exception as e:
            return GenerationAttempt(
                attempt=number,
                context_summary=context_summary,
                raw_output=raw,
                sql=sql,
                error=f"{type(e).__name__}: {truncate(str(e), 500)}",
            ), []

        return GenerationAttempt(
            attempt=number, context_summary=context_summary, raw_output=raw, sql=sql
        ), rows

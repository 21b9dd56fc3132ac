"""Per-turn chat pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Optional

from roomforge.core.exceptions import AuthorizationError, RequestTimeoutError, RoomForgeError, SqlGenerationError
from roomforge.inference import MessageRole
from roomforge.schemas.envelope import (
    ClarifyPayload,
    EnvelopeKind,
    ErrorPayload,
    ResponseEnvelope,
)
from roomforge.schemas.pipeline import CanonicalMode, IntentAction, IntentDecision, PersistOutcome, RequestType
from roomforge.utils.text import normalize_question
from roomforge.session.store import session_key
from roomforge.settings.generation import GenerationSettings

if TYPE_CHECKING:
    from roomforge.agents.orchestrator import Orchestrator
    from roomforge.agents.question_expansion import QuestionExpander
    from roomforge.agents.response_generator import ResponseGenerator
    from roomforge.agents.result_validator import ResultValidator
    from roomforge.agents.sql_generation import SqlGenerationAgent
    from roomforge.knowledge.feedback import FeedbackRecorder
    from roomforge.session.models import ChatMessage, ChatSession
    from roomforge.session.store import SessionStore

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = (
    "Xin lỗi, mình chưa thể tra cứu dữ liệu cho câu hỏi này. Bạn thử diễn đạt lại giúp mình nhé."
)
TIMEOUT_MESSAGE = "Yêu cầu mất quá nhiều thời gian để xử lý. Bạn vui lòng thử lại sau."
INTERNAL_ERROR_MESSAGE = "Đã có lỗi xảy ra khi xử lý yêu cầu. Bạn vui lòng thử lại sau."
LOGIN_MESSAGE = "Bạn cần đăng nhập để xem thông tin cá nhân."


def _intent_meta(intent: IntentDecision) -> dict[str, Any]:
    return intent.model_dump(
        mode="json",
        include={"request_type", "intent_action", "mode_hint", "entity_hint", "tables_hint", "user_role"},
    )


class ChatService:
    """Runs one chat turn end to end and always returns an envelope.

    Session -> Orchestrator -> (non-query short-circuit) -> follow-up expansion
    -> SQL generation -> result validation and response assembly in parallel
    -> knowledge feedback -> session update.

    Example:
        ```python
        envelope = await chat.process_turn("phòng dưới 4 triệu ở Gò Vấp", client_ip="10.0.0.1")
        envelope.kind        # EnvelopeKind.DATA
        envelope.payload     # ListPayload / TablePayload / ChartPayload
        ```
    """

    def __init__(
        self,
        sessions: "SessionStore",
        orchestrator: "Orchestrator",
        sql_agent: "SqlGenerationAgent",
        validator: "ResultValidator",
        responder: "ResponseGenerator",
        feedback: "FeedbackRecorder",
        settings: Optional[GenerationSettings] = None,
        expander: Optional["QuestionExpander"] = None,
    ):
        self._sessions = sessions
        self._orchestrator = orchestrator
        self._sql_agent = sql_agent
        self._validator = validator
        self._responder = responder
        self._feedback = feedback
        self._expander = expander
        self._settings = settings or GenerationSettings()

    async def process_turn(
        self,
        message: str,
        user_id: Optional[str] = None,
        client_ip: Optional[str] = None,
        current_page: Optional[str] = None,
    ) -> ResponseEnvelope:
        started = time.perf_counter()
        session = await self._sessions.get_or_create(user_id, client_ip, current_page)

        try:
            envelope = await asyncio.wait_for(
                self._run(message, session, user_id),
                timeout=self._settings.request_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = RequestTimeoutError(
                f"Request exceeded {self._settings.request_timeout_seconds}s"
            )
            envelope = self._error_envelope(session.session_id, TIMEOUT_MESSAGE, error)
        except AuthorizationError as e:
            logger.error(f"Personal query reached generation without identity: {e}")
            envelope = ResponseEnvelope(
                kind=EnvelopeKind.CONTROL,
                session_id=session.session_id,
                message=LOGIN_MESSAGE,
                payload=ClarifyPayload(requires_login=True),
            )
        except SqlGenerationError as e:
            envelope = self._error_envelope(session.session_id, GENERATION_FAILED_MESSAGE, e)
        except Exception as e:
            logger.exception(f"Chat turn failed: {e}")
            envelope = self._error_envelope(session.session_id, INTERNAL_ERROR_MESSAGE, e)

        meta = dict(envelope.meta or {})
        meta["timing_ms"] = round((time.perf_counter() - started) * 1000, 1)
        envelope = envelope.model_copy(update={"meta": meta})

        await self._sessions.append(session.session_id, MessageRole.USER, message)
        await self._sessions.append(
            session.session_id,
            MessageRole.ASSISTANT,
            envelope.message,
            envelope=envelope.model_dump(mode="json", by_alias=True, exclude={"meta"}),
        )
        return envelope

    async def _run(
        self,
        message: str,
        session: "ChatSession",
        user_id: Optional[str],
    ) -> ResponseEnvelope:
        intent = await self._orchestrator.decide(message, session, user_id)

        if intent.request_type in (RequestType.GREETING, RequestType.GENERAL_CHAT):
            return ResponseEnvelope(
                kind=EnvelopeKind.CONTENT,
                session_id=session.session_id,
                message=intent.message,
                meta={"intent": _intent_meta(intent)},
            )

        if not intent.ready_for_sql:
            return ResponseEnvelope(
                kind=EnvelopeKind.CONTROL,
                session_id=session.session_id,
                message=intent.message,
                payload=ClarifyPayload(
                    missing_params=list(intent.missing_params),
                    requires_login=intent.requires_login,
                ),
                meta={"intent": _intent_meta(intent)},
            )

        question = await self._expand(message, session)
        canonical_question = question if question != message else None

        result = await self._sql_agent.generate(question, session, intent)
        validation, response = await asyncio.gather(
            self._validator.validate(question, result.sql, result.results, intent, original_query=message),
            self._responder.generate(message, session, intent, result),
        )
        await self._sessions.remember_query(session.session_id, question, result.sql)

        if result.canonical.mode == CanonicalMode.REUSE:
            persisted: dict[str, Any] = {"persisted": False, "mode": "reused"}
        elif intent.intent_action == IntentAction.OWN:
            # SQL is scoped to this caller's id
            persisted = PersistOutcome(
                persisted=False, message="Not persisted: personal query"
            ).model_dump(mode="json")
        else:
            outcome = await self._feedback.record(
                message,
                result.sql,
                validation,
                session_id=session.session_id,
                user_id=user_id,
                canonical_question=canonical_question,
            )
            persisted = outcome.model_dump(mode="json")

        return ResponseEnvelope(
            kind=EnvelopeKind.DATA,
            session_id=session.session_id,
            message=response.message,
            payload=response.payload,
            meta={
                "sql": result.sql,
                "attempts": result.attempts,
                "count": result.count,
                "canonical_question": canonical_question,
                "canonical_mode": result.canonical.mode.value,
                "canonical_score": round(result.canonical.score, 4),
                "validation": validation.model_dump(mode="json", exclude={"evaluation"}),
                "intent": _intent_meta(intent),
                "persistence": persisted,
            },
        )

    async def _expand(self, message: str, session: "ChatSession") -> str:
        """Self-contained form of ``message`` when it follows a previous data turn."""
        previous = session.last_query
        if self._expander is None or not previous:
            return message
        expanded = await self._expander.expand(message, previous["sql"], previous.get("question"))
        if normalize_question(expanded) == normalize_question(message):
            return message
        return expanded

    def _error_envelope(self, session_id: str, message: str, error: Exception) -> ResponseEnvelope:
        code = error.code if isinstance(error, RoomForgeError) else "INTERNAL_ERROR"
        return ResponseEnvelope(
            kind=EnvelopeKind.CONTROL,
            session_id=session_id,
            message=message,
            payload=ErrorPayload(code=code, details=str(error)),
        )

    async def get_history(
        self, user_id: Optional[str] = None, client_ip: Optional[str] = None
    ) -> list["ChatMessage"]:
        if not user_id and not client_ip:
            return []
        return await self._sessions.get_history(session_key(user_id, client_ip))

    async def clear_history(
        self, user_id: Optional[str] = None, client_ip: Optional[str] = None
    ) -> bool:
        if not user_id and not client_ip:
            return False
        return await self._sessions.clear_history(session_key(user_id, client_ip))

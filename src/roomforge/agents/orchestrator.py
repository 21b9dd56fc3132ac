"""Orchestrator: caller role, intent classification and hints for SQL generation."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from roomforge.agents.parsing import (
    extract_block,
    extract_field,
    is_none_value,
    parse_enum,
    parse_list,
    parse_missing_params,
)
from roomforge.agents.roles import RoleLookupProtocol
from roomforge.prompts.registry import PromptRegistry, get_prompt_registry
from roomforge.schemas.pipeline import (
    IntentAction,
    IntentDecision,
    PresentationMode,
    RequestType,
    UserRole,
)

if TYPE_CHECKING:
    from roomforge.inference.client import InferenceClient
    from roomforge.knowledge.service import KnowledgeService
    from roomforge.session.models import ChatSession

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = (
    "Bạn cần đăng nhập để xem thông tin cá nhân như phòng, hóa đơn hay hợp đồng của mình."
)
FALLBACK_CHAT_MESSAGE = "Xin lỗi, mình chưa hiểu rõ ý bạn. Bạn có thể nói cụ thể hơn không?"

_ROLE_LABEL = re.compile(
    r"^\s*\[(?:GUEST|TENANT|LANDLORD|USER|KHÁCH|NGƯỜI THUÊ|CHỦ TRỌ)\]\s*", re.IGNORECASE
)
_LOCATION_TABLES = ("provinces", "districts", "wards")
_LOCATION_WORDS = re.compile(
    r"quận|huyện|phường|xã|tỉnh|thành phố|tp\.?\s|district|ward|province|\bq\.?\s*\d", re.IGNORECASE
)

_USER_LABELS = {
    UserRole.GUEST: "[GUEST]",
    UserRole.TENANT: "[TENANT]",
    UserRole.LANDLORD: "[LANDLORD]",
}


def strip_role_label(message: str) -> str:
    return _ROLE_LABEL.sub("", message or "").strip()


def minimal_tables(tables: tuple[str, ...], query: str, filters_hint: Optional[str]) -> tuple[str, ...]:
    """Drop location tables when nothing in the question filters by location."""
    haystack = f"{query} {filters_hint or ''}"
    if _LOCATION_WORDS.search(haystack):
        return tables
    return tuple(t for t in tables if t not in _LOCATION_TABLES)


def resolve_request_type(
    parsed: RequestType,
    intent_action: IntentAction,
    user_id: Optional[str],
    has_missing_params: bool,
) -> tuple[RequestType, bool]:
    """Decision table applied on top of the model's classification.

    Returns ``(request_type, requires_login)``.
    """
    if parsed in (RequestType.QUERY, RequestType.CLARIFICATION) and intent_action == IntentAction.OWN:
        if not user_id:
            return RequestType.CLARIFICATION, True
        if not has_missing_params:
            return RequestType.QUERY, False

    if parsed == RequestType.QUERY and has_missing_params:
        return RequestType.CLARIFICATION, False
    return parsed, False


class Orchestrator:
    """First stage of every chat turn.

    Resolves the caller role, pulls business context, asks the model for a
    classification and turns the answer into an ``IntentDecision``. Role and
    context lookups are non-fatal; an unparseable answer becomes
    ``GENERAL_CHAT``.

    Example:
        ```python
        orchestrator = Orchestrator(llm, knowledge, role_lookup)
        decision = await orchestrator.decide("tôi có bao nhiêu dãy trọ", session)
        if decision.ready_for_sql:
            ...
        ```
    """

    def __init__(
        self,
        llm: "InferenceClient",
        knowledge: "KnowledgeService",
        role_lookup: Optional[RoleLookupProtocol] = None,
        prompts: Optional[PromptRegistry] = None,
        history_window: int = 10,
    ):
        self._llm = llm
        self._knowledge = knowledge
        self._role_lookup = role_lookup
        self._prompts = prompts or get_prompt_registry()
        self._history_window = history_window

    async def resolve_role(self, user_id: Optional[str]) -> UserRole:
        if not user_id or self._role_lookup is None:
            return UserRole.GUEST
        try:
            role = await self._role_lookup.get_role(user_id)
        except Exception as e:
            logger.warning(f"Role lookup failed for user {user_id}, treating as guest: {e}")
            return UserRole.GUEST
        return role or UserRole.GUEST

    async def decide(
        self,
        query: str,
        session: "ChatSession",
        user_id: Optional[str] = None,
    ) -> IntentDecision:
        user_id = user_id or session.user_id
        role = await self.resolve_role(user_id)
        business_context = await self._knowledge.retrieve_business_context(query)

        prompt = self._prompts.get(
            "orchestrator",
            user_id=user_id,
            user_role=role.value,
            business_context=business_context,
            recent_messages=session.recent_transcript(self._history_window),
            query=query,
            is_first_message=str(session.is_first_message).lower(),
            user_label=_USER_LABELS[role],
        )
        raw = await self._llm.generate(prompt, system_prompt=session.system_context() or None)
        decision = self.parse_decision(raw, query, user_id, role, business_context)
        logger.info(
            f"Intent: {decision.request_type.value} action={decision.intent_action.value} "
            f"tables={','.join(decision.tables_hint) or '-'}"
        )
        return decision

    def parse_decision(
        self,
        raw: str,
        query: str,
        user_id: Optional[str],
        role: UserRole,
        business_context: str = "",
    ) -> IntentDecision:
        request_field = extract_field(raw, "REQUEST_TYPE")
        message = strip_role_label(extract_block(raw, "RESPONSE") or "")

        if is_none_value(request_field):
            logger.warning("Orchestrator reply had no REQUEST_TYPE, falling back to general chat")
            return IntentDecision(
                request_type=RequestType.GENERAL_CHAT,
                user_role=role,
                user_id=user_id,
                message=message or strip_role_label(raw) or FALLBACK_CHAT_MESSAGE,
                business_context=business_context,
            )

        parsed_type = parse_enum(request_field, RequestType, RequestType.GENERAL_CHAT)
        intent_action = parse_enum(extract_field(raw, "INTENT_ACTION"), IntentAction, IntentAction.SEARCH)
        missing = parse_missing_params(extract_field(raw, "MISSING_PARAMS"))
        filters_hint = extract_field(raw, "FILTERS_HINT")
        entity_hint = extract_field(raw, "ENTITY_HINT")
        relationships = extract_field(raw, "RELATIONSHIPS_HINT")

        request_type, requires_login = resolve_request_type(
            parsed_type, intent_action, user_id, bool(missing)
        )
        if requires_login:
            message = LOGIN_REQUIRED_MESSAGE
            missing = ()

        return IntentDecision(
            request_type=request_type,
            user_role=role,
            user_id=user_id,
            message=message,
            entity_hint=None if is_none_value(entity_hint) else entity_hint.lower(),
            filters_hint=None if is_none_value(filters_hint) else filters_hint,
            tables_hint=minimal_tables(parse_list(extract_field(raw, "TABLES_HINT")), query, filters_hint),
            relationships_hint=None if is_none_value(relationships) else relationships,
            mode_hint=parse_enum(extract_field(raw, "MODE_HINT"), PresentationMode, PresentationMode.TABLE),
            intent_action=intent_action,
            missing_params=missing,
            requires_login=requires_login,
            business_context=business_context,
        )

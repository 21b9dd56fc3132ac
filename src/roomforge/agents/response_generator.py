"""Response assembly: conversational message plus one structured payload."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from roomforge.agents.parsing import parse_response_text
from roomforge.agents.result_validator import results_preview
from roomforge.prompts.registry import PromptRegistry, get_prompt_registry
from roomforge.schemas.envelope import InsightPayload, Payload
from roomforge.schemas.pipeline import GenerationResult, IntentDecision, PresentationMode
from roomforge.utils.data_utils import (
    build_list_payload,
    build_table_payload,
    is_list_like,
    try_build_chart,
)

if TYPE_CHECKING:
    from roomforge.inference.client import InferenceClient
    from roomforge.session.models import ChatSession

logger = logging.getLogger(__name__)

EMPTY_RESULT_MESSAGE = "Mình không tìm thấy kết quả phù hợp với yêu cầu của bạn."


def fallback_message(count: int) -> str:
    if count == 0:
        return EMPTY_RESULT_MESSAGE
    return f"Mình tìm thấy {count} kết quả cho bạn."


def build_payload(
    rows: Sequence[dict[str, Any]],
    mode: PresentationMode,
    entity_hint: Optional[str] = None,
    query: str = "",
) -> Optional[Payload]:
    """Deterministic payload from rows; ``None`` when there is nothing to show."""
    if not rows:
        return None
    if mode == PresentationMode.CHART:
        chart = try_build_chart(rows, query)
        if chart is not None:
            return chart
    if mode == PresentationMode.LIST or is_list_like(rows):
        return build_list_payload(rows, entity_hint)
    return build_table_payload(rows, entity_hint)


def structured_summary(payload: Optional[Payload]) -> str:
    if payload is None:
        return ""
    mode = payload.mode.value
    if hasattr(payload, "items"):
        return f"{mode} with {len(payload.items)} items"
    if hasattr(payload, "rows"):
        return f"{mode} with {len(payload.rows)} rows"
    return mode


class AssembledResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    payload: Optional[Payload] = None


class ResponseGenerator:
    """Writes the user-facing message for a query answer.

    The payload is always built from the rows themselves; the model only
    contributes prose and, optionally, a presentation preference.
    """

    def __init__(
        self,
        llm: "InferenceClient",
        prompts: Optional[PromptRegistry] = None,
        history_window: int = 10,
    ):
        self._llm = llm
        self._prompts = prompts or get_prompt_registry()
        self._history_window = history_window

    async def generate(
        self,
        query: str,
        session: "ChatSession",
        intent: IntentDecision,
        result: GenerationResult,
    ) -> AssembledResponse:
        if intent.mode_hint == PresentationMode.INSIGHT and result.results:
            return await self._insight(query, result)

        planned = build_payload(result.results, intent.mode_hint, intent.entity_hint, query)
        prompt = self._prompts.get(
            "response_final",
            recent_messages=session.recent_transcript(self._history_window),
            query=query,
            conversational_message=intent.message,
            count=result.count,
            preview=results_preview(result.results),
            structured_summary=structured_summary(planned),
            suggested_mode=planned.mode.value if planned is not None else "none",
        )
        try:
            raw = await self._llm.generate(prompt)
        except Exception as e:
            logger.warning(f"Response generation failed, using fallback message: {e}")
            return AssembledResponse(message=fallback_message(result.count), payload=planned)

        message, preferred = parse_response_text(raw)
        payload = planned
        if preferred is not None and planned is not None and preferred.value != planned.mode.value:
            payload = build_payload(result.results, preferred, intent.entity_hint, query) or planned
        return AssembledResponse(message=message or fallback_message(result.count), payload=payload)

    async def _insight(self, query: str, result: GenerationResult) -> AssembledResponse:
        prompt = self._prompts.get(
            "response_insight", query=query, preview=results_preview(result.results)
        )
        try:
            message = (await self._llm.generate(prompt)).strip()
        except Exception as e:
            logger.warning(f"Insight generation failed, using fallback message: {e}")
            message = ""
        return AssembledResponse(
            message=message or fallback_message(result.count), payload=InsightPayload()
        )

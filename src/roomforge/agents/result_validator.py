"""LLM judgement of whether executed SQL actually answers the question."""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Optional, Union

from roomforge.agents.parsing import extract_block, extract_field, is_none_value, parse_bool, parse_enum
from roomforge.prompts.registry import PromptRegistry, get_prompt_registry
from roomforge.schemas.pipeline import (
    IntentDecision,
    RequestType,
    ValidationResult,
    ValidationSeverity,
)
from roomforge.utils.text import truncate

if TYPE_CHECKING:
    from roomforge.inference.client import InferenceClient

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5
PREVIEW_CHARS = 1500

INVALID_PHRASES = ("không hợp lệ", "sai hoàn toàn", "sai loại dữ liệu", "invalid")
_VALID_WORDS = re.compile(r"\b(?:valid|ok)\b|hợp lệ|đúng", re.IGNORECASE)
_FIELD_NAMES = re.compile(r"\b(?:IS_VALID|SEVERITY|VIOLATIONS|REASON|EVALUATION)\b\s*:?", re.IGNORECASE)


def results_preview(results: list[dict[str, Any]]) -> str:
    if not results:
        return "[]"
    text = json.dumps(results[:PREVIEW_ROWS], ensure_ascii=False, default=str)
    return truncate(text, PREVIEW_CHARS)


def _split_violations(value: Optional[str]) -> tuple[str, ...]:
    if is_none_value(value):
        return ()
    return tuple(v.strip() for v in re.split(r"[;,]", value) if v.strip() and not is_none_value(v))


def parse_validation(text: str) -> ValidationResult:
    """Optimistic parse of the validator reply.

    An explicit ``IS_VALID`` wins. Otherwise the answer is invalid only on
    ``SEVERITY: ERROR``, or on invalid wording with no valid wording and no
    ``WARN``. Everything else is valid.
    """
    severity_field = extract_field(text, "SEVERITY")
    severity: Optional[ValidationSeverity] = None
    if not is_none_value(severity_field):
        severity = parse_enum(severity_field, ValidationSeverity, ValidationSeverity.NONE)

    explicit = parse_bool(extract_field(text, "IS_VALID"))
    if explicit is not None:
        is_valid = explicit
    elif severity == ValidationSeverity.ERROR:
        is_valid = False
    else:
        prose = _FIELD_NAMES.sub(" ", text or "").lower()
        has_invalid = any(phrase in prose for phrase in INVALID_PHRASES)
        for phrase in INVALID_PHRASES:
            prose = prose.replace(phrase, " ")
        has_valid = bool(_VALID_WORDS.search(prose))
        is_valid = not (has_invalid and not has_valid and severity != ValidationSeverity.WARN)

    if severity is None:
        severity = ValidationSeverity.NONE if is_valid else ValidationSeverity.ERROR

    reason = extract_field(text, "REASON") or ("OK" if is_valid else "Result does not answer the question")
    return ValidationResult(
        is_valid=is_valid,
        severity=severity,
        reason=reason,
        violations=_split_violations(extract_field(text, "VIOLATIONS")),
        evaluation=extract_block(text, "EVALUATION"),
    )


class ResultValidator:
    """Checks entity, filter and shape match of an executed query.

    A failing model call is the only unconditional rejection: it yields an
    invalid ``ERROR`` verdict instead of raising.
    """

    def __init__(self, llm: "InferenceClient", prompts: Optional[PromptRegistry] = None):
        self._llm = llm
        self._prompts = prompts or get_prompt_registry()

    async def validate(
        self,
        query: str,
        sql: str,
        results: list[dict[str, Any]],
        expected_intent: Union[IntentDecision, RequestType],
        original_query: Optional[str] = None,
    ) -> ValidationResult:
        """Judge ``query``; ``original_query`` is the follow-up as typed when ``query`` is its expansion."""
        if isinstance(expected_intent, IntentDecision):
            expected_type = expected_intent.request_type.value
            intent_action = expected_intent.intent_action.value
        else:
            expected_type = RequestType(expected_intent).value
            intent_action = None

        prompt = self._prompts.get(
            "result_validator",
            query=query,
            original_query=original_query if original_query != query else None,
            expected_type=expected_type,
            intent_action=intent_action,
            sql=sql,
            count=len(results),
            preview=results_preview(results),
        )
        try:
            raw = await self._llm.generate(prompt)
        except Exception as e:
            logger.error(f"Result validation call failed: {e}")
            return ValidationResult(
                is_valid=False,
                severity=ValidationSeverity.ERROR,
                reason="Validation failed due to error",
                violations=("Validator exception occurred",),
            )

        result = parse_validation(raw)
        log = logger.info if result.is_valid else logger.warning
        log(f"Validation: valid={result.is_valid} severity={result.severity.value} reason={result.reason}")
        return result

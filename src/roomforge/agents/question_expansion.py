"""Expansion of short follow-up questions into self-contained ones."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional

from roomforge.prompts.registry import PromptRegistry, get_prompt_registry
from roomforge.utils.text import truncate

if TYPE_CHECKING:
    from roomforge.inference.client import InferenceClient

logger = logging.getLogger(__name__)

_SURROUNDING_QUOTES = re.compile(r"^[\"'“”]+|[\"'“”]+$")
_TRAILING_MARKS = re.compile(r"[.!?]+$")
_ANSWER_LABEL = re.compile(r"^(?:canonical question|question|câu hỏi)\s*:\s*", re.IGNORECASE)


def clean_expansion(text: str) -> str:
    """First non-empty line of the reply without labels, quotes or end marks."""
    line = next((ln.strip() for ln in (text or "").splitlines() if ln.strip()), "")
    line = _ANSWER_LABEL.sub("", line)
    line = _SURROUNDING_QUOTES.sub("", line).strip()
    return _TRAILING_MARKS.sub("", line).strip()


class QuestionExpander:
    """Rewrites a follow-up such as "tăng thêm 2 triệu" into a full question.

    The previous data turn (its question and SQL) supplies the missing
    conditions. A question that already stands on its own comes back
    unchanged, and any failure falls back to the question as typed.

    Example:
        ```python
        expander = QuestionExpander(llm)
        await expander.expand(
            "tăng thêm 2 triệu",
            previous_sql="SELECT ... WHERE p.base_price_monthly <= 4000000 ...",
            previous_question="Phòng ở Gò Vấp dưới 4 triệu",
        )
        # "Phòng ở Gò Vấp dưới 6 triệu"
        ```
    """

    def __init__(self, llm: "InferenceClient", prompts: Optional[PromptRegistry] = None):
        self._llm = llm
        self._prompts = prompts or get_prompt_registry()

    async def expand(
        self,
        question: str,
        previous_sql: str,
        previous_question: Optional[str] = None,
    ) -> str:
        prompt = self._prompts.get(
            "question_expansion",
            question=question,
            previous_sql=previous_sql,
            previous_question=previous_question,
        )
        try:
            raw = await self._llm.generate(prompt)
        except Exception as e:
            logger.error(f"Question expansion failed, keeping the question as typed: {e}")
            return question

        expanded = clean_expansion(raw)
        if not expanded:
            return question
        if expanded != question:
            logger.debug(f"Expanded question | original={truncate(question, 50)} | canonical={truncate(expanded, 80)}")
        return expanded

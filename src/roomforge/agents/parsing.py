"""Tolerant parsers for the line-oriented ``FIELD: value`` model outputs."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, TypeVar

from roomforge.schemas.envelope import MissingParam
from roomforge.schemas.pipeline import PresentationMode

E = TypeVar("E", bound=Enum)

END_MARKER = "---END"
_NONE_VALUES = {"", "none", "null", "n/a", "-", "không", "khong"}
_TRUE_VALUES = {"true", "yes", "1", "valid", "có", "đúng"}
_FALSE_VALUES = {"false", "no", "0", "invalid", "không", "sai"}


def _field_pattern(name: str) -> re.Pattern:
    # Tolerates markdown bold and leading bullets: "- **REQUEST_TYPE**: QUERY"
    return re.compile(
        rf"^[ \t\-*>#]*\**{re.escape(name)}\**[ \t]*[:=][ \t]*(.*)$",
        re.IGNORECASE | re.MULTILINE,
    )


def extract_field(text: str, name: str) -> Optional[str]:
    """Value of the first ``NAME: value`` line, or ``None`` when absent or empty."""
    if not text:
        return None
    match = _field_pattern(name).search(text)
    if not match:
        return None
    value = match.group(1).strip().strip("*").strip()
    return value or None


def extract_block(text: str, name: str) -> Optional[str]:
    """Everything after ``NAME:`` to the end of the text (multi-line answers)."""
    if not text:
        return None
    match = _field_pattern(name).search(text)
    if not match:
        return None
    value = text[match.start(1):].strip()
    return value or None


def is_none_value(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in _NONE_VALUES


def parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    token = value.strip().lower().split()[0] if value.strip() else ""
    token = token.strip(".,;")
    if token in _TRUE_VALUES:
        return True
    if token in _FALSE_VALUES:
        return False
    return None


def parse_enum(value: Optional[str], enum_cls: type[E], default: E) -> E:
    """Case-insensitive lookup by value or name; first token only."""
    if is_none_value(value):
        return default
    token = re.split(r"[\s|,]+", value.strip())[0].strip(".\"'`")
    for member in enum_cls:
        if token.lower() in (str(member.value).lower(), member.name.lower()):
            return member
    return default


def parse_list(value: Optional[str]) -> tuple[str, ...]:
    """``"rooms, room_pricing"`` -> ``("rooms", "room_pricing")``."""
    if is_none_value(value):
        return ()
    items = []
    for raw in re.split(r"[,;\n]", value):
        item = raw.strip().strip("`'\"[]").strip().lower()
        if item and item not in _NONE_VALUES and item not in items:
            items.append(item)
    return tuple(items)


def parse_missing_params(value: Optional[str]) -> tuple[MissingParam, ...]:
    """``name:reason:ex1,ex2|name2:reason2`` -> ``MissingParam`` tuple."""
    if is_none_value(value):
        return ()
    params = []
    for entry in value.split("|"):
        parts = [p.strip() for p in entry.split(":", 2)]
        if not parts or not parts[0] or parts[0].lower() in _NONE_VALUES:
            continue
        reason = parts[1] if len(parts) > 1 else ""
        examples = [e.strip() for e in parts[2].split(",") if e.strip()] if len(parts) > 2 else []
        params.append(MissingParam(name=parts[0], reason=reason, examples=examples))
    return tuple(params)


def parse_response_text(text: str) -> tuple[str, Optional[PresentationMode]]:
    """Split a reply at ``---END``.

    The message is the text before the marker. After it the model may name
    one presentation (``LIST``, ``TABLE`` or ``CHART``); only the first counts.
    """
    if not text:
        return "", None
    head, marker, tail = text.partition(END_MARKER)
    message = head.strip()
    if not marker:
        return message, None

    for line in tail.splitlines():
        token = line.strip().rstrip(":").upper()
        if not token:
            continue
        for mode in (PresentationMode.LIST, PresentationMode.TABLE, PresentationMode.CHART):
            if token == mode.value or token.startswith(f"{mode.value}:"):
                return message, mode
        break
    return message, None

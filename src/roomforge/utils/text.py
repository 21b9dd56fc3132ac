"""Small text helpers shared by the agents and the knowledge layer."""

import re

_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCT = re.compile(r"[\s?.!,;:…]+$")
_CODE_FENCE = re.compile(r"```(?:sql|postgresql|postgres)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)


def normalize_question(question: str) -> str:
    """Lowercase, collapse whitespace and drop trailing punctuation."""
    collapsed = _WHITESPACE.sub(" ", question.strip().lower())
    return _TRAILING_PUNCT.sub("", collapsed)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text with stray fences removed."""
    match = _CODE_FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.replace("```", "").strip()


def ensure_terminator(sql: str) -> str:
    sql = sql.strip()
    if not sql.endswith(";"):
        sql += ";"
    return sql


def sql_literal(value: str) -> str:
    """Quote a value as a SQL string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def truncate(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[:limit] + "..."

"""JSON-safe conversion of database rows."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

# Largest integer a JSON number can carry without precision loss in clients.
MAX_SAFE_INTEGER = 2**53 - 1


def serialize_value(value: Any) -> Any:
    """Recursively convert overflow-prone numerics to decimal-safe strings.

    ``Decimal`` values and integers outside the JSON-safe range become strings;
    dates become ISO strings; containers are walked.
    """
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        return value if abs(value) <= MAX_SAFE_INTEGER else str(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, dict):
        return {str(k): serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [serialize_value(v) for v in value]
    return str(value)


def serialize_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [serialize_value(row) for row in rows]

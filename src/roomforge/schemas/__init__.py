"""Shared value types for the chat pipeline and its response envelope."""

from roomforge.schemas.envelope import (
    ChartPayload,
    ClarifyPayload,
    EnvelopeKind,
    ErrorPayload,
    InsightPayload,
    ListItem,
    ListPayload,
    MissingParam,
    Payload,
    PayloadMode,
    ResponseEnvelope,
    TableColumn,
    TablePayload,
)
from roomforge.schemas.pipeline import (
    CanonicalDecision,
    CanonicalMode,
    GenerationAttempt,
    GenerationResult,
    IntentAction,
    IntentDecision,
    PersistOutcome,
    PresentationMode,
    RequestType,
    UserRole,
    ValidationResult,
    ValidationSeverity,
)

__all__ = [
    "CanonicalDecision",
    "CanonicalMode",
    "ChartPayload",
    "ClarifyPayload",
    "EnvelopeKind",
    "ErrorPayload",
    "GenerationAttempt",
    "GenerationResult",
    "InsightPayload",
    "IntentAction",
    "IntentDecision",
    "ListItem",
    "ListPayload",
    "MissingParam",
    "Payload",
    "PayloadMode",
    "PersistOutcome",
    "PresentationMode",
    "RequestType",
    "ResponseEnvelope",
    "TableColumn",
    "TablePayload",
    "UserRole",
    "ValidationResult",
    "ValidationSeverity",
]

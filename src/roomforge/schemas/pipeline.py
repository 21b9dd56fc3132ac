"""Values passed between the pipeline stages of a chat turn."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from roomforge.schemas.envelope import MissingParam
from roomforge.vector_store.models import CanonicalRecord


class RequestType(str, Enum):
    QUERY = "QUERY"
    GREETING = "GREETING"
    CLARIFICATION = "CLARIFICATION"
    GENERAL_CHAT = "GENERAL_CHAT"


class UserRole(str, Enum):
    GUEST = "guest"
    TENANT = "tenant"
    LANDLORD = "landlord"


class IntentAction(str, Enum):
    SEARCH = "search"
    OWN = "own"
    STATS = "stats"


class PresentationMode(str, Enum):
    LIST = "LIST"
    TABLE = "TABLE"
    CHART = "CHART"
    INSIGHT = "INSIGHT"


class IntentDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_type: RequestType
    user_role: UserRole = UserRole.GUEST
    user_id: Optional[str] = None
    message: str = ""
    entity_hint: Optional[str] = None
    filters_hint: Optional[str] = None
    tables_hint: tuple[str, ...] = ()
    relationships_hint: Optional[str] = None
    mode_hint: PresentationMode = PresentationMode.TABLE
    intent_action: IntentAction = IntentAction.SEARCH
    missing_params: tuple[MissingParam, ...] = ()
    requires_login: bool = False
    business_context: str = ""

    @property
    def ready_for_sql(self) -> bool:
        return self.request_type == RequestType.QUERY and not self.missing_params


class GenerationAttempt(BaseModel):
    """One pass of the generate/check/execute loop. Never mutated."""

    model_config = ConfigDict(frozen=True)

    attempt: int
    context_summary: str = ""
    raw_output: str = ""
    sql: Optional[str] = None
    safety_violations: tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class CanonicalMode(str, Enum):
    REUSE = "REUSE"
    HINT = "HINT"
    NONE = "NONE"


class CanonicalDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: CanonicalMode = CanonicalMode.NONE
    record: Optional[CanonicalRecord] = None
    score: float = 0.0


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    sql: str
    results: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    attempts: int = 1
    user_id: Optional[str] = None
    user_role: UserRole = UserRole.GUEST
    canonical: CanonicalDecision = CanonicalDecision()
    history: tuple[GenerationAttempt, ...] = ()


class ValidationSeverity(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    NONE = "NONE"


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    severity: ValidationSeverity = ValidationSeverity.NONE
    reason: str = ""
    violations: tuple[str, ...] = ()
    evaluation: Optional[str] = None


class PersistOutcome(BaseModel):
    """Result of the knowledge feedback step; never raised, always returned."""

    model_config = ConfigDict(frozen=True)

    persisted: bool
    mode: str = "skipped"
    record_id: Optional[int] = None
    chunk_id: Optional[int] = None
    was_reused: bool = False
    message: str = ""

"""Value types returned by the similarity store."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Collection(str, Enum):
    """Logical partitions of the chunk table."""

    SCHEMA = "schema"
    BUSINESS = "business"
    QA = "qa"


class SearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class CanonicalRecord(BaseModel):
    """A stored (question, SQL) pair used for reuse decisions."""

    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    sql: str
    chunk_id: Optional[int] = None
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    score: Optional[float] = None

"""Response envelope returned for every chat turn."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnvelopeKind(str, Enum):
    CONTENT = "CONTENT"
    DATA = "DATA"
    CONTROL = "CONTROL"


class PayloadMode(str, Enum):
    LIST = "LIST"
    TABLE = "TABLE"
    CHART = "CHART"
    INSIGHT = "INSIGHT"
    CLARIFY = "CLARIFY"
    ERROR = "ERROR"


class ListItem(_CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    entity: Optional[str] = None
    path: Optional[str] = None
    external_url: Optional[str] = None


class TableColumn(_CamelModel):
    key: str
    label: str
    type: str = "string"


TableCell = Union[str, int, float, bool, None]


class ListPayload(_CamelModel):
    mode: PayloadMode = PayloadMode.LIST
    items: list[ListItem] = Field(default_factory=list)
    total: int = 0


class TablePayload(_CamelModel):
    mode: PayloadMode = PayloadMode.TABLE
    columns: list[TableColumn] = Field(default_factory=list)
    rows: list[dict[str, TableCell]] = Field(default_factory=list)
    preview_limit: int = 50


class ChartPayload(_CamelModel):
    mode: PayloadMode = PayloadMode.CHART
    url: str
    width: int
    height: int
    mime_type: str = "image/png"
    alt: str = "Chart (Top 10)"
    chart_type: str = "bar"


class InsightPayload(_CamelModel):
    mode: PayloadMode = PayloadMode.INSIGHT


class MissingParam(_CamelModel):
    name: str
    reason: str = ""
    examples: list[str] = Field(default_factory=list)


class ClarifyPayload(_CamelModel):
    mode: PayloadMode = PayloadMode.CLARIFY
    missing_params: list[MissingParam] = Field(default_factory=list)
    requires_login: bool = False


class ErrorPayload(_CamelModel):
    mode: PayloadMode = PayloadMode.ERROR
    code: str = "INTERNAL_ERROR"
    details: Optional[str] = None


Payload = Union[ListPayload, TablePayload, ChartPayload, InsightPayload, ClarifyPayload, ErrorPayload]


class ResponseEnvelope(_CamelModel):
    kind: EnvelopeKind
    session_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: str
    payload: Optional[Payload] = None
    meta: Optional[dict[str, Any]] = None

"""Session models for RoomForge."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from roomforge.inference import MessageRole
from roomforge.vector_store.models import utc_now

LAST_QUERY_KEY = "last_query"


class ChatMessage(BaseModel):
    """A single message in a chat session."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    envelope: Optional[dict[str, Any]] = None

    def to_openai_format(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


class ChatSession(BaseModel):
    """Conversation state for one caller identity or client address."""

    session_id: str
    user_id: Optional[str] = None
    client_ip: Optional[str] = None
    messages: list[ChatMessage] = Field(default_factory=list)
    flow_state: dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=utc_now)
    last_activity: datetime = Field(default_factory=utc_now)

    def get_messages(
        self,
        limit: Optional[int] = None,
        include_system: bool = True,
    ) -> list[ChatMessage]:
        msgs = self.messages
        if not include_system:
            msgs = [m for m in msgs if m.role != MessageRole.SYSTEM]
        if limit:
            msgs = msgs[-limit:]
        return msgs

    def recent_transcript(self, limit: int = 10) -> str:
        """Recent non-system turns formatted for prompts."""
        lines = []
        for msg in self.get_messages(limit=limit, include_system=False):
            speaker = "User" if msg.role == MessageRole.USER else "Assistant"
            lines.append(f"{speaker}: {msg.content}")
        return "\n".join(lines)

    @property
    def last_query(self) -> Optional[dict[str, str]]:
        """Question and SQL of the previous data turn, if any."""
        return self.flow_state.get(LAST_QUERY_KEY)

    def system_context(self) -> str:
        return "\n".join(m.content for m in self.messages if m.role == MessageRole.SYSTEM)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def is_first_message(self) -> bool:
        return not any(m.role == MessageRole.USER for m in self.messages)

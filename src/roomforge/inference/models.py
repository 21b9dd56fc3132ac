from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str = ""

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content)

    def to_openai_format(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


class InferenceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stop: Optional[list[str]] = None


class TokenUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class InferenceResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str = ""
    finish_reason: str = "stop"
    model: str = ""
    usage: TokenUsage = TokenUsage()

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens

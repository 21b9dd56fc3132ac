"""Inference module - chat completions against an OpenAI-compatible API."""

from roomforge.inference.client import InferenceClient, MockInferenceClient
from roomforge.inference.models import (
    InferenceConfig,
    InferenceResponse,
    Message,
    MessageRole,
    TokenUsage,
)

__all__ = [
    "InferenceClient",
    "MockInferenceClient",
    "InferenceConfig",
    "InferenceResponse",
    "Message",
    "MessageRole",
    "TokenUsage",
]

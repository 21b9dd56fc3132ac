"""Core utilities: logging and exceptions."""

from roomforge.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    DatabaseError,
    EmbeddingError,
    KnowledgeError,
    LLMError,
    NotFoundError,
    RequestTimeoutError,
    RoomForgeError,
    SqlGenerationError,
    UnsafeQueryError,
)
from roomforge.core.logging import get_logger, setup_logging

__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "DatabaseError",
    "EmbeddingError",
    "KnowledgeError",
    "LLMError",
    "NotFoundError",
    "RequestTimeoutError",
    "RoomForgeError",
    "SqlGenerationError",
    "UnsafeQueryError",
    "get_logger",
    "setup_logging",
]

"""RoomForge exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from roomforge.schemas.pipeline import GenerationAttempt


class RoomForgeError(Exception):
    """Base exception for all RoomForge errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


class ConfigurationError(RoomForgeError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key


class DatabaseError(RoomForgeError):
    """Database connection or query error."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class UnsafeQueryError(RoomForgeError):
    """SQL rejected by the read-only safety rules."""

    def __init__(self, message: str, sql: Optional[str] = None):
        super().__init__(message)
        self.sql = sql


class EmbeddingError(RoomForgeError):
    """Embedding generation failed."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model


class LLMError(RoomForgeError):
    """Language model call failed."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model


class SqlGenerationError(RoomForgeError):
    """Every generation attempt failed."""

    def __init__(self, message: str, attempts: Optional[list[GenerationAttempt]] = None):
        super().__init__(message)
        self.attempts = list(attempts or [])


class AuthorizationError(RoomForgeError):
    """Personal data was requested without an authenticated caller."""


class KnowledgeError(RoomForgeError):
    """Knowledge store read or write failed."""


class NotFoundError(RoomForgeError):
    """Requested record does not exist."""

    def __init__(self, message: str = "Record not found", record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class RequestTimeoutError(RoomForgeError):
    """The overall request deadline elapsed."""

"""Settings module for RoomForge."""

from roomforge.settings.base import AppSettings, BaseAppSettings
from roomforge.settings.database import DatabaseSettings
from roomforge.settings.embedding import EmbeddingSettings
from roomforge.settings.generation import GenerationSettings
from roomforge.settings.inference import InferenceSettings
from roomforge.settings.rag import RagSettings
from roomforge.settings.session import SessionSettings
from roomforge.settings.settings import Settings, get_settings

__all__ = [
    "AppSettings",
    "BaseAppSettings",
    "DatabaseSettings",
    "EmbeddingSettings",
    "GenerationSettings",
    "InferenceSettings",
    "RagSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
]

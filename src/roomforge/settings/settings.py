"""Aggregated settings for RoomForge."""

from functools import lru_cache
from typing import Optional

from roomforge.settings.base import AppSettings
from roomforge.settings.database import DatabaseSettings
from roomforge.settings.embedding import EmbeddingSettings
from roomforge.settings.generation import GenerationSettings
from roomforge.settings.inference import InferenceSettings
from roomforge.settings.rag import RagSettings
from roomforge.settings.session import SessionSettings


class Settings:
    """Aggregated settings for all RoomForge components."""

    def __init__(
        self,
        app: Optional[AppSettings] = None,
        database: Optional[DatabaseSettings] = None,
        embedding: Optional[EmbeddingSettings] = None,
        generation: Optional[GenerationSettings] = None,
        inference: Optional[InferenceSettings] = None,
        rag: Optional[RagSettings] = None,
        session: Optional[SessionSettings] = None,
    ):
        self.app = app or AppSettings()
        self.database = database or DatabaseSettings()
        self.embedding = embedding or EmbeddingSettings()
        self.generation = generation or GenerationSettings()
        self.inference = inference or InferenceSettings()
        self.rag = rag or RagSettings()
        self.session = session or SessionSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

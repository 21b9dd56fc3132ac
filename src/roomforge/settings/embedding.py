"""Embedding settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class EmbeddingSettings(BaseAppSettings):
    """Settings for embedding service."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "text-embedding-3-small"
    dimension: int = 768
    max_concurrent: int = 16
    timeout_seconds: float = 30.0

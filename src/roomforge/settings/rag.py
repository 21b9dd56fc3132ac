"""Retrieval settings."""

from pydantic_settings import SettingsConfigDict

from roomforge.settings.base import BaseAppSettings


class RagSettings(BaseAppSettings):
    """Similarity limits and thresholds for every retrieval path."""

    model_config = SettingsConfigDict(env_prefix="RAG_")

    tenant_id: str = "trustay"
    db_key: str = "default"

    # Canonical reuse
    canonical_hard_threshold: float = 0.92
    canonical_soft_threshold: float = 0.80
    canonical_search_limit: int = 1

    # Context retrieval
    schema_limit: int = 16
    schema_threshold: float = 0.75
    qa_limit: int = 8
    qa_threshold: float = 0.6
    business_limit: int = 8
    business_threshold: float = 0.85

    # Feedback loop
    dedup_threshold: float = 0.95
    schema_chunk_lines: int = 60

"""Shared fixtures: in-memory doubles for every external dependency."""

from __future__ import annotations

import numpy as np
import pytest

from roomforge.embedding import MockEmbeddingClient
from roomforge.knowledge import KnowledgeService, MockPendingKnowledgeStore, PendingKnowledgeService
from roomforge.settings import RagSettings
from roomforge.vector_store import MockVectorStore

DIMENSION = 64


def unit_vector(index: int, dimension: int = DIMENSION) -> np.ndarray:
    vector = np.zeros(dimension, dtype=np.float32)
    vector[index] = 1.0
    return vector


def vector_with_similarity(similarity: float, base: int = 0, other: int = 1) -> np.ndarray:
    """Unit vector whose cosine similarity to ``unit_vector(base)`` is ``similarity``."""
    return similarity * unit_vector(base) + np.sqrt(1.0 - similarity ** 2) * unit_vector(other)


@pytest.fixture
def rag_settings():
    return RagSettings(tenant_id="test", db_key="default")


@pytest.fixture
def embedder():
    return MockEmbeddingClient(dimension=DIMENSION)


@pytest.fixture
def store():
    return MockVectorStore()


@pytest.fixture
def knowledge(store, embedder, rag_settings):
    return KnowledgeService(store, embedder, rag_settings)


@pytest.fixture
def pending_store():
    return MockPendingKnowledgeStore()


@pytest.fixture
def pending(pending_store, knowledge):
    return PendingKnowledgeService(pending_store, knowledge)

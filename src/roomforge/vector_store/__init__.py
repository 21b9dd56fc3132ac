"""Similarity store: chunk collections plus the canonical query table."""

from roomforge.vector_store.memory import MockVectorStore
from roomforge.vector_store.models import CanonicalRecord, Collection, SearchHit
from roomforge.vector_store.postgres import PgVectorStore
from roomforge.vector_store.protocol import VectorStoreProtocol
from roomforge.vector_store.tables import KnowledgeChunk, SqlQA, init_vector_tables

__all__ = [
    "CanonicalRecord",
    "Collection",
    "KnowledgeChunk",
    "MockVectorStore",
    "PgVectorStore",
    "SearchHit",
    "SqlQA",
    "VectorStoreProtocol",
    "init_vector_tables",
]

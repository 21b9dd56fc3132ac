"""Embedding clients."""

from roomforge.embedding.client import EmbeddingClient, MockEmbeddingClient
from roomforge.embedding.protocol import EmbeddingProtocol

__all__ = ["EmbeddingClient", "MockEmbeddingClient", "EmbeddingProtocol"]

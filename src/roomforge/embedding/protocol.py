"""Embedding protocol definition."""

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class EmbeddingProtocol(Protocol):
    """Protocol for embedding clients."""

    @property
    def dimension(self) -> int:
        ...

    async def embed(self, text: str) -> np.ndarray:
        """Embed text and return a normalized vector."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed multiple texts, preserving input order."""
        ...

"""OpenAI-compatible embedding client."""

import asyncio
import hashlib
from typing import Optional

import httpx
import numpy as np

from roomforge.core.exceptions import EmbeddingError
from roomforge.settings.embedding import EmbeddingSettings


def _normalize(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm > 0:
        vector = vector / norm
    return vector


class EmbeddingClient:
    """OpenAI-compatible embedding client with a concurrency cap.

    Example:
        ```python
        client = EmbeddingClient(EmbeddingSettings(api_key="sk-..."))
        vector = await client.embed("phòng dưới 4 triệu")
        # vector.shape => (768,)
        ```
    """

    def __init__(self, settings: Optional[EmbeddingSettings] = None):
        self._settings = settings or EmbeddingSettings()
        self._semaphore = asyncio.Semaphore(self._settings.max_concurrent)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def dimension(self) -> int:
        return self._settings.dimension

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._settings.api_key:
                headers["Authorization"] = f"Bearer {self._settings.api_key}"

            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                headers=headers,
                timeout=httpx.Timeout(self._settings.timeout_seconds),
            )
        return self._client

    async def _request(self, payload: str | list[str]) -> list[dict]:
        async with self._semaphore:
            client = await self._get_client()
            try:
                response = await client.post(
                    "/embeddings",
                    json={
                        "model": self._settings.model,
                        "input": payload,
                        "dimensions": self._settings.dimension,
                    },
                )
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise EmbeddingError(
                    f"Embedding request failed: {e}", model=self._settings.model
                ) from e
            return sorted(response.json()["data"], key=lambda x: x["index"])

    async def embed(self, text: str) -> np.ndarray:
        """Embed text and return a normalized float32 vector.

        Raises:
            EmbeddingError: If the API request fails
        """
        data = await self._request(text)
        return _normalize(np.array(data[0]["embedding"], dtype=np.float32))

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Embed multiple texts in a single API call."""
        if not texts:
            return []
        data = await self._request(texts)
        return [_normalize(np.array(item["embedding"], dtype=np.float32)) for item in data]

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EmbeddingClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class MockEmbeddingClient:
    """Mock embedding client for testing without API calls.

    Uses hash-based seeding for reproducible pseudo-embeddings; identical
    texts (case-insensitive) embed identically, unrelated texts are nearly
    orthogonal. ``pin`` forces a specific vector for a text so tests can
    place questions at a chosen similarity.
    """

    def __init__(self, dimension: int = 64):
        self._dimension = dimension
        self._cache: dict[str, np.ndarray] = {}

    @property
    def dimension(self) -> int:
        return self._dimension

    def pin(self, text: str, vector: np.ndarray) -> None:
        self._cache[text.lower()] = _normalize(np.asarray(vector, dtype=np.float32))

    async def embed(self, text: str) -> np.ndarray:
        key = text.lower()
        if key not in self._cache:
            seed = int.from_bytes(hashlib.sha256(key.encode("utf-8")).digest()[:4], "big")
            rng = np.random.RandomState(seed)
            self._cache[key] = _normalize(rng.randn(self._dimension).astype(np.float32))
        return self._cache[key]

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        return [await self.embed(text) for text in texts]

    async def close(self) -> None:
        pass

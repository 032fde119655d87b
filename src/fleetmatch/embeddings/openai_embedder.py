"""OpenAI embedding provider for catalog descriptions and search queries."""

from __future__ import annotations

from openai import AsyncOpenAI

from fleetmatch.exceptions import EmbeddingError
from fleetmatch.observability.logger import get_logger

logger = get_logger("embeddings")


class OpenAIEmbedder:
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        dimensions: int = 1536,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._batch_size = batch_size
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        cleaned = [t.strip() for t in texts]
        if not cleaned:
            return []
        if any(not t for t in cleaned):
            raise EmbeddingError("Cannot embed empty text")
        vectors: list[list[float]] = []
        try:
            for start in range(0, len(cleaned), self._batch_size):
                batch = cleaned[start : start + self._batch_size]
                response = await self._client.embeddings.create(input=batch, model=self._model)
                vectors.extend(item.embedding for item in response.data)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed {len(cleaned)} texts: {e}") from e
        logger.info("embedded_texts", count=len(cleaned), model=self._model)
        return vectors

    async def embed_query(self, query: str) -> list[float]:
        text = query.strip()
        if not text:
            raise EmbeddingError("Cannot embed an empty query")
        try:
            response = await self._client.embeddings.create(input=[text], model=self._model)
            return response.data[0].embedding
        except Exception as e:
            raise EmbeddingError(f"Failed to embed query: {e}") from e

# src/rag/embeddings/anthropic_embedder.py — v2
"""Anthropic-recommended Voyage embedding adapter.

Models: voyage-3, voyage-3-lite. Uses the async Voyage client with
separate input types for queries and documents.
"""

from __future__ import annotations

from kbroute.rag.embeddings.base_embedder import BaseEmbedder


class AnthropicEmbedder(BaseEmbedder):
    """Embeddings via the Voyage API."""

    def __init__(
        self,
        model: str = "voyage-3",
        api_key: str | None = None,
        dimensions: int = 1024,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._dimensions = dimensions
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            try:
                import voyageai
            except ImportError as e:
                raise ImportError(
                    "voyageai package required: pip install voyageai"
                ) from e
            self.__client = voyageai.AsyncClient(api_key=self._api_key or None)
        return self.__client

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        result = await self._client.embed(
            texts, model=self._model, input_type="document"
        )
        return result.embeddings

    async def embed_query(self, query: str) -> list[float]:
        result = await self._client.embed(
            [query], model=self._model, input_type="query"
        )
        return result.embeddings[0]

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self._model

# src/rag/embeddings/cached_embedder.py — v2
"""Embedding provider wrapper that reads and fills the embedding cache.

Embeddings are a pure function of the text, so the cache key is the md5
of the raw text and entries are never invalidated by data mutations.
"""

from __future__ import annotations

import logging

from kbroute.cache.keys import embedding_cache_key
from kbroute.cache.tiered_cache import TieredCache
from kbroute.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)


class CachedEmbedder(BaseEmbedder):
    """Decorates any BaseEmbedder with the embedding TieredCache."""

    def __init__(self, inner: BaseEmbedder, cache: TieredCache[list[float]]) -> None:
        self._inner = inner
        self._cache = cache

    async def embed_query(self, query: str) -> list[float]:
        key = embedding_cache_key(query)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached
        vector = await self._inner.embed_query(query)
        await self._cache.set(key, vector)
        return vector

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch, sending only cache misses to the provider."""
        found: dict[int, list[float]] = {}
        missing: list[int] = []
        for i, text in enumerate(texts):
            cached = await self._cache.get(embedding_cache_key(text))
            if cached is None:
                missing.append(i)
            else:
                found[i] = cached

        if missing:
            vectors = await self._inner.embed_texts([texts[i] for i in missing])
            if len(vectors) != len(missing):
                raise ValueError(
                    f"{self._inner.provider_name} returned {len(vectors)} embeddings "
                    f"for {len(missing)} texts"
                )
            for i, vector in zip(missing, vectors):
                found[i] = vector
                await self._cache.set(embedding_cache_key(texts[i]), vector)
            logger.debug("Embedded %d/%d texts (rest cached)", len(missing), len(texts))

        return [found[i] for i in range(len(texts))]

    @property
    def inner(self) -> BaseEmbedder:
        return self._inner

    @property
    def dimensions(self) -> int:
        return self._inner.dimensions

    @property
    def provider_name(self) -> str:
        return self._inner.provider_name

    @property
    def model_name(self) -> str:
        return self._inner.model_name

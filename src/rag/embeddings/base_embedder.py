# src/rag/embeddings/base_embedder.py — v2
"""Abstract embeddings interface.

Query embeddings and document embeddings may use different instructions
(Voyage distinguishes them); category embeddings are embedded as documents.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseEmbedder(ABC):
    """Unified interface for all embedding providers."""

    @abstractmethod
    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of document texts into vectors."""

    @abstractmethod
    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query."""

    async def embed_text(self, text: str) -> list[float]:
        """Embed a single document text."""
        vectors = await self.embed_texts([text])
        return vectors[0]

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Output vector dimensions."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""

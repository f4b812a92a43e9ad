# src/storage/base_document_store.py — v1
"""Abstract document index interface.

Only the fields category routing needs are stored: id, name, summary,
content excerpt, topics and assigned category.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbroute.core.models import CorpusItem


class BaseDocumentStore(ABC):
    """Unified interface for document index backends."""

    @abstractmethod
    async def list_corpus(self) -> list[CorpusItem]:
        """Every document, ordered by id."""

    @abstractmethod
    async def get_document(self, document_id: str) -> CorpusItem | None:
        """Fetch one document."""

    @abstractmethod
    async def add_document(self, item: CorpusItem) -> None:
        """Insert or replace a document."""

    @abstractmethod
    async def remove_document(self, document_id: str) -> bool:
        """Remove a document. Returns True if it existed."""

    @abstractmethod
    async def reassign_category(self, document_ids: list[str], category: str | None) -> int:
        """Set ``category`` on each existing document. Returns the count updated."""

    @abstractmethod
    async def clear_category(self, category: str) -> int:
        """Unset the category on every document assigned to it."""

    @abstractmethod
    async def documents_in_category(
        self, category: str, limit: int | None = None
    ) -> list[CorpusItem]:
        """Documents assigned to ``category``, ordered by id."""

    @abstractmethod
    async def count_documents(self, category: str | None = None) -> int:
        """Count all documents, or only those in ``category``."""

    @abstractmethod
    async def count_categorized(self) -> int:
        """Count documents with any category assigned."""

    async def close(self) -> None:
        """Release backend resources."""

# src/categories/service.py — v2
"""CategoryService — the single entry point for category mutations.

Every mutating method runs inside ``_mutation()``, which on exit (also on
error) drops the classifier's category snapshot and clears the stats,
search and document caches. Read-only methods bypass it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from kbroute.cache.invalidation import CacheInvalidationCoordinator, DocumentMutation, MutationKind
from kbroute.cache.keys import stats_cache_key
from kbroute.cache.tiered_cache import TieredCache
from kbroute.categories.discovery import CategoryDiscoveryEngine, SaveReport
from kbroute.categories.suggester import CategorySuggester
from kbroute.classifier.query_classifier import QueryClassifier
from kbroute.core.models import (
    MAX_SAMPLE_DOCUMENTS,
    Category,
    CategoryStats,
    CategorySuggestion,
    CorpusItem,
    DiscoveredCategory,
    category_embedding_text,
    normalize_category_name,
)
from kbroute.rag.embeddings.base_embedder import BaseEmbedder
from kbroute.storage.base_category_store import BaseCategoryStore
from kbroute.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class CategoryNotFoundError(LookupError):
    """Raised when an administrative operation names an unknown category."""


class DocumentNotFoundError(LookupError):
    """Raised when an administrative operation names an unknown document."""


class CategoryService:
    """Category CRUD, discovery, suggestion and corpus statistics."""

    def __init__(
        self,
        category_store: BaseCategoryStore,
        document_store: BaseDocumentStore,
        embedder: BaseEmbedder,
        discovery: CategoryDiscoveryEngine,
        suggester: CategorySuggester,
        classifier: QueryClassifier,
        invalidation: CacheInvalidationCoordinator,
        stats_cache: TieredCache[CategoryStats],
    ) -> None:
        self._categories = category_store
        self._documents = document_store
        self._embedder = embedder
        self._discovery = discovery
        self._suggester = suggester
        self._classifier = classifier
        self._invalidation = invalidation
        self._stats_cache = stats_cache

    @asynccontextmanager
    async def _mutation(
        self, kind: MutationKind = "category", document_id: str | None = None
    ) -> AsyncIterator[None]:
        try:
            yield
        finally:
            self._classifier.invalidate_cache()
            await self._invalidation.on_document_mutation(
                DocumentMutation(kind=kind, document_id=document_id)
            )

    # --- Reads ---

    async def list_categories(self, active_only: bool = True) -> list[Category]:
        return await self._categories.find(active_only=active_only)

    async def get_category(self, name: str) -> Category | None:
        return await self._categories.find_by_name(name)

    async def documents_in_category(self, name: str) -> list[str]:
        docs = await self._documents.documents_in_category(normalize_category_name(name))
        return [d.id for d in docs]

    async def suggest_category(self, content: str, name: str) -> CategorySuggestion:
        return await self._suggester.suggest_category(content, name)

    async def category_stats(self) -> CategoryStats:
        """Corpus coverage overview, served from the stats cache."""
        return await self._stats_cache.get_or_compute(
            stats_cache_key("categories"), self._compute_stats
        )

    async def _compute_stats(self) -> CategoryStats:
        categories = await self._categories.find(active_only=True)
        total = await self._documents.count_documents()
        categorized = await self._documents.count_categorized()
        return CategoryStats(
            total_categories=len(categories),
            total_documents=total,
            categorized_documents=categorized,
            uncategorized_documents=total - categorized,
            category_coverage=round(categorized / total * 100) if total else 0,
            categories={c.name: c.document_count for c in categories},
        )

    # --- Discovery ---

    async def discover_categories(self) -> list[DiscoveredCategory]:
        corpus = await self._documents.list_corpus()
        return await self._discovery.discover_categories(corpus)

    async def save_discovered_categories(
        self, categories: list[DiscoveredCategory]
    ) -> SaveReport:
        async with self._mutation("reassign"):
            return await self._discovery._write_discovered(categories)

    async def discover_and_save(self) -> SaveReport:
        """Discover categories over the whole corpus and persist them."""
        discovered = await self.discover_categories()
        if not discovered:
            return SaveReport()
        return await self.save_discovered_categories(discovered)

    # --- Administrative mutations ---

    async def create_category(
        self, name: str, description: str, keywords: list[str] | None = None
    ) -> Category:
        """Create a category, or return the existing one with the same name."""
        existing = await self._categories.find_by_name(name)
        if existing is not None:
            return existing

        keywords = list(keywords or [])
        normalized = normalize_category_name(name)
        try:
            embedding = await self._embedder.embed_text(
                category_embedding_text(normalized, description, keywords)
            )
        except Exception as e:
            logger.warning("Embedding failed for new category %r: %s", normalized, e)
            embedding = None

        async with self._mutation():
            category = await self._categories.upsert(
                Category(name=normalized, description=description,
                         keywords=keywords, embedding=embedding)
            )
        logger.info("Created category %r", category.name)
        return category

    async def delete_category(self, name: str) -> bool:
        """Delete a category and unassign its documents."""
        normalized = normalize_category_name(name)
        async with self._mutation():
            cleared = await self._documents.clear_category(normalized)
            deleted = await self._categories.delete(normalized)
        if deleted:
            logger.info("Deleted category %r (%d documents unassigned)", normalized, cleared)
        return deleted

    async def assign_document(self, document_id: str, category_name: str) -> None:
        """Move one document into an existing category and recount.

        Raises:
            DocumentNotFoundError: If the document is unknown.
            CategoryNotFoundError: If the category does not exist.
        """
        if await self._documents.get_document(document_id) is None:
            raise DocumentNotFoundError(document_id)
        category = await self._categories.find_by_name(category_name)
        if category is None:
            raise CategoryNotFoundError(category_name)

        async with self._mutation("reassign", document_id):
            await self._documents.reassign_category([document_id], category.name)
            await self._recount()

    async def update_category_counts(self) -> None:
        """Recount documents and refresh samples for every active category."""
        async with self._mutation():
            await self._recount()

    async def _recount(self) -> None:
        for category in await self._categories.find(active_only=True):
            category.document_count = await self._documents.count_documents(category.name)
            samples = await self._documents.documents_in_category(
                category.name, limit=MAX_SAMPLE_DOCUMENTS
            )
            category.sample_documents = [d.id for d in samples]
            category.updated_at = datetime.now(timezone.utc)
            await self._categories.upsert(category)

    # --- Document mutations ---

    async def add_document(self, item: CorpusItem) -> None:
        async with self._mutation("upload", item.id):
            await self._documents.add_document(item)
            if item.category:
                await self._recount()

    async def remove_document(self, document_id: str) -> bool:
        async with self._mutation("delete", document_id):
            removed = await self._documents.remove_document(document_id)
            if removed:
                await self._recount()
        return removed

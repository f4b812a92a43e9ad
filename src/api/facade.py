# src/api/facade.py — v2
"""Public API facade — composition root for classification and caching.

Usage:
    from kbroute.api.facade import KnowledgeRouter
    router = KnowledgeRouter.from_settings(settings)
    result = await router.classify_query("tell me about SSM registration")
    await router.close()

Every cache, store and provider is constructed here and injected; there
is no module-level state.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from kbroute.cache.invalidation import CacheInvalidationCoordinator, DocumentMutation
from kbroute.cache.keys import search_cache_key
from kbroute.cache.models import CacheStats
from kbroute.cache.registry import CacheRegistry, build_cache_registry
from kbroute.categories.discovery import CategoryDiscoveryEngine, SaveReport
from kbroute.categories.service import CategoryService
from kbroute.categories.suggester import CategorySuggester
from kbroute.classifier.query_classifier import QueryClassifier
from kbroute.classifier.snapshot import CategorySnapshotCache
from kbroute.config.settings import Settings
from kbroute.core.models import (
    Category,
    CategoryStats,
    CategorySuggestion,
    CorpusItem,
    DiscoveredCategory,
    QueryClassification,
)
from kbroute.rag.embeddings.cached_embedder import CachedEmbedder

if TYPE_CHECKING:
    from kbroute.cache.base_cache_store import BaseCacheStore
    from kbroute.llm.base_client import BaseLLMClient
    from kbroute.rag.embeddings.base_embedder import BaseEmbedder
    from kbroute.storage.base_category_store import BaseCategoryStore
    from kbroute.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


class KnowledgeRouter:
    """Query classification, category management and cache control in one object."""

    def __init__(
        self,
        settings: Settings,
        caches: CacheRegistry,
        classifier: QueryClassifier,
        categories: CategoryService,
        invalidation: CacheInvalidationCoordinator,
        closeables: list[Any] | None = None,
    ) -> None:
        self.settings = settings
        self.caches = caches
        self.classifier = classifier
        self.categories = categories
        self.invalidation = invalidation
        self._closeables = closeables or []

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        embedder: BaseEmbedder | None = None,
        classifier_llm: BaseLLMClient | None = None,
        discovery_llm: BaseLLMClient | None = None,
        suggester_llm: BaseLLMClient | None = None,
        category_store: BaseCategoryStore | None = None,
        document_store: BaseDocumentStore | None = None,
        shared_cache_store: BaseCacheStore | None = None,
        persistent_cache_store: BaseCacheStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> KnowledgeRouter:
        """Wire every component from settings; any argument overrides its default.

        Args:
            settings: Global settings. Loaded from .env if None.
            embedder: Raw embedding provider (wrapped with the embedding cache).
            classifier_llm: Completion client for query classification.
            discovery_llm: Completion client for category discovery.
            suggester_llm: Completion client for category suggestion.
            category_store: Category persistence. Defaults to STORE_BACKEND.
            document_store: Document index. Defaults to STORE_BACKEND.
            shared_cache_store: Shared cache tier override.
            persistent_cache_store: Persistent document cache tier override.
            clock: Monotonic clock shared by in-process caches and the snapshot.
        """
        settings = settings or Settings()

        if category_store is None or document_store is None:
            from kbroute.storage.store_factory import create_stores
            default_categories, default_documents = create_stores(settings)
            category_store = category_store or default_categories
            document_store = document_store or default_documents

        if embedder is None:
            from kbroute.rag.embeddings.embedder_factory import create_embedder
            embedder = create_embedder(settings)

        def component_llm(client: BaseLLMClient | None, component: str) -> BaseLLMClient:
            if client is not None:
                return client
            from kbroute.llm.client_factory import create_component_client
            return create_component_client(component, settings)

        caches = build_cache_registry(
            settings, clock=clock,
            shared=shared_cache_store, persistent=persistent_cache_store,
        )
        cached_embedder = CachedEmbedder(embedder, caches.embedding)
        invalidation = CacheInvalidationCoordinator(caches)

        classifier = QueryClassifier(
            snapshot=CategorySnapshotCache(
                category_store, ttl_s=settings.category_cache_ttl_s, clock=clock
            ),
            embedder=cached_embedder,
            llm=component_llm(classifier_llm, "query_classifier"),
            keyword_accept_threshold=settings.keyword_accept_threshold,
            semantic_accept_threshold=settings.semantic_accept_threshold,
            semantic_match_threshold=settings.semantic_match_threshold,
            fast_path_escalation_threshold=settings.fast_path_escalation_threshold,
        )
        service = CategoryService(
            category_store=category_store,
            document_store=document_store,
            embedder=cached_embedder,
            discovery=CategoryDiscoveryEngine(
                component_llm(discovery_llm, "category_discovery"),
                cached_embedder, category_store, document_store,
            ),
            suggester=CategorySuggester(
                component_llm(suggester_llm, "category_suggester"),
                cached_embedder, category_store,
                semantic_threshold=settings.suggestion_semantic_threshold,
            ),
            classifier=classifier,
            invalidation=invalidation,
            stats_cache=caches.stats,
        )
        logger.info(
            "KnowledgeRouter ready (store=%s, embeddings=%s/%s)",
            settings.store_backend, embedder.provider_name, embedder.model_name,
        )
        return cls(
            settings, caches, classifier, service, invalidation,
            closeables=[category_store, document_store],
        )

    # --- Query routing ---

    async def classify_query(self, query: str) -> QueryClassification:
        return await self.classifier.classify_query(query)

    async def classify_query_fast(self, query: str) -> QueryClassification:
        return await self.classifier.classify_query_fast(query)

    async def cached_search(
        self, query: str, strategy: str, search: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Serve a search result from the search cache, computing it on miss."""
        return await self.caches.search.get_or_compute(
            search_cache_key(query, strategy), search
        )

    # --- Categories ---

    async def discover_categories(self) -> list[DiscoveredCategory]:
        return await self.categories.discover_categories()

    async def save_discovered_categories(
        self, categories: list[DiscoveredCategory]
    ) -> SaveReport:
        return await self.categories.save_discovered_categories(categories)

    async def discover_and_save(self) -> SaveReport:
        return await self.categories.discover_and_save()

    async def suggest_category(self, content: str, name: str) -> CategorySuggestion:
        return await self.categories.suggest_category(content, name)

    async def list_categories(self) -> list[Category]:
        return await self.categories.list_categories()

    async def create_category(
        self, name: str, description: str, keywords: list[str] | None = None
    ) -> Category:
        return await self.categories.create_category(name, description, keywords)

    async def delete_category(self, name: str) -> bool:
        return await self.categories.delete_category(name)

    async def assign_document(self, document_id: str, category_name: str) -> None:
        await self.categories.assign_document(document_id, category_name)

    async def update_category_counts(self) -> None:
        await self.categories.update_category_counts()

    async def category_stats(self) -> CategoryStats:
        return await self.categories.category_stats()

    async def add_document(self, item: CorpusItem) -> None:
        await self.categories.add_document(item)

    async def remove_document(self, document_id: str) -> bool:
        return await self.categories.remove_document(document_id)

    # --- Caches ---

    async def invalidate_all_caches(self) -> None:
        await self.invalidation.invalidate_all_caches()

    async def notify_document_mutation(self, event: DocumentMutation) -> None:
        """Hook for external document CRUD that bypasses CategoryService."""
        self.classifier.invalidate_cache()
        await self.invalidation.on_document_mutation(event)

    def cache_stats(self) -> list[CacheStats]:
        return self.caches.stats_report()

    async def close(self) -> None:
        await self.caches.close()
        for resource in self._closeables:
            await resource.close()

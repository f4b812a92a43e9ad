# src/cache/registry.py — v1
"""The four cache roles, built once per process from Settings.

Nothing here is module-level state: the composition root owns the
registry and injects individual caches where they are needed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from kbroute.cache.background import BackgroundTasks
from kbroute.cache.base_cache_store import BaseCacheStore
from kbroute.cache.cache_factory import create_persistent_store, create_shared_store
from kbroute.cache.keys import DOCUMENT_PREFIX, EMBEDDING_PREFIX, SEARCH_PREFIX, STATS_PREFIX
from kbroute.cache.memory_store import LRUMemoryCache
from kbroute.cache.models import CacheStats
from kbroute.cache.tiered_cache import TieredCache
from kbroute.config.settings import Settings
from kbroute.core.models import CategoryStats

logger = logging.getLogger(__name__)


@dataclass
class CacheRegistry:
    """Embedding, search, stats and document-metadata caches."""

    embedding: TieredCache[list[float]]
    search: TieredCache[Any]
    stats: TieredCache[CategoryStats]
    document: TieredCache[dict[str, Any]]
    background: BackgroundTasks
    stores: list[BaseCacheStore] = field(default_factory=list)

    def all(self) -> list[TieredCache]:
        return [self.embedding, self.search, self.stats, self.document]

    def stats_report(self) -> list[CacheStats]:
        return [cache.stats() for cache in self.all()]

    async def close(self) -> None:
        """Flush pending writes, then close each out-of-process store once."""
        await self.background.drain()
        for store in self.stores:
            try:
                await store.close()
            except Exception as e:
                logger.warning("Closing %s cache store failed: %s", store.backend_name, e)


def build_cache_registry(
    settings: Settings,
    clock: Callable[[], float] = time.monotonic,
    shared: BaseCacheStore | None = None,
    persistent: BaseCacheStore | None = None,
) -> CacheRegistry:
    """Build the four caches with their configured capacities, TTLs and tiers.

    Args:
        settings: Application settings.
        clock: Monotonic clock for the in-process tiers (tests inject a fake).
        shared: Shared store override; defaults to the configured backend.
        persistent: Persistent store override; defaults to the configured backend.
    """
    shared = shared if shared is not None else create_shared_store(settings)
    persistent = persistent if persistent is not None else create_persistent_store(settings)
    background = BackgroundTasks("cache")

    def lru(role: str) -> LRUMemoryCache:
        return LRUMemoryCache(
            max_size=getattr(settings, f"cache_{role}_max_entries"),
            ttl_s=getattr(settings, f"cache_{role}_ttl_s"),
            clock=clock,
        )

    registry = CacheRegistry(
        embedding=TieredCache(
            "embedding", EMBEDDING_PREFIX, lru("embedding"),
            shared=shared, shared_ttl_s=settings.cache_shared_embedding_ttl_s,
            background=background,
        ),
        search=TieredCache(
            "search", SEARCH_PREFIX, lru("search"),
            shared=shared, shared_ttl_s=settings.cache_shared_search_ttl_s,
            background=background,
        ),
        stats=TieredCache(
            "stats", STATS_PREFIX, lru("stats"),
            shared=shared, shared_ttl_s=settings.cache_shared_stats_ttl_s,
            background=background,
            decode=CategoryStats.model_validate,
        ),
        document=TieredCache(
            "document", DOCUMENT_PREFIX, lru("document"),
            persistent=persistent, persistent_ttl_s=int(settings.cache_document_ttl_s),
            background=background,
        ),
        background=background,
        stores=[s for s in (shared, persistent) if s is not None],
    )
    logger.info(
        "Cache registry ready (shared=%s, persistent=%s)",
        shared.backend_name if shared else "none",
        persistent.backend_name if persistent else "none",
    )
    return registry

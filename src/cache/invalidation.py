# src/cache/invalidation.py — v2
"""Cache invalidation tied to document and category mutations.

Any mutation may change category assignments, counts and search results,
so stats, search and document caches are cleared in every tier. The
embedding cache is content-addressed and never cleared here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from kbroute.cache.keys import document_cache_key
from kbroute.cache.registry import CacheRegistry

logger = logging.getLogger(__name__)

MutationKind = Literal["upload", "delete", "reassign", "category"]


@dataclass(frozen=True)
class DocumentMutation:
    """Notification that corpus or category data changed."""

    kind: MutationKind
    document_id: str | None = None


class CacheInvalidationCoordinator:
    """Clears the document-scoped caches on mutation."""

    def __init__(self, caches: CacheRegistry) -> None:
        self._caches = caches

    async def invalidate_all_caches(self) -> None:
        scoped = (self._caches.stats, self._caches.search, self._caches.document)
        for cache in scoped:
            cache.clear()
        # Pending lower-tier puts must land before the prefix delete.
        for cache in scoped:
            await cache.flush()
        removed = 0
        for cache in scoped:
            removed += await cache.clear_persistent()
        logger.info("Invalidated stats, search and document caches (%d stored keys removed)", removed)

    async def invalidate_document(self, document_id: str) -> None:
        await self.invalidate_all_caches()
        await self._caches.document.invalidate(document_cache_key(document_id))

    async def on_document_mutation(self, event: DocumentMutation) -> None:
        """Mutation hook for uploads, deletions and reassignments."""
        logger.debug("Mutation %s (document=%s)", event.kind, event.document_id)
        if event.document_id is not None:
            await self.invalidate_document(event.document_id)
        else:
            await self.invalidate_all_caches()

# src/classifier/snapshot.py — v1
"""Time-bounded read-only copy of the active categories.

The snapshot is refreshed when expired or empty and dropped wholesale by
``invalidate``. Concurrent refreshes are harmless: the last one wins.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from kbroute.core.models import Category
from kbroute.storage.base_category_store import BaseCategoryStore

logger = logging.getLogger(__name__)


class CategorySnapshotCache:
    """Active categories cached for ``ttl_s`` seconds."""

    def __init__(
        self,
        store: BaseCategoryStore,
        ttl_s: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._ttl_s = ttl_s
        self._clock = clock
        self._snapshot: list[Category] = []
        self._expires_at = 0.0

    async def get(self) -> list[Category]:
        now = self._clock()
        if self._snapshot and now < self._expires_at:
            return self._snapshot

        try:
            categories = await self._store.find(active_only=True)
        except Exception as e:
            logger.warning("Category refresh failed, using previous snapshot: %s", e)
            return self._snapshot

        self._snapshot = categories
        self._expires_at = now + self._ttl_s
        logger.debug("Category snapshot refreshed (%d categories)", len(categories))
        return categories

    def invalidate(self) -> None:
        self._snapshot = []
        self._expires_at = 0.0

    @property
    def is_fresh(self) -> bool:
        return bool(self._snapshot) and self._clock() < self._expires_at

# src/cache/tiered_cache.py — v1
"""Read-through cache over an in-process LRU tier and optional lower tiers.

Lookup order: LRU, then shared store, then persistent store. A lower-tier
hit is copied into the LRU. Writes land in the LRU synchronously and are
pushed to lower tiers as background tasks.

No public method raises because of a cache tier: failures are logged and
treated as a miss or a no-op. None is never cached (it means "miss").
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from kbroute.cache.background import BackgroundTasks
from kbroute.cache.base_cache_store import BaseCacheStore
from kbroute.cache.memory_store import LRUMemoryCache
from kbroute.cache.models import CacheStats

logger = logging.getLogger(__name__)

V = TypeVar("V")


def to_jsonable(value: Any) -> Any:
    """Dump pydantic models (and lists of them) to JSON-compatible data."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def _identity(value: Any) -> Any:
    return value


class TieredCache(Generic[V]):
    """One cache role (embedding, search, stats or document metadata)."""

    def __init__(
        self,
        name: str,
        prefix: str,
        memory: LRUMemoryCache[V],
        shared: BaseCacheStore | None = None,
        shared_ttl_s: int | None = None,
        persistent: BaseCacheStore | None = None,
        persistent_ttl_s: int | None = None,
        background: BackgroundTasks | None = None,
        decode: Callable[[Any], V] = _identity,
        encode: Callable[[V], Any] = to_jsonable,
    ) -> None:
        self.name = name
        self.prefix = prefix
        self._memory = memory
        self._lower: list[tuple[str, BaseCacheStore, int | None]] = []
        if shared is not None:
            self._lower.append(("shared", shared, shared_ttl_s))
        if persistent is not None:
            self._lower.append(("persistent", persistent, persistent_ttl_s))
        self._background = background or BackgroundTasks(name)
        self._decode = decode
        self._encode = encode
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> V | None:
        value = self._memory.get(key)
        if value is not None:
            self._hits += 1
            return value

        for tier, store, _ in self._lower:
            try:
                raw = await store.get(key)
            except Exception as e:
                logger.warning("%s cache: %s tier get failed for %s: %s", self.name, tier, key, e)
                continue
            if raw is None:
                continue
            try:
                value = self._decode(raw)
            except (TypeError, ValueError) as e:
                logger.warning("%s cache: undecodable %s entry %s: %s", self.name, tier, key, e)
                continue
            self._memory.set(key, value)
            self._hits += 1
            return value

        self._misses += 1
        return None

    async def set(self, key: str, value: V) -> None:
        if value is None:
            return
        self._memory.set(key, value)
        if not self._lower:
            return
        try:
            encoded = self._encode(value)
        except (TypeError, ValueError) as e:
            logger.warning("%s cache: cannot encode %s: %s", self.name, key, e)
            return
        for tier, store, ttl_s in self._lower:
            self._background.spawn(store.put(key, encoded, ttl_s), f"{self.name}.{tier}.put")

    async def invalidate(self, key: str) -> None:
        """Drop ``key`` from every tier."""
        self._memory.delete(key)
        for tier, store, _ in self._lower:
            try:
                await store.delete(key)
            except Exception as e:
                logger.warning("%s cache: %s tier delete failed for %s: %s", self.name, tier, key, e)

    def clear(self) -> None:
        """Empty the in-process tier."""
        self._memory.clear()

    async def clear_persistent(self, prefix: str | None = None) -> int:
        """Delete keys under ``prefix`` (default: this role's prefix) from lower tiers."""
        pattern = self.prefix if prefix is None else prefix
        removed = 0
        for tier, store, _ in self._lower:
            try:
                removed += await store.delete_prefix(pattern)
            except Exception as e:
                logger.warning("%s cache: %s tier clear failed for %r: %s", self.name, tier, pattern, e)
        return removed

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[V]]) -> V:
        """Return the cached value or compute, cache and return it.

        Errors raised by ``compute`` propagate to the caller.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await compute()
        await self.set(key, value)
        return value

    def stats(self) -> CacheStats:
        tiers = {tier for tier, _, _ in self._lower}
        return CacheStats(
            name=self.name,
            size=len(self._memory),
            max_size=self._memory.max_size,
            hits=self._hits,
            misses=self._misses,
            shared_tier="shared" in tiers,
            persistent_tier="persistent" in tiers,
        )

    @property
    def background(self) -> BackgroundTasks:
        return self._background

    async def flush(self) -> None:
        """Wait for pending lower-tier writes."""
        await self._background.drain()

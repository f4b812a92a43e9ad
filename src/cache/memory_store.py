# src/cache/memory_store.py — v1
"""In-process LRU tier with per-entry absolute TTL.

Bounded by entry count. A read moves the entry to most-recently-used
position (eviction priority) but never extends its lifetime. Expired
entries are dropped lazily on read.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable, Generic, Iterator, TypeVar

from kbroute.cache.models import CacheEntry

logger = logging.getLogger(__name__)

V = TypeVar("V")


class LRUMemoryCache(Generic[V]):
    """Single-process LRU map of key -> value with TTL."""

    def __init__(
        self,
        max_size: int,
        ttl_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        self._max_size = max_size
        self._ttl_s = ttl_s
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: V, ttl_s: float | None = None) -> None:
        """Insert or replace ``key``, evicting the least recently used entry when full."""
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("LRU evicted %s", evicted)
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            ttl=self._ttl_s if ttl_s is None else ttl_s,
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        doomed = [k for k in self._entries if k.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[str]:
        """Keys from least to most recently used (expired entries included)."""
        return iter(list(self._entries))

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

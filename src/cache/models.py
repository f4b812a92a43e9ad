# src/cache/models.py — v2
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, computed_field


class CacheEntry(BaseModel):
    """Single in-process cache entry with an absolute TTL.

    ``inserted_at`` is a monotonic timestamp in seconds. Reads never
    refresh it, so an entry expires ``ttl`` seconds after its last write.
    """

    key: str
    value: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl


class CacheStats(BaseModel):
    """Observability snapshot of one tiered cache."""

    name: str
    size: int
    max_size: int
    hits: int = 0
    misses: int = 0
    shared_tier: bool = False
    persistent_tier: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

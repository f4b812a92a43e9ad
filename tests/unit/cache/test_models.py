# tests/unit/cache/test_models.py — v2
"""Tests for cache/models.py — CacheEntry expiry and CacheStats."""

from __future__ import annotations

from kbroute.cache.models import CacheEntry, CacheStats


class TestCacheEntry:
    def test_not_expired_at_boundary(self):
        entry = CacheEntry(key="k", value=1, inserted_at=100.0, ttl=10.0)
        assert not entry.is_expired(110.0)

    def test_expired_after_ttl(self):
        entry = CacheEntry(key="k", value=1, inserted_at=100.0, ttl=10.0)
        assert entry.is_expired(110.5)


class TestCacheStats:
    def test_hit_rate(self):
        stats = CacheStats(name="search", size=3, max_size=200, hits=3, misses=1)
        assert stats.hit_rate == 0.75

    def test_hit_rate_without_lookups(self):
        assert CacheStats(name="stats", size=0, max_size=100).hit_rate == 0.0

    def test_hit_rate_serialized(self):
        dumped = CacheStats(name="doc", size=0, max_size=1, hits=1).model_dump()
        assert dumped["hit_rate"] == 1.0

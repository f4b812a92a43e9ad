# tests/unit/cache/test_unit_json_store.py — v1
"""Tests for cache/json_store.py — one file per key, offline-tolerant."""

from __future__ import annotations

import pytest

from kbroute.cache.json_store import JsonCacheStore


@pytest.fixture
def store(tmp_cache_dir):
    return JsonCacheStore(cache_root=tmp_cache_dir, clock=lambda: 1000.0)


class TestJsonCacheStore:
    @pytest.mark.asyncio
    async def test_put_and_get(self, store):
        await store.put("doc:abc", {"name": "a.pdf"})
        assert await store.get("doc:abc") == {"name": "a.pdf"}

    @pytest.mark.asyncio
    async def test_key_with_separators_is_file_safe(self, store, tmp_cache_dir):
        await store.put("doc:a/b", 1)
        files = [p.name for p in tmp_cache_dir.glob("*.json")]
        assert files == ["doc__a_b.json"]

    @pytest.mark.asyncio
    async def test_expired_entry_is_removed(self, tmp_cache_dir):
        now = [1000.0]
        store = JsonCacheStore(cache_root=tmp_cache_dir, clock=lambda: now[0])
        await store.put("doc:1", 1, ttl_s=10)
        now[0] += 11
        assert await store.get("doc:1") is None
        assert list(tmp_cache_dir.glob("*.json")) == []

    @pytest.mark.asyncio
    async def test_corrupt_file_is_a_miss(self, store, tmp_cache_dir):
        (tmp_cache_dir / "doc__bad.json").write_text("{oops", encoding="utf-8")
        assert await store.get("doc:bad") is None

    @pytest.mark.asyncio
    async def test_delete_prefix_reads_original_keys(self, store):
        await store.put("doc:1", 1)
        await store.put("doc:2", 2)
        await store.put("stats:x", 3)
        assert await store.delete_prefix("doc:") == 2
        assert await store.get("stats:x") == 3

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete("doc:never")

    def test_backend_name(self, store):
        assert store.backend_name == "json"

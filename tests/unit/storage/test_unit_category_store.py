# tests/unit/storage/test_unit_category_store.py — v1
"""Tests for category stores — memory and sqlite share one contract."""

from __future__ import annotations

import pytest

from kbroute.core.models import Category
from kbroute.storage.memory_store import MemoryCategoryStore
from kbroute.storage.sqlite_store import SqliteCategoryStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryCategoryStore()
    else:
        s = SqliteCategoryStore(tmp_path / "kb.db")
    yield s
    if request.param == "sqlite":
        s._conn.close()


class TestCategoryStore:
    @pytest.mark.asyncio
    async def test_upsert_and_find_by_name(self, store):
        await store.upsert(Category(name="Tax Filing", keywords=["tax"]))
        found = await store.find_by_name("TAX FILING ")
        assert found is not None
        assert found.name == "tax filing"
        assert found.keywords == ["tax"]

    @pytest.mark.asyncio
    async def test_find_missing(self, store):
        assert await store.find_by_name("nope") is None

    @pytest.mark.asyncio
    async def test_find_ordered_by_name(self, store):
        await store.upsert(Category(name="zeta"))
        await store.upsert(Category(name="alpha"))
        assert [c.name for c in await store.find()] == ["alpha", "zeta"]

    @pytest.mark.asyncio
    async def test_inactive_filtered(self, store):
        await store.upsert(Category(name="old", is_active=False))
        await store.upsert(Category(name="live"))
        assert [c.name for c in await store.find()] == ["live"]
        assert len(await store.find(active_only=False)) == 2

    @pytest.mark.asyncio
    async def test_upsert_keeps_identity(self, store):
        first = await store.upsert(Category(id="cat_aaaaaaaa", name="hr", description="v1"))
        second = await store.upsert(Category(id="cat_bbbbbbbb", name="HR", description="v2"))
        assert second.id == "cat_aaaaaaaa"
        assert second.created_at == first.created_at
        stored = await store.find_by_name("hr")
        assert stored.description == "v2"
        assert len(await store.find()) == 1

    @pytest.mark.asyncio
    async def test_embedding_round_trip(self, store):
        await store.upsert(Category(name="legal", embedding=[0.1, 0.2, 0.3]))
        found = await store.find_by_name("legal")
        assert found.embedding == [0.1, 0.2, 0.3]
        assert found.has_embedding

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.upsert(Category(name="legal"))
        assert await store.delete("Legal") is True
        assert await store.delete("legal") is False
        assert await store.find_by_name("legal") is None


class TestMemoryCategoryStoreIsolation:
    @pytest.mark.asyncio
    async def test_returns_copies(self, category_store):
        found = await category_store.find_by_name("ssm registration")
        found.keywords.append("mutated")
        again = await category_store.find_by_name("ssm registration")
        assert "mutated" not in again.keywords

    @pytest.mark.asyncio
    async def test_seeded(self, category_store):
        names = [c.name for c in await category_store.find()]
        assert names == ["financial reports", "ssm registration"]


class TestSqliteCategoryStorePersistence:
    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path):
        db = tmp_path / "nested" / "kb.db"
        first = SqliteCategoryStore(db)
        await first.upsert(Category(name="ops", keywords=["deploy"]))
        await first.close()

        second = SqliteCategoryStore(db)
        try:
            found = await second.find_by_name("ops")
            assert found.keywords == ["deploy"]
        finally:
            await second.close()

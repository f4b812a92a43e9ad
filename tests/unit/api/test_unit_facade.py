# tests/unit/api/test_unit_facade.py — v2
"""Tests for api.facade — composition root wiring and delegation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from kbroute.api.facade import KnowledgeRouter
from kbroute.cache.invalidation import DocumentMutation
from kbroute.config.settings import Settings
from kbroute.llm.adapters.openai_adapter import OpenAIAdapter
from kbroute.rag.embeddings.cached_embedder import CachedEmbedder
from kbroute.rag.embeddings.openai_embedder import OpenAIEmbedder
from kbroute.storage.memory_store import MemoryCategoryStore


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

class TestFromSettings:
    def test_defaults_need_no_network(self, settings):
        router = KnowledgeRouter.from_settings(settings)
        assert isinstance(router.classifier._embedder, CachedEmbedder)
        assert isinstance(router.classifier._embedder.inner, OpenAIEmbedder)
        assert isinstance(router.classifier._llm, OpenAIAdapter)
        assert isinstance(router.categories._categories, MemoryCategoryStore)

    def test_thresholds_from_settings(self, tmp_path, embedder, llm_factory):
        s = Settings(
            _env_file=None, store_backend="memory", cache_root=tmp_path,
            keyword_accept_threshold=0.6, fast_path_escalation_threshold=0.2,
        )
        router = KnowledgeRouter.from_settings(s, embedder=embedder, classifier_llm=llm_factory("{}"))
        assert router.classifier._keyword_accept == 0.6
        assert router.classifier._fast_escalation == 0.2

    def test_cache_stats_roles(self, build_unit_router):
        router = build_unit_router()
        names = [s.name for s in router.cache_stats()]
        assert names == ["embedding", "search", "stats", "document"]
        assert not any(s.shared_tier for s in router.cache_stats())


@pytest.fixture
def build_unit_router(settings, clock, category_store, document_store, embedder, llm_factory):
    def _build(reply: str = "{}") -> KnowledgeRouter:
        return KnowledgeRouter.from_settings(
            settings,
            embedder=embedder,
            classifier_llm=llm_factory(reply),
            discovery_llm=llm_factory(reply),
            suggester_llm=llm_factory(reply),
            category_store=category_store,
            document_store=document_store,
            clock=clock,
        )
    return _build


# ---------------------------------------------------------------------------
# Delegation
# ---------------------------------------------------------------------------

class TestClassification:
    @pytest.mark.asyncio
    async def test_classify_query(self, build_unit_router):
        result = await build_unit_router().classify_query("SSM registration help")
        assert result.categories == ["ssm registration"]

    @pytest.mark.asyncio
    async def test_query_embedding_cached(self, build_unit_router, embedder):
        router = build_unit_router()
        await router.classify_query_fast("weather")
        await router.classify_query_fast("weather")
        assert embedder.query_calls == ["weather"]


class TestCachedSearch:
    @pytest.mark.asyncio
    async def test_computes_once(self, build_unit_router):
        router = build_unit_router()
        search = AsyncMock(return_value=[{"id": "doc_1"}])
        assert await router.cached_search("q", "hybrid", search) == [{"id": "doc_1"}]
        assert await router.cached_search("q", "hybrid", search) == [{"id": "doc_1"}]
        assert search.await_count == 1

    @pytest.mark.asyncio
    async def test_strategy_is_part_of_key(self, build_unit_router):
        router = build_unit_router()
        search = AsyncMock(return_value=["r"])
        await router.cached_search("q", "hybrid", search)
        await router.cached_search("q", "vector", search)
        assert search.await_count == 2

    @pytest.mark.asyncio
    async def test_search_error_propagates(self, build_unit_router):
        router = build_unit_router()
        with pytest.raises(RuntimeError):
            await router.cached_search("q", "hybrid", AsyncMock(side_effect=RuntimeError("index down")))


class TestMutationHooks:
    @pytest.mark.asyncio
    async def test_notify_document_mutation(self, build_unit_router):
        router = build_unit_router()
        await router.classify_query("SSM registration")
        search = AsyncMock(return_value=["r"])
        await router.cached_search("q", "hybrid", search)

        await router.notify_document_mutation(DocumentMutation(kind="upload", document_id="doc_1"))

        assert not router.classifier._snapshot.is_fresh
        await router.cached_search("q", "hybrid", search)
        assert search.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidate_all_caches_keeps_snapshot(self, build_unit_router):
        router = build_unit_router()
        await router.classify_query("SSM registration")
        await router.invalidate_all_caches()
        assert router.classifier._snapshot.is_fresh


class TestClose:
    @pytest.mark.asyncio
    async def test_closes_stores(self, settings, embedder, llm_factory):
        categories = AsyncMock()
        documents = AsyncMock()
        router = KnowledgeRouter.from_settings(
            settings, embedder=embedder, classifier_llm=llm_factory("{}"),
            discovery_llm=llm_factory("{}"), suggester_llm=llm_factory("{}"),
            category_store=categories, document_store=documents,
        )
        await router.close()
        categories.close.assert_awaited_once()
        documents.close.assert_awaited_once()

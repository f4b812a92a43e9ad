# tests/integration/api/test_int_router.py — v1
"""End-to-end: corpus import, discovery, routing and cache invalidation."""

from __future__ import annotations

import json

import pytest

from kbroute.cache.invalidation import DocumentMutation
from kbroute.core.models import Category, CorpusItem

_DISCOVERY = json.dumps({
    "categories": [
        {
            "name": "Handbooks",
            "description": "Employee handbooks and HR policy",
            "keywords": ["handbook", "employee", "leave"],
            "documentIndices": [3, 4],
        },
        {
            "name": "SSM Registration",
            "description": "Company registration forms",
            "keywords": ["ssm", "registration", "company"],
            "documentIndices": [1],
        },
    ]
})


class TestDiscoveryToRouting:
    @pytest.mark.asyncio
    async def test_full_flow(self, build_router, document_store):
        router = build_router(discovery=(_DISCOVERY,))
        await router.add_document(CorpusItem(id="doc_4", name="leave.md", summary="Leave policy"))

        report = await router.discover_and_save()
        assert report.created == 1
        assert report.updated == 1
        assert report.reassigned == 3

        handbooks = next(c for c in await router.list_categories() if c.name == "handbooks")
        assert handbooks.document_count == 2
        assert handbooks.embedding is not None

        result = await router.classify_query("employee handbook leave rules")
        assert result.categories == ["handbooks"]
        assert result.reasoning == "Keyword matching"

        stats = await router.category_stats()
        assert stats.total_documents == 4
        assert stats.categorized_documents == 3
        assert stats.category_coverage == 75
        await router.close()

    @pytest.mark.asyncio
    async def test_discovery_failure_changes_nothing(self, build_router, category_store):
        router = build_router(discovery=("not json",))
        report = await router.discover_and_save()
        assert report.created == 0
        assert len(await category_store.find()) == 2


class TestInvalidation:
    @pytest.mark.asyncio
    async def test_external_write_visible_after_notify(self, build_router, category_store):
        router = build_router()
        await router.classify_query("warmup")
        await category_store.upsert(Category(name="payroll", keywords=["salary", "payslip"]))

        stale = await router.classify_query("payroll salary payslip")
        assert stale.categories == []

        await router.notify_document_mutation(DocumentMutation(kind="category"))
        fresh = await router.classify_query("payroll salary payslip")
        assert fresh.categories == ["payroll"]

    @pytest.mark.asyncio
    async def test_stats_refresh_after_assignment(self, build_router):
        router = build_router()
        before = await router.category_stats()
        assert before.categorized_documents == 0

        await router.assign_document("doc_2", "financial reports")

        after = await router.category_stats()
        assert after.categorized_documents == 1
        assert after.categories["financial reports"] == 1

    @pytest.mark.asyncio
    async def test_search_cache_cleared_by_document_delete(self, build_router):
        router = build_router()
        calls = []

        async def search():
            calls.append(1)
            return [{"id": "doc_1", "score": 0.9}]

        await router.cached_search("ssm form", "hybrid", search)
        await router.cached_search("ssm form", "hybrid", search)
        assert len(calls) == 1

        assert await router.remove_document("doc_1") is True
        await router.cached_search("ssm form", "hybrid", search)
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_embeddings_survive_mutations(self, build_router, embedder):
        router = build_router()
        await router.classify_query_fast("weather")
        await router.delete_category("financial reports")
        await router.classify_query_fast("weather")
        assert embedder.query_calls == ["weather"]


class TestCompletionRouting:
    @pytest.mark.asyncio
    async def test_completion_fallback(self, build_router):
        router = build_router(classifier=(
            '{"categories": ["financial reports"], "confidence": 0.85, '
            '"shouldSearchAll": false, "reasoning": "quarterly numbers"}',
        ))
        result = await router.classify_query("how did we do last quarter")
        assert result.categories == ["financial reports"]
        assert result.confidence == 0.85

    @pytest.mark.asyncio
    async def test_suggest_for_new_document(self, build_router):
        router = build_router(suggester=('{"category": "Legal", "confidence": 0.7, "isNew": true}',))
        suggestion = await router.suggest_category("Mutual NDA between parties", "nda.pdf")
        assert suggestion.category == "legal"
        assert suggestion.is_new is True

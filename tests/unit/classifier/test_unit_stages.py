# tests/unit/classifier/test_unit_stages.py — v1
"""Tests for classifier/stages.py — keyword, semantic and completion matching."""

from __future__ import annotations

import pytest

from kbroute.classifier.stages import (
    build_classification_prompt,
    completion_classify,
    keyword_match,
    keyword_scores,
    semantic_match,
)
from kbroute.core.models import Category


class TestKeywordScores:
    def test_name_keywords_and_partials(self, sample_categories):
        scores = dict(keyword_scores("tell me about SSM registration", sample_categories))
        # name 0.5 + two keyword hits 0.4 + two partials 0.2, clamped
        assert scores == {"ssm registration": 1.0}

    def test_partial_only(self):
        category = Category(name="tax", keywords=["filings"])
        # "filing" is inside "filings": partial only, 0.1 is not above the floor
        assert keyword_scores("my filing", [category]) == []

    def test_short_words_ignored(self):
        category = Category(name="zz", keywords=["ab"])
        assert keyword_scores("ab", [category]) == [("zz", 0.2)]

    def test_keyword_and_partial(self, finance_category):
        scores = keyword_scores("audit", [finance_category])
        assert scores[0][0] == "financial reports"
        assert scores[0][1] == pytest.approx(0.3)


class TestKeywordMatch:
    def test_no_matches(self, sample_categories):
        result = keyword_match("weather forecast", sample_categories)
        assert result.categories == []
        assert result.confidence == 0.0
        assert result.should_search_all is True
        assert result.reasoning == "No keyword matches"

    def test_strong_match(self, sample_categories):
        result = keyword_match("SSM registration steps", sample_categories)
        assert result.categories == ["ssm registration"]
        assert result.should_search_all is False
        assert result.reasoning == "Keyword matching"

    def test_top_two_mean(self):
        categories = [
            Category(name="n1", keywords=["alpha"]),
            Category(name="n2", keywords=["beta"]),
            Category(name="n3", keywords=["gamma", "delta"]),
        ]
        result = keyword_match("alpha beta gamma delta", categories)
        assert result.categories == ["n3", "n1"]
        assert result.confidence == pytest.approx((0.6 + 0.3) / 2)

    def test_weak_match_searches_all(self):
        result = keyword_match("ab", [Category(name="qq", keywords=["ab"])])
        assert result.categories == ["qq"]
        assert result.should_search_all is True


class TestSemanticMatch:
    @pytest.mark.asyncio
    async def test_matches_above_threshold(self, embedder_factory, sample_categories):
        embedder = embedder_factory({"q": [0.8, 0.6, 0.0]})
        result = await semantic_match("q", sample_categories, embedder, match_threshold=0.4)
        assert result.categories == ["ssm registration", "financial reports"]
        assert result.confidence == pytest.approx(0.7)
        assert result.should_search_all is False
        assert embedder.query_calls == ["q"]

    @pytest.mark.asyncio
    async def test_below_threshold(self, embedder, sample_categories):
        result = await semantic_match("q", sample_categories, embedder)
        assert result.categories == []
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_skips_categories_without_embedding(self, embedder_factory):
        embedder = embedder_factory({"q": [1.0, 0.0, 0.0]})
        result = await semantic_match("q", [Category(name="bare")], embedder)
        assert result.categories == []

    @pytest.mark.asyncio
    async def test_provider_failure(self, embedder_factory, sample_categories):
        result = await semantic_match("q", sample_categories, embedder_factory(fail=True))
        assert result.confidence == 0.0
        assert result.reasoning == "Semantic matching failed"

    @pytest.mark.asyncio
    async def test_weak_mean_searches_all(self, embedder_factory, sample_categories):
        embedder = embedder_factory({"q": [0.45, 0.0, 0.893]})
        result = await semantic_match("q", sample_categories, embedder)
        assert result.categories == ["ssm registration"]
        assert result.should_search_all is True


class TestCompletionClassify:
    def test_prompt_lists_categories(self, sample_categories):
        prompt = build_classification_prompt("how to register", sample_categories)
        assert 'USER QUERY: "how to register"' in prompt
        assert "- ssm registration:" in prompt
        assert "keywords: ssm, registration, company" in prompt

    @pytest.mark.asyncio
    async def test_filters_unknown_and_duplicates(self, llm_factory, sample_categories):
        llm = llm_factory(
            '{"categories": ["Financial Reports", "astrology", "financial reports", 7],'
            ' "confidence": 0.9, "shouldSearchAll": false, "reasoning": "money"}'
        )
        result = await completion_classify("q", sample_categories, llm)
        assert result.categories == ["financial reports"]
        assert result.confidence == 0.9
        assert result.should_search_all is False
        assert result.reasoning == "money"
        kwargs = llm.complete_prompt.call_args.kwargs
        assert kwargs == {"max_tokens": 200, "temperature": 0.1}

    @pytest.mark.asyncio
    async def test_no_valid_categories_searches_all(self, llm_factory, sample_categories):
        llm = llm_factory('{"categories": ["astrology"], "confidence": 0.8}')
        result = await completion_classify("q", sample_categories, llm)
        assert result.categories == []
        assert result.should_search_all is True

    @pytest.mark.asyncio
    async def test_missing_confidence_defaults(self, llm_factory, sample_categories):
        llm = llm_factory('{"categories": ["ssm registration"]}')
        result = await completion_classify("q", sample_categories, llm)
        assert result.confidence == 0.5
        assert result.reasoning is None

    @pytest.mark.asyncio
    async def test_provider_error(self, llm_factory, sample_categories):
        result = await completion_classify("q", sample_categories, llm_factory(RuntimeError("x")))
        assert result.categories == []
        assert result.should_search_all is True
        assert result.reasoning == "Completion classification failed"

    @pytest.mark.asyncio
    async def test_malformed(self, llm_factory, sample_categories):
        result = await completion_classify("q", sample_categories, llm_factory("maybe finance?"))
        assert result.confidence == 0.0
        assert result.reasoning == "Completion classification failed"

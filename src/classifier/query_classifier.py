# src/classifier/query_classifier.py — v1
"""Cascading query classifier.

Stages run cheapest first: keyword containment, embedding similarity,
then a completion call. Each stage either accepts (returns a
classification) or defers (returns None); the completion stage always
accepts. Nothing here raises on provider failure.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from kbroute.classifier.snapshot import CategorySnapshotCache
from kbroute.classifier.stages import completion_classify, keyword_match, semantic_match
from kbroute.core.models import Category, QueryClassification
from kbroute.llm.base_client import BaseLLMClient
from kbroute.logging.context import query_context, set_stage
from kbroute.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

Stage = Callable[[str, list[Category]], Awaitable["QueryClassification | None"]]


class QueryClassifier:
    """Routes a query to at most two categories, or to a search of everything."""

    def __init__(
        self,
        snapshot: CategorySnapshotCache,
        embedder: BaseEmbedder,
        llm: BaseLLMClient,
        keyword_accept_threshold: float = 0.8,
        semantic_accept_threshold: float = 0.7,
        semantic_match_threshold: float = 0.4,
        fast_path_escalation_threshold: float = 0.5,
    ) -> None:
        self._snapshot = snapshot
        self._embedder = embedder
        self._llm = llm
        self._keyword_accept = keyword_accept_threshold
        self._semantic_accept = semantic_accept_threshold
        self._semantic_match = semantic_match_threshold
        self._fast_escalation = fast_path_escalation_threshold
        self._stages: list[tuple[str, Stage]] = [
            ("keyword", self._keyword_stage),
            ("semantic", self._semantic_stage),
            ("completion", self._completion_stage),
        ]

    async def classify_query(self, query: str) -> QueryClassification:
        with query_context("query_classifier"):
            categories = await self._snapshot.get()
            if not categories:
                return QueryClassification(
                    categories=[], confidence=1.0, should_search_all=True,
                    reasoning="No categories defined",
                )

            for name, stage in self._stages:
                set_stage(name)
                result = await stage(query, categories)
                if result is not None:
                    logger.info(
                        "Query classified via %s: %s (%.2f)",
                        name, ", ".join(result.categories) or "all", result.confidence,
                    )
                    return result

        # The completion stage never defers.
        raise AssertionError("classification cascade ended without a result")

    async def classify_query_fast(self, query: str) -> QueryClassification:
        """Keyword matching, escalating to semantic only when weak. No completion call."""
        with query_context("query_classifier"):
            categories = await self._snapshot.get()
            if not categories:
                return QueryClassification(
                    categories=[], confidence=1.0, should_search_all=True,
                    reasoning="No categories defined",
                )

            set_stage("keyword")
            result = keyword_match(query, categories)
            if result.confidence < self._fast_escalation:
                set_stage("semantic")
                semantic = await semantic_match(
                    query, categories, self._embedder, self._semantic_match
                )
                if semantic.confidence > result.confidence:
                    return semantic
            return result

    def invalidate_cache(self) -> None:
        """Drop the category snapshot; the next query reloads it."""
        self._snapshot.invalidate()

    async def _keyword_stage(
        self, query: str, categories: list[Category]
    ) -> QueryClassification | None:
        result = keyword_match(query, categories)
        return result if result.confidence > self._keyword_accept else None

    async def _semantic_stage(
        self, query: str, categories: list[Category]
    ) -> QueryClassification | None:
        result = await semantic_match(query, categories, self._embedder, self._semantic_match)
        return result if result.confidence > self._semantic_accept else None

    async def _completion_stage(
        self, query: str, categories: list[Category]
    ) -> QueryClassification:
        return await completion_classify(query, categories, self._llm)

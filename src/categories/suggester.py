# src/categories/suggester.py — v2
"""Suggest a category for a single incoming document.

Order: no categories -> ask for a new name; otherwise embedding match
against existing categories; otherwise ask the completion provider to
choose or propose. Always returns a suggestion.
"""

from __future__ import annotations

import logging

from kbroute.core.json_extract import Malformed, as_float, extract_json
from kbroute.core.models import Category, CategorySuggestion, normalize_category_name
from kbroute.core.prompts import render_prompt
from kbroute.core.similarity import rank_by_similarity
from kbroute.llm.base_client import BaseLLMClient
from kbroute.llm.retry import LLMRetryExhausted, RetryConfig, with_retry
from kbroute.rag.embeddings.base_embedder import BaseEmbedder
from kbroute.storage.base_category_store import BaseCategoryStore

logger = logging.getLogger(__name__)

_COMPONENT = "category_suggester"
_PROMPT_CONTENT_LIMIT = 8000
_EMBED_CONTENT_LIMIT = 2000


class CategorySuggester:
    """Chooses an existing category or proposes a new one for a document."""

    def __init__(
        self,
        llm: BaseLLMClient,
        embedder: BaseEmbedder,
        category_store: BaseCategoryStore,
        semantic_threshold: float = 0.7,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._llm = llm
        self._embedder = embedder
        self._categories = category_store
        self._semantic_threshold = semantic_threshold
        self._retry_configs = retry_configs

    async def suggest_category(self, content: str, name: str) -> CategorySuggestion:
        categories = await self._categories.find(active_only=True)
        if not categories:
            return await self._suggest_new(content, name)

        match = await self._semantic_match(content, categories)
        if match is not None:
            return match

        return await self._choose_or_propose(content, name, categories)

    async def _semantic_match(
        self, content: str, categories: list[Category]
    ) -> CategorySuggestion | None:
        try:
            vector = await self._embedder.embed_text(content[:_EMBED_CONTENT_LIMIT])
        except Exception as e:
            logger.warning("Semantic category match skipped: %s", e)
            return None

        ranked = rank_by_similarity(
            vector,
            ((c.name, c.embedding) for c in categories),
            threshold=self._semantic_threshold,
            top_k=1,
        )
        if not ranked:
            return None
        best, score = ranked[0]
        logger.debug("Semantic category match %r (%.3f)", best, score)
        return CategorySuggestion(category=best, confidence=score, is_new=False)

    async def _choose_or_propose(
        self, content: str, name: str, categories: list[Category]
    ) -> CategorySuggestion:
        listing = "\n".join(
            f"- {c.name}: {c.description} (keywords: {', '.join(c.keywords[:5]) or 'none'})"
            for c in categories
        )
        prompt = render_prompt(
            "suggest_category",
            name=name,
            content=content[:_PROMPT_CONTENT_LIMIT],
            categories=listing,
        )
        data = await self._complete_json(prompt, max_tokens=300, temperature=0.2)
        if data is None:
            return CategorySuggestion(
                category="general", confidence=0.3, is_new=True,
                description="Uncategorized documents",
            )

        category = _category_name(data)
        known = {c.name for c in categories}
        return CategorySuggestion(
            category=category,
            confidence=as_float(data.get("confidence"), 0.5),
            is_new=bool(data.get("isNew")) or category not in known,
            description=_description(data),
        )

    async def _suggest_new(self, content: str, name: str) -> CategorySuggestion:
        prompt = render_prompt(
            "suggest_new_category", name=name, content=content[:_PROMPT_CONTENT_LIMIT]
        )
        data = await self._complete_json(prompt, max_tokens=200, temperature=0.3)
        if data is None:
            return CategorySuggestion(
                category="general", confidence=0.3, is_new=True,
                description="General documents",
            )
        return CategorySuggestion(
            category=_category_name(data),
            confidence=as_float(data.get("confidence"), 0.7),
            is_new=True,
            description=_description(data),
        )

    async def _complete_json(
        self, prompt: str, max_tokens: int, temperature: float
    ) -> dict | None:
        try:
            raw = await with_retry(
                self._llm.complete_prompt, prompt,
                max_tokens=max_tokens, temperature=temperature,
                component=_COMPONENT, retry_configs=self._retry_configs,
            )
        except LLMRetryExhausted as e:
            logger.error("Category suggestion failed: %s", e)
            return None

        result = extract_json(raw)
        if isinstance(result, Malformed):
            logger.warning("Category suggestion output malformed: %s", result.reason)
            return None
        return result.data


def _category_name(data: dict) -> str:
    value = data.get("category")
    if not isinstance(value, str) or not value.strip():
        return "general"
    return normalize_category_name(value)


def _description(data: dict) -> str | None:
    value = data.get("description")
    return value if isinstance(value, str) and value else None

# src/classifier/stages.py — v1
"""The three matching strategies behind query classification.

Each returns a raw QueryClassification; acceptance thresholds are applied
by the caller. Only the completion strategy talks to an LLM, and none of
them raise.
"""

from __future__ import annotations

import logging

from kbroute.core.json_extract import Malformed, as_float, extract_json
from kbroute.core.models import MAX_QUERY_CATEGORIES, Category, QueryClassification
from kbroute.core.prompts import render_prompt
from kbroute.core.similarity import rank_by_similarity
from kbroute.llm.base_client import BaseLLMClient
from kbroute.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

NAME_SCORE = 0.5
KEYWORD_SCORE = 0.2
PARTIAL_SCORE = 0.1
MIN_KEYWORD_SCORE = 0.1


def _top_mean(matches: list[tuple[str, float]]) -> tuple[list[str], float]:
    top = sorted(matches, key=lambda m: m[1], reverse=True)[:MAX_QUERY_CATEGORIES]
    return [name for name, _ in top], sum(score for _, score in top) / len(top)


def keyword_scores(query: str, categories: list[Category]) -> list[tuple[str, float]]:
    """Score each category by name and keyword containment in the query."""
    query_lower = query.lower()
    words = {w for w in query_lower.split() if len(w) > 2}
    matches: list[tuple[str, float]] = []

    for category in categories:
        score = 0.0
        if category.name.lower() in query_lower:
            score += NAME_SCORE
        for keyword in category.keywords:
            kw = keyword.lower()
            if kw in query_lower:
                score += KEYWORD_SCORE
            for word in words:
                if kw in word or word in kw:
                    score += PARTIAL_SCORE
        if score > MIN_KEYWORD_SCORE:
            matches.append((category.name, min(score, 1.0)))
    return matches


def keyword_match(query: str, categories: list[Category]) -> QueryClassification:
    matches = keyword_scores(query, categories)
    if not matches:
        return QueryClassification(confidence=0.0, reasoning="No keyword matches")
    names, mean = _top_mean(matches)
    return QueryClassification(
        categories=names,
        confidence=mean,
        should_search_all=mean < 0.3,
        reasoning="Keyword matching",
    )


async def semantic_match(
    query: str,
    categories: list[Category],
    embedder: BaseEmbedder,
    match_threshold: float = 0.4,
) -> QueryClassification:
    """Cosine match of the query embedding against category embeddings."""
    try:
        vector = await embedder.embed_query(query)
    except Exception as e:
        logger.warning("Semantic matching failed: %s", e)
        return QueryClassification(confidence=0.0, reasoning="Semantic matching failed")

    matches = rank_by_similarity(
        vector,
        ((c.name, c.embedding) for c in categories),
        threshold=match_threshold,
    )
    if not matches:
        return QueryClassification(
            confidence=0.0, reasoning="No semantic matches above threshold"
        )
    names, mean = _top_mean(matches)
    return QueryClassification(
        categories=names,
        confidence=mean,
        should_search_all=mean < 0.5,
        reasoning="Semantic embedding matching",
    )


def build_classification_prompt(query: str, categories: list[Category]) -> str:
    listing = "\n".join(
        f"- {c.name}: {c.description} (keywords: {', '.join(c.keywords[:5]) or 'none'})"
        for c in categories
    )
    return render_prompt("classify_query", query=query, categories=listing)


_FAILED = "Completion classification failed"


async def completion_classify(
    query: str, categories: list[Category], llm: BaseLLMClient
) -> QueryClassification:
    """Ask the completion provider to route the query. Always returns."""
    try:
        raw = await llm.complete_prompt(
            build_classification_prompt(query, categories),
            max_tokens=200,
            temperature=0.1,
        )
    except Exception as e:
        logger.warning("Completion classification error: %s", e)
        return QueryClassification(confidence=0.0, should_search_all=True, reasoning=_FAILED)

    result = extract_json(raw)
    if isinstance(result, Malformed):
        logger.warning("Completion classification malformed: %s", result.reason)
        return QueryClassification(confidence=0.0, should_search_all=True, reasoning=_FAILED)

    data = result.data
    proposed = result.get_list("categories") or []
    known = {c.name.lower() for c in categories}
    valid: list[str] = []
    for name in proposed:
        if isinstance(name, str) and name.lower() in known and name.lower() not in valid:
            valid.append(name.lower())

    reasoning = data.get("reasoning")
    return QueryClassification(
        categories=valid,
        confidence=as_float(data.get("confidence"), 0.5),
        should_search_all=bool(data.get("shouldSearchAll")) or not valid,
        reasoning=reasoning if isinstance(reasoning, str) else None,
    )

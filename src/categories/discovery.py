# src/categories/discovery.py — v2
"""Category discovery: cluster a corpus into named categories, then persist them.

Discovery is offline and tolerant: an empty corpus, a provider failure or
an unparseable completion all yield an empty list. Saving upserts by
normalized name and reassigns member documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from kbroute.core.json_extract import Malformed, extract_json
from kbroute.core.models import (
    MAX_SAMPLE_DOCUMENTS,
    Category,
    CorpusItem,
    DiscoveredCategory,
    category_embedding_text,
    normalize_category_name,
)
from kbroute.core.prompts import render_prompt
from kbroute.llm.base_client import BaseLLMClient
from kbroute.llm.retry import LLMRetryExhausted, RetryConfig, with_retry
from kbroute.rag.embeddings.base_embedder import BaseEmbedder
from kbroute.storage.base_category_store import BaseCategoryStore
from kbroute.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

_COMPONENT = "category_discovery"
_SUMMARY_LIMIT = 500


@dataclass
class SaveReport:
    """Outcome of persisting discovered categories."""

    created: int = 0
    updated: int = 0
    reassigned: int = 0
    conflicts: int = 0
    categories: list[str] = field(default_factory=list)


def build_discovery_prompt(corpus: list[CorpusItem]) -> str:
    """Enumerate the corpus with 1-based indices for the discovery prompt."""
    blocks = []
    for i, item in enumerate(corpus, start=1):
        topics = ", ".join(item.topics) or "none"
        blocks.append(
            f'[{i}] "{item.name}"\n'
            f"Summary: {item.summary_or_content(_SUMMARY_LIMIT)}\n"
            f"Topics: {topics}\n"
        )
    return render_prompt("discover_categories", documents="\n".join(blocks))


def _valid_indices(raw: Any, size: int) -> list[int]:
    if not isinstance(raw, list):
        return []
    return [
        idx for idx in raw
        if isinstance(idx, int) and not isinstance(idx, bool) and 1 <= idx <= size
    ]


def parse_discovered(data: dict[str, Any], corpus: list[CorpusItem]) -> list[DiscoveredCategory]:
    """Map the completion's category objects back onto corpus ids."""
    discovered: list[DiscoveredCategory] = []
    for entry in data.get("categories") or []:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        keywords = [k for k in entry.get("keywords") or [] if isinstance(k, str)]
        indices = _valid_indices(entry.get("documentIndices"), len(corpus))
        discovered.append(
            DiscoveredCategory(
                name=name.strip(),
                description=str(entry.get("description") or ""),
                keywords=keywords,
                document_ids=[corpus[idx - 1].id for idx in indices],
            )
        )
    return discovered


class CategoryDiscoveryEngine:
    """Discovers categories with a completion provider and stores them."""

    def __init__(
        self,
        llm: BaseLLMClient,
        embedder: BaseEmbedder,
        category_store: BaseCategoryStore,
        document_store: BaseDocumentStore,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._llm = llm
        self._embedder = embedder
        self._categories = category_store
        self._documents = document_store
        self._retry_configs = retry_configs

    async def discover_categories(self, corpus: list[CorpusItem]) -> list[DiscoveredCategory]:
        """Ask the completion provider to cluster ``corpus``. Never raises."""
        if not corpus:
            logger.info("No documents to analyze, skipping category discovery")
            return []

        logger.info("Discovering categories across %d documents", len(corpus))
        prompt = build_discovery_prompt(corpus)
        try:
            raw = await with_retry(
                self._llm.complete_prompt, prompt,
                max_tokens=2000, temperature=0.3,
                component=_COMPONENT, retry_configs=self._retry_configs,
            )
        except LLMRetryExhausted as e:
            logger.error("Category discovery failed: %s", e)
            return []

        result = extract_json(raw)
        if isinstance(result, Malformed):
            logger.error("Category discovery returned malformed output: %s", result.reason)
            return []
        if result.get_list("categories") is None:
            logger.error("Category discovery output has no 'categories' list")
            return []

        discovered = parse_discovered(result.data, corpus)
        logger.info("Discovered %d categories", len(discovered))
        return discovered

    async def _write_discovered(
        self, categories: list[DiscoveredCategory]
    ) -> SaveReport:
        """Upsert each category by name and move its documents into it.

        Only CategoryService calls this, inside its mutation scope, so the
        classifier snapshot and the caches are dropped afterwards.

        A document listed under several categories ends in the last one
        (input order); each such move is logged and counted as a conflict.
        """
        report = SaveReport()
        owner: dict[str, str] = {}

        for discovered in categories:
            name = normalize_category_name(discovered.name)
            if not name:
                continue
            doc_ids = list(dict.fromkeys(discovered.document_ids))
            existing = await self._categories.find_by_name(name)

            if existing is not None:
                existing.description = discovered.description
                existing.keywords = list(discovered.keywords)
                existing.document_count = len(doc_ids)
                existing.sample_documents = doc_ids[:MAX_SAMPLE_DOCUMENTS]
                existing.updated_at = datetime.now(timezone.utc)
                await self._categories.upsert(existing)
                report.updated += 1
            else:
                embedding = await self._embed_category(
                    name, discovered.description, discovered.keywords
                )
                await self._categories.upsert(
                    Category(
                        name=name,
                        description=discovered.description,
                        keywords=list(discovered.keywords),
                        embedding=embedding,
                        document_count=len(doc_ids),
                        sample_documents=doc_ids[:MAX_SAMPLE_DOCUMENTS],
                    )
                )
                report.created += 1

            for doc_id in doc_ids:
                previous = owner.get(doc_id)
                if previous is not None and previous != name:
                    logger.warning(
                        "Document %s listed under %r and %r, keeping %r",
                        doc_id, previous, name, name,
                    )
                    report.conflicts += 1
                owner[doc_id] = name

            report.reassigned += await self._documents.reassign_category(doc_ids, name)
            report.categories.append(name)

        logger.info(
            "Saved categories: %d created, %d updated, %d documents reassigned",
            report.created, report.updated, report.reassigned,
        )
        return report

    async def _embed_category(
        self, name: str, description: str, keywords: list[str]
    ) -> list[float] | None:
        text = category_embedding_text(name, description, keywords)
        try:
            return await self._embedder.embed_text(text)
        except Exception as e:
            logger.warning("Embedding failed for category %r, storing without: %s", name, e)
            return None

# src/storage/memory_store.py — v1
"""In-memory category and document stores (STORE_BACKEND=memory).

Process-local and lost on exit. Used by tests and ephemeral runs.
"""

from __future__ import annotations

from kbroute.core.models import Category, CorpusItem, normalize_category_name
from kbroute.storage.base_category_store import BaseCategoryStore
from kbroute.storage.base_document_store import BaseDocumentStore


class MemoryCategoryStore(BaseCategoryStore):
    """Dict-backed category store keyed by normalized name."""

    def __init__(self, categories: list[Category] | None = None) -> None:
        self._by_name: dict[str, Category] = {}
        for category in categories or []:
            self._by_name[category.name] = category.model_copy(deep=True)

    async def find(self, active_only: bool = True) -> list[Category]:
        return [
            c.model_copy(deep=True)
            for name, c in sorted(self._by_name.items())
            if c.is_active or not active_only
        ]

    async def find_by_name(self, name: str) -> Category | None:
        category = self._by_name.get(normalize_category_name(name))
        return None if category is None else category.model_copy(deep=True)

    async def upsert(self, category: Category) -> Category:
        existing = self._by_name.get(category.name)
        stored = category.model_copy(deep=True)
        if existing is not None:
            stored.id = existing.id
            stored.created_at = existing.created_at
        self._by_name[stored.name] = stored
        return stored.model_copy(deep=True)

    async def delete(self, name: str) -> bool:
        return self._by_name.pop(normalize_category_name(name), None) is not None


class MemoryDocumentStore(BaseDocumentStore):
    """Dict-backed document index."""

    def __init__(self, documents: list[CorpusItem] | None = None) -> None:
        self._docs: dict[str, CorpusItem] = {}
        for item in documents or []:
            self._docs[item.id] = item.model_copy(deep=True)

    async def list_corpus(self) -> list[CorpusItem]:
        return [self._docs[k].model_copy(deep=True) for k in sorted(self._docs)]

    async def get_document(self, document_id: str) -> CorpusItem | None:
        item = self._docs.get(document_id)
        return None if item is None else item.model_copy(deep=True)

    async def add_document(self, item: CorpusItem) -> None:
        self._docs[item.id] = item.model_copy(deep=True)

    async def remove_document(self, document_id: str) -> bool:
        return self._docs.pop(document_id, None) is not None

    async def reassign_category(self, document_ids: list[str], category: str | None) -> int:
        updated = 0
        for doc_id in document_ids:
            item = self._docs.get(doc_id)
            if item is not None:
                item.category = category
                updated += 1
        return updated

    async def clear_category(self, category: str) -> int:
        ids = [d.id for d in self._docs.values() if d.category == category]
        return await self.reassign_category(ids, None)

    async def documents_in_category(
        self, category: str, limit: int | None = None
    ) -> list[CorpusItem]:
        items = [d for d in await self.list_corpus() if d.category == category]
        return items if limit is None else items[:limit]

    async def count_documents(self, category: str | None = None) -> int:
        if category is None:
            return len(self._docs)
        return sum(1 for d in self._docs.values() if d.category == category)

    async def count_categorized(self) -> int:
        return sum(1 for d in self._docs.values() if d.category)

# src/storage/base_category_store.py — v1
"""Abstract category persistence interface.

Names are unique and compared lower-cased. Writers outside
CategoryService must call QueryClassifier.invalidate_cache themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbroute.core.models import Category


class BaseCategoryStore(ABC):
    """Unified interface for category storage backends."""

    @abstractmethod
    async def find(self, active_only: bool = True) -> list[Category]:
        """List categories ordered by name."""

    @abstractmethod
    async def find_by_name(self, name: str) -> Category | None:
        """Case-insensitive lookup by name."""

    @abstractmethod
    async def upsert(self, category: Category) -> Category:
        """Insert or replace the category with the same normalized name."""

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete by name. Returns True if a category was removed."""

    async def close(self) -> None:
        """Release backend resources."""

# src/storage/store_factory.py — v1
"""Factory: instantiate category and document stores from configuration."""

from __future__ import annotations

import logging

from kbroute.config.settings import Settings
from kbroute.storage.base_category_store import BaseCategoryStore
from kbroute.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)


def create_stores(
    settings: Settings | None = None,
) -> tuple[BaseCategoryStore, BaseDocumentStore]:
    """Create the category and document stores.

    Args:
        settings: Application settings (STORE_BACKEND, STORE_PATH). None
            yields in-memory stores.

    Returns:
        (category_store, document_store) sharing the same backend.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = "memory" if settings is None else settings.store_backend

    if backend == "memory":
        from kbroute.storage.memory_store import MemoryCategoryStore, MemoryDocumentStore
        return MemoryCategoryStore(), MemoryDocumentStore()

    if backend == "sqlite":
        from kbroute.storage.sqlite_store import SqliteCategoryStore, SqliteDocumentStore
        logger.debug("Opening sqlite stores at %s", settings.store_path)
        return (
            SqliteCategoryStore(settings.store_path),
            SqliteDocumentStore(settings.store_path),
        )

    raise ValueError(f"Unsupported store backend: {backend!r}")

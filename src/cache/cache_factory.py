# src/cache/cache_factory.py — v3
"""Factory for the out-of-process cache tiers.

The shared tier backs the embedding, search and stats caches; the
persistent tier backs the document-metadata cache.
"""

from __future__ import annotations

import logging

from kbroute.cache.base_cache_store import BaseCacheStore
from kbroute.config.settings import Settings

logger = logging.getLogger(__name__)


def create_shared_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured shared tier, or None when disabled.

    Args:
        settings: Application settings. None disables the shared tier.

    Returns:
        Configured BaseCacheStore implementation, or None.
    """
    backend = "none" if settings is None else settings.cache_shared_backend

    if backend == "none":
        return None

    if backend == "redis":
        from kbroute.cache.redis_store import RedisCacheStore
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_SHARED_BACKEND=redis"
            )
        logger.debug("Creating shared cache tier: redis")
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported shared cache backend: {backend!r}")


def create_persistent_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured persistent document tier, or None when disabled."""
    backend = "none" if settings is None else settings.cache_document_backend

    if backend == "none":
        return None

    cache_root = settings.cache_root.expanduser()

    if backend == "json":
        from kbroute.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root / "documents")

    if backend == "sqlite":
        from kbroute.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=cache_root / "kbroute_cache.db")

    raise ValueError(f"Unsupported document cache backend: {backend!r}")

# src/cache/redis_store.py — v2
"""Redis-backed shared cache tier (CACHE_SHARED_BACKEND=redis).

Requires 'redis' package: pip install redis.
Shared across processes and instances. All keys live under a namespace so
prefix deletion never touches foreign data.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from kbroute.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

_NAMESPACE = "kbroute:"
_DELETE_BATCH = 500


class RedisCacheStore(BaseCacheStore):
    """Async Redis store for embedding, search and stats caches."""

    def __init__(self, redis_url: str, namespace: str = _NAMESPACE) -> None:
        try:
            import redis.asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = aioredis.Redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace

    async def get(self, key: str) -> Any | None:
        data = await self._client.get(self._name(key))
        if data is None:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Failed to deserialize redis entry %s: %s", key, e)
            return None

    async def put(self, key: str, value: Any, ttl_s: int | None = None) -> None:
        await self._client.set(self._name(key), json.dumps(value), ex=ttl_s)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._name(key))

    async def delete_prefix(self, prefix: str) -> int:
        """Delete by SCAN pattern; batched to keep each DEL bounded."""
        removed = 0
        batch: list[str] = []
        async for name in self._client.scan_iter(match=f"{self._namespace}{prefix}*"):
            batch.append(name)
            if len(batch) >= _DELETE_BATCH:
                removed += await self._client.delete(*batch)
                batch = []
        if batch:
            removed += await self._client.delete(*batch)
        logger.debug("Deleted %d redis keys with prefix %r", removed, prefix)
        return removed

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def backend_name(self) -> str:
        return "redis"

    def _name(self, key: str) -> str:
        return f"{self._namespace}{key}"

# src/cache/base_cache_store.py — v2
"""Abstract interface for the shared and persistent cache tiers.

Values crossing this boundary are JSON-compatible (dicts, lists, strings,
numbers). Implementations may raise on I/O errors; TieredCache turns every
failure into a miss or a no-op.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseCacheStore(ABC):
    """Unified interface for out-of-process cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or expired."""

    @abstractmethod
    async def put(self, key: str, value: Any, ttl_s: int | None = None) -> None:
        """Store ``value`` under ``key``; ``ttl_s`` None means no expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a single key (missing keys are ignored)."""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. Returns the count removed."""

    async def clear(self) -> None:
        """Remove every key owned by this store."""
        await self.delete_prefix("")

    async def close(self) -> None:
        """Release connections or file handles."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (redis, json, sqlite)."""

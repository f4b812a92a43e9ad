# src/cache/json_store.py — v2
"""JSON file-based persistent cache (CACHE_DOCUMENT_BACKEND=json).

One JSON file per key under CACHE_ROOT, holding the original key, the value
and an absolute wall-clock expiry. Survives restarts and works offline.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from kbroute.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(
        self,
        cache_root: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        record = self._read(path)
        if record is None:
            return None
        expires_at = record.get("expires_at")
        if expires_at is not None and self._clock() > expires_at:
            path.unlink(missing_ok=True)
            return None
        return record.get("value")

    async def put(self, key: str, value: Any, ttl_s: int | None = None) -> None:
        record = {
            "key": key,
            "value": value,
            "expires_at": None if ttl_s is None else self._clock() + ttl_s,
        }
        path = self._entry_path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(record), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    async def delete_prefix(self, prefix: str) -> int:
        removed = 0
        for path in self._root.glob("*.json"):
            record = self._read(path)
            if record is None or str(record.get("key", "")).startswith(prefix):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    @property
    def backend_name(self) -> str:
        return "json"

    def _read(self, path: Path) -> dict[str, Any] | None:
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cache file %s: %s", path.name, e)
            return None
        return record if isinstance(record, dict) else None

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_").replace(":", "__")
        return self._root / f"{safe_key}.json"

# src/cache/sqlite_store.py — v2
"""SQLite-based persistent cache (CACHE_DOCUMENT_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency.
Better than JSON files once the document cache holds many entries.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable

from kbroute.cache.base_cache_store import BaseCacheStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    expires_at REAL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_expires_at ON cache_entries(expires_at);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(
        self,
        db_path: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> Any | None:
        row = self._conn.execute(
            "SELECT data, expires_at FROM cache_entries WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        data, expires_at = row
        if expires_at is not None and self._clock() > expires_at:
            await self.delete(key)
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, value: Any, ttl_s: int | None = None) -> None:
        """Store a cache entry (upsert)."""
        expires_at = None if ttl_s is None else self._clock() + ttl_s
        self._conn.execute(
            """INSERT OR REPLACE INTO cache_entries (key, data, expires_at)
               VALUES (?, ?, ?)""",
            (key, json.dumps(value), expires_at),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
        self._conn.commit()

    async def delete_prefix(self, prefix: str) -> int:
        cursor = self._conn.execute(
            "DELETE FROM cache_entries WHERE substr(key, 1, ?) = ?",
            (len(prefix), prefix),
        )
        self._conn.commit()
        return cursor.rowcount

    async def purge_expired(self) -> int:
        """Drop every expired row. Returns the count removed."""
        cursor = self._conn.execute(
            "DELETE FROM cache_entries WHERE expires_at IS NOT NULL AND expires_at < ?",
            (self._clock(),),
        )
        self._conn.commit()
        return cursor.rowcount

    async def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    @property
    def backend_name(self) -> str:
        return "sqlite"

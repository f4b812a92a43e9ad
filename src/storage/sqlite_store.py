# src/storage/sqlite_store.py — v1
"""SQLite category and document stores (STORE_BACKEND=sqlite).

Uses stdlib sqlite3. Both stores may share one database file; each opens
its own connection and creates its own table.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from kbroute.core.models import Category, CorpusItem, normalize_category_name
from kbroute.storage.base_category_store import BaseCategoryStore
from kbroute.storage.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

_CATEGORY_SCHEMA = """
CREATE TABLE IF NOT EXISTS categories (
    name TEXT PRIMARY KEY,
    id TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    data TEXT NOT NULL
);
"""

_DOCUMENT_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    summary TEXT NOT NULL DEFAULT '',
    content TEXT NOT NULL DEFAULT '',
    topics TEXT NOT NULL DEFAULT '[]',
    category TEXT
);
CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category);
"""


def _connect(db_path: Path | str) -> sqlite3.Connection:
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


class SqliteCategoryStore(BaseCategoryStore):
    """Categories stored as JSON rows keyed by normalized name."""

    def __init__(self, db_path: Path | str) -> None:
        self._conn = _connect(db_path)
        self._conn.executescript(_CATEGORY_SCHEMA)

    async def find(self, active_only: bool = True) -> list[Category]:
        sql = "SELECT data FROM categories"
        if active_only:
            sql += " WHERE is_active = 1"
        rows = self._conn.execute(sql + " ORDER BY name").fetchall()
        return [Category.model_validate_json(row[0]) for row in rows]

    async def find_by_name(self, name: str) -> Category | None:
        row = self._conn.execute(
            "SELECT data FROM categories WHERE name = ?",
            (normalize_category_name(name),),
        ).fetchone()
        return None if row is None else Category.model_validate_json(row[0])

    async def upsert(self, category: Category) -> Category:
        existing = await self.find_by_name(category.name)
        stored = category.model_copy()
        if existing is not None:
            stored.id = existing.id
            stored.created_at = existing.created_at
        self._conn.execute(
            """INSERT OR REPLACE INTO categories (name, id, is_active, data)
               VALUES (?, ?, ?, ?)""",
            (stored.name, stored.id, int(stored.is_active), stored.model_dump_json()),
        )
        self._conn.commit()
        return stored

    async def delete(self, name: str) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM categories WHERE name = ?", (normalize_category_name(name),)
        )
        self._conn.commit()
        return cursor.rowcount > 0

    async def close(self) -> None:
        self._conn.close()


class SqliteDocumentStore(BaseDocumentStore):
    """Document index table with an indexed category column."""

    def __init__(self, db_path: Path | str) -> None:
        self._conn = _connect(db_path)
        self._conn.executescript(_DOCUMENT_SCHEMA)

    async def list_corpus(self) -> list[CorpusItem]:
        rows = self._conn.execute(
            "SELECT id, name, summary, content, topics, category FROM documents ORDER BY id"
        ).fetchall()
        return [self._row_to_item(row) for row in rows]

    async def get_document(self, document_id: str) -> CorpusItem | None:
        row = self._conn.execute(
            "SELECT id, name, summary, content, topics, category FROM documents WHERE id = ?",
            (document_id,),
        ).fetchone()
        return None if row is None else self._row_to_item(row)

    async def add_document(self, item: CorpusItem) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO documents (id, name, summary, content, topics, category)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (item.id, item.name, item.summary, item.content, json.dumps(item.topics), item.category),
        )
        self._conn.commit()

    async def remove_document(self, document_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    async def reassign_category(self, document_ids: list[str], category: str | None) -> int:
        updated = 0
        for doc_id in document_ids:
            cursor = self._conn.execute(
                "UPDATE documents SET category = ? WHERE id = ?", (category, doc_id)
            )
            updated += cursor.rowcount
        self._conn.commit()
        return updated

    async def clear_category(self, category: str) -> int:
        cursor = self._conn.execute(
            "UPDATE documents SET category = NULL WHERE category = ?", (category,)
        )
        self._conn.commit()
        return cursor.rowcount

    async def documents_in_category(
        self, category: str, limit: int | None = None
    ) -> list[CorpusItem]:
        sql = (
            "SELECT id, name, summary, content, topics, category FROM documents "
            "WHERE category = ? ORDER BY id"
        )
        params: tuple = (category,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (category, limit)
        return [self._row_to_item(row) for row in self._conn.execute(sql, params).fetchall()]

    async def count_documents(self, category: str | None = None) -> int:
        if category is None:
            row = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM documents WHERE category = ?", (category,)
            ).fetchone()
        return int(row[0])

    async def count_categorized(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM documents WHERE category IS NOT NULL AND category != ''"
        ).fetchone()
        return int(row[0])

    async def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_item(row: tuple) -> CorpusItem:
        doc_id, name, summary, content, topics, category = row
        try:
            topic_list = json.loads(topics)
        except json.JSONDecodeError:
            logger.warning("Invalid topics JSON for document %s", doc_id)
            topic_list = []
        return CorpusItem(
            id=doc_id, name=name, summary=summary, content=content,
            topics=topic_list, category=category,
        )

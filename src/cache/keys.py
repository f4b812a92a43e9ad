# src/cache/keys.py — v1
"""Deterministic cache key derivation.

Keys are an md5 digest of the raw input behind a role prefix. Inputs are
not normalized: case and whitespace differences yield different keys.
"""

from __future__ import annotations

import hashlib

EMBEDDING_PREFIX = "emb:"
SEARCH_PREFIX = "search:"
STATS_PREFIX = "stats:"
DOCUMENT_PREFIX = "doc:"


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()  # noqa: S324


def embedding_cache_key(text: str) -> str:
    return f"{EMBEDDING_PREFIX}{_md5(text)}"


def search_cache_key(query: str, strategy: str) -> str:
    """Key for a search result computed for ``query`` with ``strategy``."""
    return f"{SEARCH_PREFIX}{_md5(f'{query}:{strategy}')}"


def stats_cache_key(scope: str) -> str:
    return f"{STATS_PREFIX}{scope}"


def document_cache_key(document_id: str) -> str:
    return f"{DOCUMENT_PREFIX}{document_id}"

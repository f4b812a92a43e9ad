# src/core/similarity.py — v3
"""Cosine similarity utilities.

Pure functions over plain float sequences. Single-pair similarity never
raises: mismatched lengths, empty vectors and zero norms all score 0.0.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity between two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity in [-1, 1], or 0.0 when lengths differ or a norm is zero.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def rank_by_similarity(
    query_vector: Sequence[float],
    candidates: Iterable[tuple[str, Sequence[float] | None]],
    threshold: float = 0.0,
    top_k: int | None = None,
) -> list[tuple[str, float]]:
    """Score candidates against a query vector.

    Candidates without a vector are skipped. Only scores strictly above
    ``threshold`` are kept.

    Returns:
        (name, score) pairs sorted by descending score, truncated to top_k.
    """
    scored: list[tuple[str, float]] = []
    for name, vector in candidates:
        if not vector:
            continue
        score = cosine_similarity(query_vector, vector)
        if score > threshold:
            scored.append((name, score))

    scored.sort(key=lambda item: item[1], reverse=True)
    if top_k is not None:
        scored = scored[:top_k]
    return scored

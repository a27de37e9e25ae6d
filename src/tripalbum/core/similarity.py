"""Vector similarity helpers."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero length or the dimensions differ.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.size == 0:
        return 0.0

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def best_match(vector: Sequence[float], others: Sequence[Sequence[float]]) -> tuple[int, float]:
    """Index and similarity of the most similar vector in ``others``.

    Ties keep the earliest index. Returns ``(-1, -inf)`` for an empty list.
    """
    best_index = -1
    best_score = float("-inf")
    for index, other in enumerate(others):
        score = cosine_similarity(vector, other)
        if score > best_score:
            best_index, best_score = index, score
    return best_index, best_score

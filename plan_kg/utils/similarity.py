"""
Similarity Utilities

Token and vector similarity measures used by entity resolution.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import numpy as np

_SPLIT = re.compile(r"\W+")


def tokenize(text: str) -> set[str]:
    """
    Lowercase word tokens longer than two characters.

    Args:
        text: e.g., "Add OAuth login flow"

    Returns:
        e.g., {"add", "oauth", "login", "flow"}
    """
    return {t for t in _SPLIT.split(text.lower()) if len(t) > 2}


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """|a & b| / |a | b|; 0.0 when both are empty."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def cosine_similarity(
    a: Sequence[float] | None, b: Sequence[float] | None
) -> float:
    """
    Cosine similarity of two vectors.

    Vectors of different length are compared on their common prefix.
    Missing, empty or zero vectors give 0.0.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0:
        return 0.0

    n = min(len(a), len(b))
    left = np.asarray(a[:n], dtype=np.float64)
    right = np.asarray(b[:n], dtype=np.float64)
    norm = float(np.linalg.norm(left) * np.linalg.norm(right))
    if norm == 0.0:
        return 0.0
    return float(np.dot(left, right) / norm)

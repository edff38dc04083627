"""Normalized edit-distance similarity over canonical payload strings."""

from __future__ import annotations

from typing import Sequence

import numpy as np

# Comparisons look at most at this many leading characters of each string.
DEFAULT_MAX_COMPARE_CHARS = 2000


def levenshtein_distance(a: str, b: str) -> int:
    """Character-level Levenshtein distance using two rolling rows."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    prev_row = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current_row = [i]
        for j, char_b in enumerate(b, start=1):
            insert_cost = current_row[j - 1] + 1
            delete_cost = prev_row[j] + 1
            replace_cost = prev_row[j - 1] + (char_a != char_b)
            current_row.append(min(insert_cost, delete_cost, replace_cost))
        prev_row = current_row
    return prev_row[-1]


def similarity(
    a: str,
    b: str,
    *,
    floor: float = 0.0,
    max_chars: int | None = DEFAULT_MAX_COMPARE_CHARS,
) -> float:
    """``(len(longer) - distance) / len(longer)``; 1.0 only for identical strings.

    Pairs whose length ratio already rules out reaching ``floor`` return that
    upper bound without running the distance computation.
    """
    if a == b:
        return 1.0

    if max_chars is not None:
        a, b = a[:max_chars], b[:max_chars]
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if not longer:
        return 1.0

    upper_bound = len(shorter) / len(longer)
    if upper_bound < floor:
        return upper_bound

    distance = levenshtein_distance(longer, shorter)
    score = (len(longer) - distance) / len(longer)
    # Truncation can hide a difference; distinct inputs never score a perfect 1.0.
    return min(score, 1.0 - 1.0 / (len(longer) + 1))


def similarity_matrix(
    texts: Sequence[str],
    *,
    floor: float = 0.0,
    max_chars: int | None = DEFAULT_MAX_COMPARE_CHARS,
) -> np.ndarray:
    """Symmetric pairwise similarity matrix with ones on the diagonal."""
    n = len(texts)
    matrix = np.ones((n, n), dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            score = similarity(texts[i], texts[j], floor=floor, max_chars=max_chars)
            matrix[i, j] = matrix[j, i] = score
    return matrix

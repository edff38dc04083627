"""Committee consensus: cluster near-duplicate payloads, largest cluster wins."""

from __future__ import annotations

from typing import Any

import numpy as np

from .base import BaseStrategy, StrategyOutcome, canonicalize
from .similarity import DEFAULT_MAX_COMPARE_CHARS, similarity_matrix


def _clusters(matrix: np.ndarray, threshold: float) -> list[list[int]]:
    """Union-find over pairs with similarity >= threshold, ordered by earliest member."""
    n = matrix.shape[0]
    parent = list(range(n))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(n):
        for j in range(i + 1, n):
            if matrix[i, j] >= threshold:
                root_i, root_j = find(i), find(j)
                if root_i != root_j:
                    parent[max(root_i, root_j)] = min(root_i, root_j)

    grouped: dict[int, list[int]] = {}
    for idx in range(n):
        grouped.setdefault(find(idx), []).append(idx)
    return sorted(grouped.values(), key=lambda members: members[0])


class CommitteeStrategy(BaseStrategy):
    """Similarity clustering by normalized edit distance.

    With ``threshold=1.0`` clusters are exact-match groups and the result is
    identical to plain voting.
    """

    name = "committee"

    def __init__(self, threshold: float = 0.8, *, max_compare_chars: int | None = DEFAULT_MAX_COMPARE_CHARS) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        self.threshold = threshold
        self.max_compare_chars = max_compare_chars

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        texts = [canonicalize(p) for p in payloads]
        matrix = similarity_matrix(texts, floor=self.threshold, max_chars=self.max_compare_chars)
        clusters = _clusters(matrix, self.threshold)

        largest = clusters[0]
        for members in clusters[1:]:
            if len(members) > len(largest):
                largest = members

        total = len(payloads)
        groups = [
            {"size": len(members), "percentage": len(members) / total * 100.0, "members": members}
            for members in clusters
        ]
        ratio = len(largest) / total
        return StrategyOutcome(
            winning_payload=payloads[largest[0]],
            agreement_ratio=ratio,
            explanation=(
                f"committee: largest cluster {len(largest)}/{total} "
                f"across {len(clusters)} cluster{'s' if len(clusters) != 1 else ''} "
                f"(threshold {self.threshold:.2f})"
            ),
            details={
                "groups": groups,
                "consensus_group_size": len(largest),
                "total_groups": len(clusters),
                "threshold": self.threshold,
            },
        )


class MostSimilarStrategy(BaseStrategy):
    """Payload with the highest summed similarity to all others."""

    name = "most_similar"

    def __init__(self, *, max_compare_chars: int | None = DEFAULT_MAX_COMPARE_CHARS) -> None:
        self.max_compare_chars = max_compare_chars

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        texts = [canonicalize(p) for p in payloads]
        matrix = similarity_matrix(texts, max_chars=self.max_compare_chars)
        n = len(payloads)
        cohesion = (matrix.sum(axis=1) - 1.0) / max(1, n - 1)
        best = int(np.argmax(cohesion))
        identical = sum(1 for t in texts if t == texts[best])
        return StrategyOutcome(
            winning_payload=payloads[best],
            agreement_ratio=identical / n,
            explanation=f"most similar: response {best} has mean similarity {cohesion[best]:.2f} to the others",
            details={"cohesion": [float(c) for c in cohesion], "selected_index": best},
        )

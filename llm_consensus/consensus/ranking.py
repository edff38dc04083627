"""Multi-criterion ranking consensus."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any

import numpy as np

from .base import BaseStrategy, StrategyOutcome, canonicalize


_NUMBER_RE = re.compile(r"\d+")
_ERROR_MARKERS = ("error", "unknown")


@dataclass(slots=True, frozen=True)
class RankingCriteria:
    """Weights of the four scoring criteria."""

    completeness: float = 0.3
    clarity: float = 0.3
    specificity: float = 0.2
    uniqueness: float = 0.2


class RankingStrategy(BaseStrategy):
    """Score each payload and return the best with the full ranking.

    - completeness: serialized length relative to the longest payload
    - clarity: 1.0 without literal error/unknown markers, else 0.0
    - specificity: 1.0 when numeric tokens appear, else 0.5
    - uniqueness: 1 / number of exact duplicates
    """

    name = "ranking"

    def __init__(self, criteria: RankingCriteria | None = None) -> None:
        self.criteria = criteria or RankingCriteria()

    def score_components(self, payloads: list[Any]) -> dict[str, np.ndarray]:
        texts = [canonicalize(p) for p in payloads]
        lengths = np.array([len(t) for t in texts], dtype=float)
        lowered = [t.lower() for t in texts]
        return {
            "completeness": lengths / lengths.max() if lengths.max() > 0 else np.zeros(len(texts)),
            "clarity": np.array([0.0 if any(m in t for m in _ERROR_MARKERS) else 1.0 for t in lowered]),
            "specificity": np.array([1.0 if _NUMBER_RE.search(t) else 0.5 for t in texts]),
            "uniqueness": np.array([1.0 / texts.count(t) for t in texts]),
        }

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        components = self.score_components(payloads)
        c = self.criteria
        scores = (
            c.completeness * components["completeness"]
            + c.clarity * components["clarity"]
            + c.specificity * components["specificity"]
            + c.uniqueness * components["uniqueness"]
        )
        order = [int(i) for i in np.argsort(-scores, kind="stable")]
        best = order[0]

        winner_text = canonicalize(payloads[best])
        identical = sum(1 for p in payloads if canonicalize(p) == winner_text)
        ranking = [{"rank": rank + 1, "index": idx, "score": float(scores[idx])} for rank, idx in enumerate(order)]
        return StrategyOutcome(
            winning_payload=payloads[best],
            agreement_ratio=identical / len(payloads),
            explanation=f"ranking: response {best} scored highest ({float(scores[best]):.3f})",
            details={"ranking": ranking},
        )

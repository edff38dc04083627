"""Field-wise merge of object payloads."""

from __future__ import annotations

from collections import Counter
from typing import Any

from .base import BaseStrategy, StrategyOutcome, canonicalize


class AveragingStrategy(BaseStrategy):
    """Average numeric fields, vote on string fields, keep the first value otherwise.

    Non-object payloads are ignored when building the merge; if none of the
    payloads is an object the first payload is returned unchanged.
    """

    name = "averaging"

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        objects = [p for p in payloads if isinstance(p, dict)]
        if not objects:
            return StrategyOutcome(
                winning_payload=payloads[0],
                agreement_ratio=1 / len(payloads),
                explanation="averaging: no object payloads to merge, first response kept",
            )

        keys: list[str] = []
        for obj in objects:
            keys.extend(k for k in obj if k not in keys)

        merged: dict[str, Any] = {}
        for key in keys:
            values = [obj[key] for obj in objects if obj.get(key) is not None]
            if not values:
                continue
            if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
                merged[key] = sum(values) / len(values)
            elif all(isinstance(v, str) for v in values):
                merged[key] = Counter(values).most_common(1)[0][0]
            else:
                merged[key] = values[0]

        merged_text = canonicalize(merged)
        identical = sum(1 for p in payloads if canonicalize(p) == merged_text)
        return StrategyOutcome(
            winning_payload=merged,
            agreement_ratio=identical / len(payloads),
            explanation=f"averaging: merged {len(keys)} field(s) from {len(objects)} object response(s)",
            details={"merged_fields": keys},
        )

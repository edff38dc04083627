"""Exact-match voting strategies: plain, weighted and confidence-weighted."""

from __future__ import annotations

from typing import Any

from .base import BaseStrategy, StrategyOutcome, group_exact


# Payload field carrying a response's self-reported confidence.
CONFIDENCE_FIELD = "confidence"


def strip_confidence(payload: Any) -> Any:
    if isinstance(payload, dict) and CONFIDENCE_FIELD in payload:
        return {k: v for k, v in payload.items() if k != CONFIDENCE_FIELD}
    return payload


def _tally(payloads: list[Any], weights: list[float]) -> tuple[list[int], float, float, dict[str, float]]:
    """Group payloads and return (winning indices, winning score, total score, score per group).

    Ties go to the group seen first.
    """
    groups = group_exact(payloads)
    scores = {key: sum(weights[i] for i in members) for key, members in groups.items()}

    best_key = next(iter(groups))
    for key in groups:
        if scores[key] > scores[best_key]:
            best_key = key
    return groups[best_key], scores[best_key], sum(weights), scores


class VotingStrategy(BaseStrategy):
    """Most common canonical payload wins."""

    name = "voting"

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        winners, votes, total, scores = _tally(payloads, [1.0] * len(payloads))
        ratio = votes / total
        return StrategyOutcome(
            winning_payload=payloads[winners[0]],
            agreement_ratio=ratio,
            explanation=f"voting: {int(votes)}/{len(payloads)} responses agree ({ratio * 100:.1f}%)",
            details={
                "votes": [int(v) for v in scores.values()],
                "winning_indices": winners,
                "distinct_responses": len(scores),
            },
        )


class WeightedVotingStrategy(BaseStrategy):
    """Each payload votes with its provider's static weight."""

    name = "weighted"

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        weights = weights if weights is not None else [1.0] * len(payloads)
        if any(w < 0 for w in weights):
            raise ValueError("Vote weights must be non-negative")

        winners, score, total, scores = _tally(payloads, weights)
        ratio = score / total if total > 0 else len(winners) / len(payloads)
        return StrategyOutcome(
            winning_payload=payloads[winners[0]],
            agreement_ratio=ratio,
            explanation=f"weighted voting: winning weight {score:.2f} of {total:.2f} ({ratio * 100:.1f}%)",
            details={
                "weighted_score": score,
                "total_weight": total,
                "group_scores": list(scores.values()),
                "winning_indices": winners,
            },
        )


class HybridStrategy(BaseStrategy):
    """Voting where each response counts with its own confidence score.

    Payloads are grouped with their ``confidence`` field removed, so equal
    answers reported with different confidences vote together. Missing or
    non-positive confidences count as 1.0.
    """

    name = "hybrid"

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        confidences = [w if w and w > 0 else 1.0 for w in weights] if weights is not None else [1.0] * len(payloads)
        winners, score, total, scores = _tally([strip_confidence(p) for p in payloads], confidences)
        ratio = score / total
        mean_confidence = total / len(payloads)
        return StrategyOutcome(
            winning_payload=payloads[winners[0]],
            agreement_ratio=ratio,
            explanation=(
                f"hybrid voting: confidence mass {score:.2f} of {total:.2f} "
                f"({ratio * 100:.1f}%), mean confidence {mean_confidence:.2f}"
            ),
            details={
                "winning_confidence": score,
                "mean_confidence": mean_confidence,
                "group_scores": list(scores.values()),
                "winning_indices": winners,
            },
        )

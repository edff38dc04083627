"""Voting plus committee clustering with a human-readable explanation."""

from __future__ import annotations

from typing import Any

from .base import BaseStrategy, StrategyOutcome
from .committee import CommitteeStrategy
from .vote import VotingStrategy


class AugmentedStrategy(BaseStrategy):
    """Voting picks the winner; clustering explains how spread the answers are."""

    name = "augmented"

    def __init__(self, threshold: float = 0.8) -> None:
        self.voting = VotingStrategy()
        self.committee = CommitteeStrategy(threshold=threshold)

    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        vote = self.voting.aggregate(payloads)
        committee = self.committee.aggregate(payloads)

        viewpoints = committee.details["total_groups"]
        explanation = (
            f"consensus reached via voting ({vote.agreement_ratio * 100:.1f}% agreement) "
            f"across {viewpoints} distinct viewpoint{'s' if viewpoints != 1 else ''}; "
            f"largest agreement group {committee.details['consensus_group_size']}/{len(payloads)}"
        )
        return StrategyOutcome(
            winning_payload=vote.winning_payload,
            agreement_ratio=vote.agreement_ratio,
            explanation=explanation,
            details={"voting": vote.details, "committee": committee.details},
        )

"""Consensus strategy implementations."""

from .augmented import AugmentedStrategy
from .averaging import AveragingStrategy
from .base import BaseStrategy, StrategyOutcome, canonicalize
from .committee import CommitteeStrategy, MostSimilarStrategy
from .ranking import RankingCriteria, RankingStrategy
from .vote import HybridStrategy, VotingStrategy, WeightedVotingStrategy

STRATEGIES: dict[str, type[BaseStrategy]] = {
    VotingStrategy.name: VotingStrategy,
    WeightedVotingStrategy.name: WeightedVotingStrategy,
    HybridStrategy.name: HybridStrategy,
    CommitteeStrategy.name: CommitteeStrategy,
    RankingStrategy.name: RankingStrategy,
    AugmentedStrategy.name: AugmentedStrategy,
    AveragingStrategy.name: AveragingStrategy,
    MostSimilarStrategy.name: MostSimilarStrategy,
}


def get_strategy(strategy: str | BaseStrategy) -> BaseStrategy:
    """Resolve a strategy name to a default-configured instance."""
    if isinstance(strategy, BaseStrategy):
        return strategy
    try:
        return STRATEGIES[strategy]()
    except KeyError as exc:
        raise ValueError(f"Unsupported consensus strategy: {strategy}") from exc


__all__ = [
    "BaseStrategy",
    "StrategyOutcome",
    "canonicalize",
    "get_strategy",
    "STRATEGIES",
    "VotingStrategy",
    "WeightedVotingStrategy",
    "HybridStrategy",
    "CommitteeStrategy",
    "MostSimilarStrategy",
    "RankingCriteria",
    "RankingStrategy",
    "AugmentedStrategy",
    "AveragingStrategy",
]

"""Consensus strategy abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import json
from typing import Any, Sequence


def canonicalize(payload: Any) -> str:
    """Stable string form of a payload: sorted keys, compact separators."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(slots=True)
class StrategyOutcome:
    """Winner of one strategy run over a list of payloads."""

    winning_payload: Any
    agreement_ratio: float
    explanation: str
    details: dict[str, Any] = field(default_factory=dict)


class BaseStrategy(ABC):
    """Pure reducer from successful payloads to one winner.

    ``weights`` is parallel to ``payloads``; strategies that do not weight
    responses ignore it.
    """

    name: str

    def aggregate(self, payloads: Sequence[Any], *, weights: Sequence[float] | None = None) -> StrategyOutcome:
        if not payloads:
            raise ValueError(f"{type(self).__name__} received no payloads")
        if weights is not None and len(weights) != len(payloads):
            raise ValueError("Payloads and weights must have the same length")
        return self._aggregate(list(payloads), None if weights is None else [float(w) for w in weights])

    @abstractmethod
    def _aggregate(self, payloads: list[Any], weights: list[float] | None) -> StrategyOutcome:
        """Reduce a non-empty payload list."""


def group_exact(payloads: Sequence[Any]) -> dict[str, list[int]]:
    """Indices of payloads sharing a canonical form, in first-occurrence order."""
    groups: dict[str, list[int]] = {}
    for idx, payload in enumerate(payloads):
        groups.setdefault(canonicalize(payload), []).append(idx)
    return groups

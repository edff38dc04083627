"""Cost/quality tier selection from question complexity and task type."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any


@dataclass(slots=True, frozen=True)
class Tier:
    """A cost bucket and the profile that serves it."""

    name: str
    profile: str
    description: str
    cost_multiplier: float
    examples: tuple[str, ...] = ()


DEFAULT_TIERS: dict[str, Tier] = {
    "cheap": Tier(
        name="cheap",
        profile="fast",
        description="Fast, cheap responses",
        cost_multiplier=0.1,
        examples=("logging", "formatting", "syntax check", "simple analysis", "template selection"),
    ),
    "balanced": Tier(
        name="balanced",
        profile="balanced",
        description="Standard consensus",
        cost_multiplier=0.5,
        examples=("code generation", "requirement analysis", "architecture decisions", "testing strategy"),
    ),
    "expensive": Tier(
        name="expensive",
        profile="accurate",
        description="Full multi-provider consensus",
        cost_multiplier=3.0,
        examples=("security review", "edge cases", "conflict resolution", "critical decisions"),
    ),
}

COMPLEXITY_TIERS: dict[str, str] = {
    "simple": "cheap",
    "fast": "cheap",
    "medium": "balanced",
    "complex": "expensive",
    "critical": "expensive",
    "precise": "expensive",
}

TASK_TYPE_OVERRIDES: dict[str, str] = {
    "security": "expensive",
    "validation": "expensive",
    "edge-cases": "expensive",
    "requirement-check": "expensive",
    "quality-assurance": "expensive",
    "code-generation": "balanced",
    "analysis": "balanced",
    "formatting": "cheap",
    "logging": "cheap",
}

EXPENSIVE_KEYWORDS = (
    "security",
    "vulnerability",
    "edge case",
    "requirement",
    "validation",
    "critical",
    "compliance",
    "risk",
    "ensure",
    "verify",
)
CHEAP_KEYWORDS = ("format", "log", "simple", "check", "list", "summarize", "count", "syntax")

BASELINE_COST_PER_CALL_USD = 0.005


@dataclass(slots=True)
class QuestionAnalysis:
    complexity: str
    score: float
    tier: str
    profile: str


class TierSelector:
    """Deterministic table lookups; no I/O and no state between calls."""

    def __init__(
        self,
        *,
        tiers: dict[str, Tier] | None = None,
        task_overrides: dict[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.tiers = dict(tiers or DEFAULT_TIERS)
        self.task_overrides = dict(TASK_TYPE_OVERRIDES if task_overrides is None else task_overrides)
        self.logger = logger or logging.getLogger("llm_consensus.routing")

        unknown = {t for t in self.task_overrides.values() if t not in self.tiers}
        if unknown:
            raise ValueError(f"Task overrides reference unknown tiers: {sorted(unknown)}")

    def select_tier(self, complexity: str = "medium", task_type: str = "") -> str:
        """Task-type override first, then complexity; unknown complexities are balanced."""
        tier = self.task_overrides.get(task_type) or COMPLEXITY_TIERS.get(complexity, "balanced")
        self.logger.debug("Tier selection complexity=%s task_type=%s tier=%s", complexity, task_type, tier)
        return tier

    def select_profile(self, complexity: str = "medium", task_type: str = "") -> str:
        return self.tiers[self.select_tier(complexity, task_type)].profile

    def analyze_question(self, question: str) -> QuestionAnalysis:
        """Keyword/length heuristic for callers that do not state a complexity."""
        lowered = question.lower()
        score = 0.0
        score += 0.5 * sum(1 for k in EXPENSIVE_KEYWORDS if k in lowered)
        score -= 0.5 * sum(1 for k in CHEAP_KEYWORDS if k in lowered)
        if len(question) > 500:
            score += 0.3
        if len(question) < 50:
            score -= 0.3

        if score > 1:
            complexity = "complex"
        elif score < -1:
            complexity = "simple"
        else:
            complexity = "medium"

        tier = self.select_tier(complexity)
        return QuestionAnalysis(complexity=complexity, score=score, tier=tier, profile=self.tiers[tier].profile)

    def estimate_cost(self, task_type: str, call_count: int = 1) -> dict[str, Any]:
        tier = self.tiers[self.task_overrides.get(task_type, "balanced")]
        per_call = BASELINE_COST_PER_CALL_USD * tier.cost_multiplier
        return {
            "tier": tier.name,
            "profile": tier.profile,
            "cost_per_call_usd": per_call,
            "total_estimate_usd": per_call * call_count,
        }

    def list_tiers(self) -> list[dict[str, Any]]:
        return [
            {
                "name": tier.name,
                "profile": tier.profile,
                "description": tier.description,
                "cost_multiplier": tier.cost_multiplier,
                "examples": list(tier.examples),
            }
            for tier in self.tiers.values()
        ]

"""Tests for tier selection."""

from __future__ import annotations

import pytest

from llm_consensus.routing import BASELINE_COST_PER_CALL_USD, Tier, TierSelector


def test_complexity_maps_to_tier() -> None:
    selector = TierSelector()
    assert selector.select_tier("simple") == "cheap"
    assert selector.select_tier("medium") == "balanced"
    assert selector.select_tier("critical") == "expensive"
    assert selector.select_tier("something-new") == "balanced"


def test_task_type_override_wins() -> None:
    selector = TierSelector()
    for complexity in ("simple", "medium", "complex"):
        assert selector.select_tier(complexity, "security") == "expensive"
    assert selector.select_tier("critical", "formatting") == "cheap"
    assert selector.select_tier("simple", "not-a-task-type") == "cheap"


def test_profile_resolution() -> None:
    selector = TierSelector()
    assert selector.select_profile("simple") == "fast"
    assert selector.select_profile("medium", "code-generation") == "balanced"
    assert selector.select_profile(task_type="validation") == "accurate"


def test_analyze_question_heuristic() -> None:
    selector = TierSelector()
    risky = selector.analyze_question("Verify the security requirement and validation for every edge case")
    assert risky.complexity == "complex"
    assert risky.tier == "expensive"

    trivial = selector.analyze_question("Format this list")
    assert trivial.complexity == "simple"
    assert trivial.profile == "fast"


def test_estimate_cost() -> None:
    estimate = TierSelector().estimate_cost("security", call_count=10)
    assert estimate["tier"] == "expensive"
    assert estimate["cost_per_call_usd"] == pytest.approx(BASELINE_COST_PER_CALL_USD * 3.0)
    assert estimate["total_estimate_usd"] == pytest.approx(BASELINE_COST_PER_CALL_USD * 30.0)


def test_custom_tiers_validated() -> None:
    tiers = {"only": Tier(name="only", profile="fallback", description="single", cost_multiplier=1.0)}
    with pytest.raises(ValueError, match="unknown tiers"):
        TierSelector(tiers=tiers)
    selector = TierSelector(tiers=tiers, task_overrides={"anything": "only"})
    assert [t["name"] for t in selector.list_tiers()] == ["only"]
    assert selector.select_profile(task_type="anything") == "fallback"

"""End-to-end tests for fan-out and reconciliation."""

from __future__ import annotations

import asyncio

import pytest

from helpers import ScriptedAdapter, make_catalog
from llm_consensus.errors import AllProvidersFailed, NoProvidersAvailable
from llm_consensus.orchestrator import SINGLE_SURVIVOR_EXPLANATION, TIMEOUT_DETAIL, Orchestrator
from llm_consensus.types import CallRequest, CallResult, CallStatus, ConsensusResult, ProviderDescriptor
from llm_consensus.utils.cost_tracker import UsageTracker


def _request(timeout_ms: int = 60_000) -> CallRequest:
    return CallRequest(system_prompt="Answer in JSON.", user_prompt="What is x?", timeout_ms=timeout_ms)


def test_majority_vote_across_three_providers() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [{"x": 1}]),
                ScriptedAdapter("beta", [{"x": 1}]),
                ScriptedAdapter("gamma", [{"x": 2}]),
            ],
            catalog=make_catalog("alpha", "beta", "gamma"),
        )
        result = await orchestrator.consensus_call("trio", _request())
        assert result.winning_payload == {"x": 1}
        assert result.agreement_percentage == pytest.approx(66.7, abs=0.05)
        assert result.success_count == 3
        assert result.participant_count == 3
        assert result.strategy_used == "voting"

    asyncio.run(_run())


def test_single_survivor_skips_strategy() -> None:
    async def _run() -> None:
        slow = ScriptedAdapter("alpha", [{"x": 9}], delay=1.0)
        garbled = ScriptedAdapter("beta", ["definitely not json"])
        good = ScriptedAdapter("gamma", [{"x": 5}])
        orchestrator = Orchestrator([slow, garbled, good], catalog=make_catalog("alpha", "beta", "gamma"))

        result = await orchestrator.consensus_call("trio", _request(timeout_ms=100), "committee")
        assert result.winning_payload == {"x": 5}
        assert result.explanation == SINGLE_SURVIVOR_EXPLANATION
        assert result.strategy_used == "single"
        assert result.agreement_ratio == 1.0
        assert (result.participant_count, result.success_count) == (3, 1)

        by_provider = {r.provider_id: r for r in result.call_results}
        assert by_provider["alpha"].error_detail == TIMEOUT_DETAIL
        assert by_provider["beta"].status is CallStatus.FAILED
        assert "No JSON found" in by_provider["beta"].error_detail
        assert len(garbled.calls) == 3

    asyncio.run(_run())


def test_all_providers_failed() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [RuntimeError("HTTP 500")], max_attempts=1),
                ScriptedAdapter("beta", ["nope"], max_attempts=1),
            ],
            catalog=make_catalog("alpha", "beta"),
        )
        with pytest.raises(AllProvidersFailed) as excinfo:
            await orchestrator.consensus_call("trio", _request())
        assert len(excinfo.value.results) == 2
        assert not any(r.succeeded for r in excinfo.value.results)

    asyncio.run(_run())


def test_no_available_providers_fails_before_dispatch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCRIPTED_ADAPTER_TEST_KEY", raising=False)

    async def _run() -> None:
        adapter = ScriptedAdapter("alpha", [{"x": 1}], api_key=None)
        orchestrator = Orchestrator([adapter], catalog=make_catalog("alpha", "beta"))
        with pytest.raises(NoProvidersAvailable):
            await orchestrator.call_multiple("trio", _request())
        assert adapter.calls == []
        assert orchestrator.provider_status() == {"alpha": False}

    asyncio.run(_run())


def test_unregistered_and_unavailable_providers_are_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCRIPTED_ADAPTER_TEST_KEY", raising=False)

    async def _run() -> None:
        orchestrator = Orchestrator(
            [ScriptedAdapter("alpha", [{"x": 1}]), ScriptedAdapter("beta", [{"x": 1}], api_key=None)],
            catalog=make_catalog("alpha", "beta", "gamma"),
        )
        results = await orchestrator.call_multiple("trio", _request())
        assert [r.provider_id for r in results] == ["alpha"]

    asyncio.run(_run())


def test_explicit_descriptor_list_and_weights() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [{"x": "heavy"}]),
                ScriptedAdapter("beta", [{"x": "light"}]),
                ScriptedAdapter("gamma", [{"x": "light"}]),
            ],
            catalog=make_catalog("alpha", "beta", "gamma"),
        )
        descriptors = [
            ProviderDescriptor("alpha", "alpha-1", weight=3.0),
            ProviderDescriptor("beta", "beta-1", weight=1.0),
            ProviderDescriptor("gamma", "gamma-1", weight=1.0),
        ]
        result = await orchestrator.consensus_call(descriptors, _request(), "weighted")
        assert result.winning_payload == {"x": "heavy"}
        assert result.agreement_ratio == pytest.approx(0.6)

        voted = await orchestrator.consensus_call(descriptors, _request(), "voting")
        assert voted.winning_payload == {"x": "light"}

    asyncio.run(_run())


def test_hybrid_reads_payload_confidence() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [{"answer": "a", "confidence": 0.95}]),
                ScriptedAdapter("beta", [{"answer": "b", "confidence": 0.3}]),
            ],
            catalog=make_catalog("alpha", "beta"),
        )
        result = await orchestrator.consensus_call("trio", _request(), "hybrid")
        assert result.winning_payload["answer"] == "a"

    asyncio.run(_run())


def test_hybrid_pools_confidence_of_matching_answers() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [{"answer": "a", "confidence": 0.6}]),
                ScriptedAdapter("beta", [{"answer": "a", "confidence": 0.5}]),
                ScriptedAdapter("gamma", [{"answer": "b", "confidence": 0.9}]),
            ],
            catalog=make_catalog("alpha", "beta", "gamma"),
        )
        result = await orchestrator.consensus_call("trio", _request(), "hybrid")
        assert result.winning_payload["answer"] == "a"
        assert result.agreement_ratio == pytest.approx(0.55)
        assert result.details["mean_confidence"] == pytest.approx(2.0 / 3)

    asyncio.run(_run())


def test_usage_is_tracked_per_call() -> None:
    async def _run() -> None:
        catalog = make_catalog("alpha", "beta")
        tracker = UsageTracker(pricing=catalog.pricing)
        orchestrator = Orchestrator(
            [
                ScriptedAdapter("alpha", [{"x": 1}]),
                ScriptedAdapter("beta", [RuntimeError("down")], max_attempts=1),
            ],
            catalog=catalog,
            tracker=tracker,
        )
        await orchestrator.consensus_call("trio", _request(), agent="planner")
        snapshot = tracker.snapshot()
        assert snapshot["calls"] == 2
        assert snapshot["failed_calls"] == 1
        assert snapshot["total_input_tokens"] == 10
        assert tracker.agent_summary("planner")["calls"] == 2
        await orchestrator.close()

    asyncio.run(_run())


def test_unknown_profile_rejected() -> None:
    async def _run() -> None:
        orchestrator = Orchestrator([ScriptedAdapter("alpha", [{"x": 1}])], catalog=make_catalog("alpha"))
        with pytest.raises(ValueError, match="Unknown profile"):
            await orchestrator.call_multiple("nonexistent", _request())

    asyncio.run(_run())


def test_result_invariants() -> None:
    with pytest.raises(ValueError):
        CallResult(provider_id="alpha", model_id="alpha-1", status=CallStatus.SUCCEEDED)
    with pytest.raises(ValueError):
        CallResult(provider_id="alpha", model_id="alpha-1", status=CallStatus.FAILED, payload={"x": 1})
    with pytest.raises(ValueError):
        ConsensusResult(
            winning_payload=None,
            agreement_ratio=0.0,
            participant_count=2,
            success_count=0,
            strategy_used="voting",
            explanation="",
        )

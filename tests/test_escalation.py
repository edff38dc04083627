"""Tests for the cheap-first escalation policy."""

from __future__ import annotations

import asyncio

from helpers import ScriptedAdapter
from llm_consensus.escalation import adaptive_consensus, escalation_reason, should_escalate
from llm_consensus.models.catalog import load_provider_catalog
from llm_consensus.orchestrator import Orchestrator
from llm_consensus.types import CallRequest, ConsensusResult


def _result(payload: object, ratio: float, success: int = 3, participants: int = 3) -> ConsensusResult:
    return ConsensusResult(
        winning_payload=payload,
        agreement_ratio=ratio,
        participant_count=participants,
        success_count=success,
        strategy_used="voting",
        explanation="test",
    )


def test_confident_result_is_kept() -> None:
    assert not should_escalate(_result({"answer": 42}, 1.0))
    assert escalation_reason(_result({"answer": 42}, 0.7)) == ""


def test_low_agreement_escalates() -> None:
    assert should_escalate(_result({"answer": 42}, 0.5))
    assert "agreement" in escalation_reason(_result({"answer": 42}, 0.5))


def test_low_success_ratio_escalates() -> None:
    reason = escalation_reason(_result({"answer": 42}, 1.0, success=1, participants=3))
    assert reason.startswith("success ratio")


def test_error_marker_escalates() -> None:
    assert should_escalate(_result({"answer": "Unknown"}, 1.0))
    assert not should_escalate(_result({"answer": "Unknown"}, 1.0), markers=())


def _orchestrator(cheap: list[ScriptedAdapter], premium: list[ScriptedAdapter]) -> Orchestrator:
    models = {a.provider_id: {"provider": a.provider_id, "model_id": f"{a.provider_id}-1"} for a in cheap + premium}
    catalog = load_provider_catalog(
        raw_config={
            "models": models,
            "profiles": {
                "economical": [a.provider_id for a in cheap],
                "premium": [a.provider_id for a in premium],
            },
        }
    )
    return Orchestrator(cheap + premium, catalog=catalog)


def test_adaptive_consensus_stays_cheap_when_confident() -> None:
    async def _run() -> None:
        cheap = [ScriptedAdapter("c1", [{"x": 1}]), ScriptedAdapter("c2", [{"x": 1}])]
        premium = [ScriptedAdapter("p1", [{"x": 2}])]
        outcome = await adaptive_consensus(
            _orchestrator(cheap, premium), CallRequest(system_prompt="s", user_prompt="u")
        )
        assert not outcome.escalated
        assert outcome.result.winning_payload == {"x": 1}
        assert premium[0].calls == []

    asyncio.run(_run())


def test_adaptive_consensus_escalates_on_disagreement() -> None:
    async def _run() -> None:
        cheap = [ScriptedAdapter("c1", [{"x": 1}]), ScriptedAdapter("c2", [{"x": 2}])]
        premium = [ScriptedAdapter("p1", [{"x": 3}]), ScriptedAdapter("p2", [{"x": 3}])]
        outcome = await adaptive_consensus(
            _orchestrator(cheap, premium), CallRequest(system_prompt="s", user_prompt="u")
        )
        assert outcome.escalated
        assert outcome.reason.startswith("agreement")
        assert outcome.result.winning_payload == {"x": 3}
        assert len(premium[0].calls) == 1

    asyncio.run(_run())


def test_adaptive_consensus_honors_policy_overrides() -> None:
    async def _run() -> None:
        cheap = [
            ScriptedAdapter("c1", [{"answer": "unknown"}]),
            ScriptedAdapter("c2", [{"answer": "unknown"}]),
            ScriptedAdapter("c3", [RuntimeError("down")], max_attempts=1),
        ]
        premium = [ScriptedAdapter("p1", [{"answer": "blue"}])]
        orchestrator = _orchestrator(cheap, premium)
        request = CallRequest(system_prompt="s", user_prompt="u")

        kept = await adaptive_consensus(orchestrator, request, markers=(), min_success_ratio=0.5)
        assert not kept.escalated
        assert kept.result.winning_payload == {"answer": "unknown"}
        assert premium[0].calls == []

        escalated = await adaptive_consensus(orchestrator, request, markers=(), min_success_ratio=0.9)
        assert escalated.escalated
        assert escalated.reason.startswith("success ratio")
        assert escalated.result.winning_payload == {"answer": "blue"}

    asyncio.run(_run())

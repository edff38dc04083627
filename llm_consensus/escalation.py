"""Cheap-first consensus that escalates to a premium profile on weak agreement."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from .consensus import BaseStrategy
from .consensus.base import canonicalize
from .orchestrator import Orchestrator
from .types import CallRequest, ConsensusResult


DEFAULT_MARKERS = ("error", "unknown")


@dataclass(slots=True)
class EscalationOutcome:
    result: ConsensusResult
    escalated: bool
    reason: str = ""


def escalation_reason(
    result: ConsensusResult,
    *,
    min_agreement: float = 0.7,
    min_success_ratio: float = 0.7,
    markers: Sequence[str] = DEFAULT_MARKERS,
) -> str:
    """Empty string when ``result`` is good enough, else why it is not."""
    if result.agreement_ratio < min_agreement:
        return f"agreement {result.agreement_ratio:.2f} below {min_agreement:.2f}"
    success_ratio = result.success_count / result.participant_count
    if success_ratio < min_success_ratio:
        return f"success ratio {success_ratio:.2f} below {min_success_ratio:.2f}"
    text = canonicalize(result.winning_payload).lower()
    for marker in markers:
        if marker in text:
            return f"winning answer contains '{marker}'"
    return ""


def should_escalate(
    result: ConsensusResult,
    *,
    min_agreement: float = 0.7,
    min_success_ratio: float = 0.7,
    markers: Sequence[str] = DEFAULT_MARKERS,
) -> bool:
    return bool(
        escalation_reason(
            result, min_agreement=min_agreement, min_success_ratio=min_success_ratio, markers=markers
        )
    )


async def adaptive_consensus(
    orchestrator: Orchestrator,
    request: CallRequest,
    cheap_profile: str = "economical",
    premium_profile: str = "premium",
    strategy: str | BaseStrategy = "voting",
    *,
    agent: str = "unknown",
    min_agreement: float = 0.7,
    min_success_ratio: float = 0.7,
    markers: Sequence[str] = DEFAULT_MARKERS,
    logger: logging.Logger | None = None,
) -> EscalationOutcome:
    """Try ``cheap_profile`` first; rerun on ``premium_profile`` if the answer is weak.

    Errors from the cheap stage propagate; they are not treated as a reason to
    escalate.
    """
    logger = logger or logging.getLogger("llm_consensus.escalation")
    cheap = await orchestrator.consensus_call(cheap_profile, request, strategy, agent=agent)
    reason = escalation_reason(
        cheap, min_agreement=min_agreement, min_success_ratio=min_success_ratio, markers=markers
    )
    if not reason:
        logger.info("Cheap profile %s accepted (%.0f%% agreement)", cheap_profile, cheap.agreement_percentage)
        return EscalationOutcome(result=cheap, escalated=False)

    logger.info("Escalating %s -> %s: %s", cheap_profile, premium_profile, reason)
    premium = await orchestrator.consensus_call(premium_profile, request, strategy, agent=agent)
    return EscalationOutcome(result=premium, escalated=True, reason=reason)

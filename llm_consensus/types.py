"""Core value types shared by adapters, strategies and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(slots=True, frozen=True)
class ProviderDescriptor:
    """Static provider/model pairing taken from configuration."""

    provider_id: str
    model_id: str
    cost_class: str = "medium"
    latency_class: str = "fast"
    weight: float = 1.0
    features: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class OutputSchema:
    """Named JSON Schema every backend must honor."""

    name: str
    schema: dict[str, Any]
    strict: bool = True


@dataclass(slots=True, frozen=True)
class CallRequest:
    """One logical request, fanned out unchanged to every adapter."""

    system_prompt: str
    user_prompt: str
    output_schema: OutputSchema | None = None
    temperature: float = 0.2
    timeout_ms: int = 60_000
    max_tokens: int = 4096


class CallStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class CallResult:
    """Outcome of one adapter within a fan-out."""

    provider_id: str
    model_id: str
    status: CallStatus
    payload: Any = None
    error_detail: str | None = None
    elapsed_ms: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    attempts: int = 0

    def __post_init__(self) -> None:
        if (self.payload is not None) != (self.status is CallStatus.SUCCEEDED):
            raise ValueError(
                f"CallResult for {self.provider_id}:{self.model_id} must carry a payload "
                "exactly when it succeeded"
            )

    @property
    def succeeded(self) -> bool:
        return self.status is CallStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "model_id": self.model_id,
            "status": self.status.value,
            "payload": self.payload,
            "error_detail": self.error_detail,
            "elapsed_ms": self.elapsed_ms,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "attempts": self.attempts,
        }


@dataclass(slots=True)
class ConsensusResult:
    """Reconciled answer plus agreement metadata.

    ``agreement_ratio`` is a fraction in ``[0, 1]``. A result always stands on
    at least one successful response; an empty set is an error upstream.
    """

    winning_payload: Any
    agreement_ratio: float
    participant_count: int
    success_count: int
    strategy_used: str
    explanation: str
    details: dict[str, Any] = field(default_factory=dict)
    call_results: list[CallResult] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.success_count < 1:
            raise ValueError("ConsensusResult requires at least one successful response")
        if self.participant_count < self.success_count:
            raise ValueError("participant_count cannot be lower than success_count")

    @property
    def agreement_percentage(self) -> float:
        return self.agreement_ratio * 100.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to serializable dictionary."""
        return {
            "winning_payload": self.winning_payload,
            "agreement_ratio": self.agreement_ratio,
            "participant_count": self.participant_count,
            "success_count": self.success_count,
            "strategy_used": self.strategy_used,
            "explanation": self.explanation,
            "details": self.details,
            "call_results": [r.to_dict() for r in self.call_results],
        }

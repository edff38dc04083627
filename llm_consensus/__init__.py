"""Multi-provider LLM consensus engine."""

from .cache import ConsensusCache, make_cache_key
from .config import EngineConfig
from .errors import (
    AllProvidersFailed,
    BatchDemuxError,
    ConsensusError,
    MalformedResponse,
    NoProvidersAvailable,
    ProviderCallFailed,
    ProviderUnavailable,
    SchemaViolation,
)
from .escalation import EscalationOutcome, adaptive_consensus, should_escalate
from .manager import ConsensusManager
from .orchestrator import Orchestrator
from .routing import TierSelector
from .system import build_manager, build_orchestrator, consensus_call
from .types import CallRequest, CallResult, CallStatus, ConsensusResult, OutputSchema, ProviderDescriptor

__all__ = [
    "ConsensusCache",
    "make_cache_key",
    "EngineConfig",
    "AllProvidersFailed",
    "BatchDemuxError",
    "ConsensusError",
    "MalformedResponse",
    "NoProvidersAvailable",
    "ProviderCallFailed",
    "ProviderUnavailable",
    "SchemaViolation",
    "EscalationOutcome",
    "adaptive_consensus",
    "should_escalate",
    "ConsensusManager",
    "Orchestrator",
    "TierSelector",
    "build_manager",
    "build_orchestrator",
    "consensus_call",
    "CallRequest",
    "CallResult",
    "CallStatus",
    "ConsensusResult",
    "OutputSchema",
    "ProviderDescriptor",
]

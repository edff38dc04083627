"""Error taxonomy for consensus calls."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .types import CallResult


class ConsensusError(Exception):
    """Base class for engine errors."""


class ProviderUnavailable(ConsensusError):
    """Adapter credential is missing; the adapter is excluded before dispatch."""


class ProviderCallFailed(ConsensusError):
    """One adapter failed after exhausting its local retries."""


class MalformedResponse(ProviderCallFailed):
    """Response text could not be turned into a JSON payload."""


class SchemaViolation(ProviderCallFailed):
    """Payload does not conform to the requested output schema."""


class NoProvidersAvailable(ConsensusError):
    """The resolved profile has no available adapter."""


class AllProvidersFailed(ConsensusError):
    """Every dispatched adapter returned a failed result."""

    def __init__(self, message: str, results: Sequence["CallResult"] = ()) -> None:
        super().__init__(message)
        self.results = list(results)


class BatchDemuxError(ConsensusError):
    """A batched answer could not be split back into per-question answers."""

"""Concurrent fan-out to provider adapters and reconciliation of their answers."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, Sequence

from .consensus import BaseStrategy, HybridStrategy, WeightedVotingStrategy, get_strategy
from .consensus.vote import CONFIDENCE_FIELD
from .errors import AllProvidersFailed, NoProvidersAvailable
from .models.base import BaseProviderAdapter
from .models.catalog import ProviderCatalog, load_provider_catalog
from .types import CallRequest, CallResult, CallStatus, ConsensusResult, ProviderDescriptor
from .utils.cost_tracker import UsageTracker


SINGLE_SURVIVOR_EXPLANATION = "single surviving response"
TIMEOUT_DETAIL = "timeout"


def _confidence_of(payload: Any) -> float:
    if isinstance(payload, dict):
        value = payload.get(CONFIDENCE_FIELD)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return 1.0


class Orchestrator:
    """Dispatches one request to every adapter of a profile and joins on all of them."""

    def __init__(
        self,
        adapters: Iterable[BaseProviderAdapter] = (),
        *,
        catalog: ProviderCatalog | None = None,
        tracker: UsageTracker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.catalog = catalog or load_provider_catalog()
        self.tracker = tracker
        self.logger = logger or logging.getLogger("llm_consensus.orchestrator")
        self._adapters: dict[str, BaseProviderAdapter] = {}
        for adapter in adapters:
            self.register_provider(adapter)

    def register_provider(self, adapter: BaseProviderAdapter) -> None:
        """Register (or replace) the adapter for its provider family."""
        self._adapters[adapter.provider_id] = adapter
        self.logger.info("Provider registered: %s", adapter.provider_id)

    def provider_status(self) -> dict[str, bool]:
        """Availability of every registered adapter, without network calls."""
        return {name: adapter.is_available() for name, adapter in self._adapters.items()}

    def available_descriptors(
        self, profile: str | Sequence[ProviderDescriptor]
    ) -> list[tuple[ProviderDescriptor, BaseProviderAdapter]]:
        selected: list[tuple[ProviderDescriptor, BaseProviderAdapter]] = []
        for descriptor in self.catalog.resolve(profile):
            adapter = self._adapters.get(descriptor.provider_id)
            if adapter is None:
                self.logger.debug("Provider %s not registered, skipping", descriptor.provider_id)
                continue
            if not adapter.is_available():
                self.logger.debug("Provider %s credential missing, skipping", descriptor.provider_id)
                continue
            selected.append((descriptor, adapter))
        return selected

    async def call_multiple(
        self, profile: str | Sequence[ProviderDescriptor], request: CallRequest, *, agent: str = "unknown"
    ) -> list[CallResult]:
        """Fan out ``request`` and return one CallResult per dispatched adapter."""
        requested = self.catalog.resolve(profile)
        if not requested:
            raise ValueError("Profile must contain at least one provider descriptor")

        selected = self.available_descriptors(requested)
        if not selected:
            raise NoProvidersAvailable(
                "No providers available for profile "
                f"{profile if isinstance(profile, str) else [d.model_id for d in requested]}; "
                "set OPENAI_API_KEY, ANTHROPIC_API_KEY or GOOGLE_API_KEY"
            )

        self.logger.info("Dispatching to %d/%d providers", len(selected), len(requested))
        results = await asyncio.gather(
            *[self._call_one(descriptor, adapter, request) for descriptor, adapter in selected]
        )

        if self.tracker is not None:
            for result in results:
                self.tracker.record_call(
                    provider_id=result.provider_id,
                    model_id=result.model_id,
                    input_tokens=result.input_tokens,
                    output_tokens=result.output_tokens,
                    elapsed_ms=result.elapsed_ms,
                    succeeded=result.succeeded,
                    agent=agent,
                )

        succeeded = sum(1 for r in results if r.succeeded)
        self.logger.info(
            "Fan-out complete: requested=%d available=%d succeeded=%d failed=%d",
            len(requested),
            len(selected),
            succeeded,
            len(results) - succeeded,
        )
        return list(results)

    async def _call_one(
        self, descriptor: ProviderDescriptor, adapter: BaseProviderAdapter, request: CallRequest
    ) -> CallResult:
        started = time.perf_counter()
        try:
            reply = await asyncio.wait_for(
                adapter.submit(descriptor.model_id, request), timeout=request.timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            self.logger.warning("%s:%s timed out after %dms", descriptor.provider_id, descriptor.model_id, request.timeout_ms)
            return CallResult(
                provider_id=descriptor.provider_id,
                model_id=descriptor.model_id,
                status=CallStatus.FAILED,
                error_detail=TIMEOUT_DETAIL,
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )
        except Exception as exc:
            self.logger.warning("%s:%s call failed: %s", descriptor.provider_id, descriptor.model_id, exc)
            return CallResult(
                provider_id=descriptor.provider_id,
                model_id=descriptor.model_id,
                status=CallStatus.FAILED,
                error_detail=str(exc) or type(exc).__name__,
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )

        return CallResult(
            provider_id=descriptor.provider_id,
            model_id=descriptor.model_id,
            status=CallStatus.SUCCEEDED,
            payload=reply.payload,
            elapsed_ms=(time.perf_counter() - started) * 1000,
            input_tokens=reply.input_tokens,
            output_tokens=reply.output_tokens,
            attempts=reply.attempts,
        )

    async def consensus_call(
        self,
        profile: str | Sequence[ProviderDescriptor],
        request: CallRequest,
        strategy: str | BaseStrategy = "voting",
        *,
        agent: str = "unknown",
    ) -> ConsensusResult:
        """Fan out, then reconcile the surviving payloads into one answer."""
        reducer = get_strategy(strategy)
        results = await self.call_multiple(profile, request, agent=agent)
        successes = [r for r in results if r.succeeded]

        if not successes:
            raise AllProvidersFailed(
                "All providers failed: " + "; ".join(f"{r.provider_id}:{r.model_id}={r.error_detail}" for r in results),
                results,
            )

        if len(successes) == 1:
            only = successes[0]
            self.logger.info("Only %s:%s succeeded, returning single response", only.provider_id, only.model_id)
            return ConsensusResult(
                winning_payload=only.payload,
                agreement_ratio=1.0,
                participant_count=len(results),
                success_count=1,
                strategy_used="single",
                explanation=SINGLE_SURVIVOR_EXPLANATION,
                call_results=results,
            )

        payloads = [r.payload for r in successes]
        weights = self._weights_for(reducer, successes, self.catalog.resolve(profile))
        outcome = reducer.aggregate(payloads, weights=weights)
        return ConsensusResult(
            winning_payload=outcome.winning_payload,
            agreement_ratio=outcome.agreement_ratio,
            participant_count=len(results),
            success_count=len(successes),
            strategy_used=reducer.name,
            explanation=outcome.explanation,
            details=outcome.details,
            call_results=results,
        )

    def _weights_for(
        self,
        reducer: BaseStrategy,
        successes: list[CallResult],
        descriptors: Sequence[ProviderDescriptor],
    ) -> list[float] | None:
        if isinstance(reducer, WeightedVotingStrategy):
            weight_by_model = {(d.provider_id, d.model_id): d.weight for d in descriptors}
            return [weight_by_model.get((r.provider_id, r.model_id), 1.0) for r in successes]
        if isinstance(reducer, HybridStrategy):
            return [_confidence_of(r.payload) for r in successes]
        return None

    async def close(self) -> None:
        """Close all adapters."""
        await asyncio.gather(*[adapter.close() for adapter in self._adapters.values()])

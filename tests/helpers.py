"""Scripted adapters and catalogs shared by the test modules."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from llm_consensus.models.base import AdapterConfig, BaseProviderAdapter, RawCompletion
from llm_consensus.models.catalog import ProviderCatalog, load_provider_catalog
from llm_consensus.types import CallRequest


class ScriptedAdapter(BaseProviderAdapter):
    """Replays canned replies in order; the last reply repeats.

    A reply may be a JSON-able object, raw text, or an exception to raise.
    """

    credential_env = "SCRIPTED_ADAPTER_TEST_KEY"

    def __init__(
        self,
        provider_id: str,
        replies: list[Any],
        *,
        delay: float = 0.0,
        api_key: str | None = "test-key",
        max_attempts: int = 3,
    ) -> None:
        self.provider_id = provider_id
        super().__init__(api_key, config=AdapterConfig(max_attempts=max_attempts, retry_delay_seconds=0.0))
        self.replies = list(replies)
        self.delay = delay
        self.calls: list[tuple[str, CallRequest]] = []

    async def _complete(self, model: str, request: CallRequest) -> RawCompletion:
        self.calls.append((model, request))
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return RawCompletion(text=text, input_tokens=10, output_tokens=5)


def make_catalog(*providers: str, weights: dict[str, float] | None = None) -> ProviderCatalog:
    """Catalog with one model per provider and a ``trio`` profile over all of them."""
    weights = weights or {}
    models = {
        f"{p}-model": {
            "provider": p,
            "model_id": f"{p}-1",
            "weight": weights.get(p, 1.0),
            "pricing_per_1m_tokens": {"input": 1.0, "output": 2.0},
        }
        for p in providers
    }
    profiles = {
        "trio": list(models),
        "first": [f"{providers[0]}-model"],
        "fast": list(models),
        "balanced": list(models),
        "accurate": list(models),
        "economical": list(models),
        "premium": list(models),
    }
    return load_provider_catalog(raw_config={"models": models, "profiles": profiles})

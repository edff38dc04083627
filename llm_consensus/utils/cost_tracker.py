"""Token, cost and cache-hit accounting for consensus calls."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from threading import Lock
from typing import Any


@dataclass(slots=True)
class PriceConfig:
    """Per-model token pricing in USD per 1M tokens."""

    input_per_million: float
    output_per_million: float


# Used when a model has no pricing entry.
DEFAULT_PRICE = PriceConfig(input_per_million=5.0, output_per_million=15.0)


class UsageTracker:
    """Passive observer of adapter calls and cache lookups.

    Totals are kept by provider, model and agent. When ``log_dir`` is given
    every recorded call is appended to ``usage_log.jsonl``.
    """

    def __init__(self, pricing: dict[str, PriceConfig] | None = None, log_dir: Path | None = None) -> None:
        self.pricing = pricing or {}
        self._lock = Lock()

        self.calls = 0
        self.failed_calls = 0
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cost_usd = 0.0
        self.cache_hits = 0
        self.cache_misses = 0

        self.by_provider: dict[str, dict[str, float]] = {}
        self.by_model: dict[str, dict[str, float]] = {}
        self.by_agent: dict[str, dict[str, Any]] = {}

        self.log_path: Path | None = None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_path = log_dir / "usage_log.jsonl"

    def compute_cost(self, model_id: str, input_tokens: int, output_tokens: int) -> float:
        price = self.pricing.get(model_id, DEFAULT_PRICE)
        in_cost = (input_tokens / 1_000_000) * price.input_per_million
        out_cost = (output_tokens / 1_000_000) * price.output_per_million
        return in_cost + out_cost

    def record_call(
        self,
        *,
        provider_id: str,
        model_id: str,
        input_tokens: int,
        output_tokens: int,
        elapsed_ms: float,
        succeeded: bool,
        agent: str = "unknown",
    ) -> float:
        """Record one adapter call and return its cost in USD."""
        with self._lock:
            call_cost = self.compute_cost(model_id, input_tokens, output_tokens)
            self.calls += 1
            if not succeeded:
                self.failed_calls += 1
            self.total_input_tokens += input_tokens
            self.total_output_tokens += output_tokens
            self.total_cost_usd += call_cost

            provider = self.by_provider.setdefault(provider_id, {"calls": 0, "failed": 0, "cost_usd": 0.0})
            provider["calls"] += 1
            provider["failed"] += 0 if succeeded else 1
            provider["cost_usd"] += call_cost

            model = self.by_model.setdefault(model_id, {"cost_usd": 0.0, "input_tokens": 0, "output_tokens": 0})
            model["cost_usd"] += call_cost
            model["input_tokens"] += input_tokens
            model["output_tokens"] += output_tokens

            agent_entry = self._agent_entry(agent)
            agent_entry["calls"] += 1
            agent_entry["cost_usd"] += call_cost
            agent_entry["models"][model_id] = agent_entry["models"].get(model_id, 0) + 1

            if self.log_path is not None:
                entry = {
                    "agent": agent,
                    "provider_id": provider_id,
                    "model_id": model_id,
                    "succeeded": succeeded,
                    "input_tokens": input_tokens,
                    "output_tokens": output_tokens,
                    "elapsed_ms": elapsed_ms,
                    "cost_usd": round(call_cost, 8),
                    "total_cost_usd": round(self.total_cost_usd, 8),
                }
                with self.log_path.open("a", encoding="utf-8") as handle:
                    handle.write(json.dumps(entry) + "\n")

            return call_cost

    def record_cache_lookup(self, *, hit: bool, agent: str = "unknown") -> None:
        with self._lock:
            agent_entry = self._agent_entry(agent)
            if hit:
                self.cache_hits += 1
                agent_entry["cache_hits"] += 1
            else:
                self.cache_misses += 1
                agent_entry["cache_misses"] += 1

    def _agent_entry(self, agent: str) -> dict[str, Any]:
        return self.by_agent.setdefault(
            agent, {"calls": 0, "cost_usd": 0.0, "cache_hits": 0, "cache_misses": 0, "models": {}}
        )

    def agent_summary(self, agent: str) -> dict[str, Any]:
        """Per-agent spend, model mix and cache hit rate."""
        with self._lock:
            entry = self.by_agent.get(agent)
            if entry is None:
                return {"agent": agent, "calls": 0, "cost_usd": 0.0, "cache_hit_rate": None, "models": {}}
            lookups = entry["cache_hits"] + entry["cache_misses"]
            return {
                "agent": agent,
                "calls": entry["calls"],
                "cost_usd": round(entry["cost_usd"], 6),
                "average_cost_usd": round(entry["cost_usd"] / entry["calls"], 8) if entry["calls"] else 0.0,
                "cache_hit_rate": entry["cache_hits"] / lookups if lookups else None,
                "models": dict(entry["models"]),
            }

    def snapshot(self) -> dict[str, Any]:
        """Return cumulative usage snapshot."""
        with self._lock:
            lookups = self.cache_hits + self.cache_misses
            return {
                "calls": self.calls,
                "failed_calls": self.failed_calls,
                "total_input_tokens": self.total_input_tokens,
                "total_output_tokens": self.total_output_tokens,
                "total_cost_usd": round(self.total_cost_usd, 6),
                "cache_hits": self.cache_hits,
                "cache_misses": self.cache_misses,
                "cache_hit_rate": self.cache_hits / lookups if lookups else 0.0,
                "by_provider": self.by_provider,
                "by_model": self.by_model,
                "top_agents": sorted(self.by_agent, key=lambda a: self.by_agent[a]["cost_usd"], reverse=True)[:5],
            }

    def reset(self) -> None:
        with self._lock:
            self.calls = 0
            self.failed_calls = 0
            self.total_input_tokens = 0
            self.total_output_tokens = 0
            self.total_cost_usd = 0.0
            self.cache_hits = 0
            self.cache_misses = 0
            self.by_provider.clear()
            self.by_model.clear()
            self.by_agent.clear()

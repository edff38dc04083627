"""Provider catalog: model descriptors, named profiles and pricing.

Ships with a built-in table and accepts the same schema from YAML.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from ..types import ProviderDescriptor
from ..utils.cost_tracker import PriceConfig


DEFAULT_CATALOG: dict[str, Any] = {
    "models": {
        "gpt-4o-mini": {
            "provider": "openai",
            "cost": "low",
            "latency": "very-fast",
            "weight": 0.8,
            "features": ["json-mode", "fast"],
            "pricing_per_1m_tokens": {"input": 0.15, "output": 0.6},
        },
        "gpt-4o": {
            "provider": "openai",
            "cost": "high",
            "latency": "fast",
            "weight": 1.2,
            "features": ["json-mode", "vision", "latest"],
            "pricing_per_1m_tokens": {"input": 5.0, "output": 15.0},
        },
        "claude-opus-4-1": {
            "provider": "anthropic",
            "model_id": "claude-opus-4-1-20250805",
            "cost": "high",
            "latency": "moderate",
            "weight": 1.3,
            "features": ["vision", "long-context", "best-reasoning"],
            "pricing_per_1m_tokens": {"input": 15.0, "output": 75.0},
        },
        "claude-sonnet-4": {
            "provider": "anthropic",
            "model_id": "claude-sonnet-4-20250514",
            "cost": "medium",
            "latency": "fast",
            "weight": 1.2,
            "features": ["vision", "balanced"],
            "pricing_per_1m_tokens": {"input": 3.0, "output": 15.0},
        },
        "claude-haiku-3-5": {
            "provider": "anthropic",
            "model_id": "claude-3-5-haiku-20241022",
            "cost": "low",
            "latency": "very-fast",
            "weight": 0.8,
            "features": ["fast", "cost-effective"],
            "pricing_per_1m_tokens": {"input": 0.8, "output": 4.0},
        },
        "gemini-2.0-flash": {
            "provider": "google",
            "cost": "medium",
            "latency": "fast",
            "weight": 1.0,
            "features": ["multimodal", "latest"],
            "pricing_per_1m_tokens": {"input": 0.1, "output": 0.4},
        },
    },
    "profiles": {
        "premium": ["gpt-4o", "claude-sonnet-4"],
        "balanced": ["gpt-4o", "claude-sonnet-4"],
        "economical": ["gpt-4o-mini", "claude-haiku-3-5"],
        "fast": ["gpt-4o-mini"],
        "accurate": ["gpt-4o", "claude-sonnet-4", "gemini-2.0-flash"],
        "quick_consensus": ["gpt-4o", "claude-sonnet-4"],
        "fallback": ["gpt-4o"],
    },
}


@dataclass(slots=True)
class ProviderCatalog:
    """Normalized descriptors and profiles used by the orchestrator."""

    models: dict[str, ProviderDescriptor]
    profiles: dict[str, tuple[ProviderDescriptor, ...]]
    pricing: dict[str, PriceConfig]

    def profile(self, name: str) -> tuple[ProviderDescriptor, ...]:
        """Return the ordered descriptors of a named profile."""
        try:
            return self.profiles[name]
        except KeyError as exc:
            raise ValueError(f"Unknown profile '{name}'; known: {sorted(self.profiles)}") from exc

    def resolve(self, profile: str | Sequence[ProviderDescriptor]) -> tuple[ProviderDescriptor, ...]:
        if isinstance(profile, str):
            return self.profile(profile)
        return tuple(profile)

    def profile_names(self) -> list[str]:
        return list(self.profiles)


def _normalize_model_entry(alias: str, entry: dict[str, Any]) -> tuple[ProviderDescriptor, PriceConfig]:
    if "provider" not in entry:
        raise ValueError(f"Model '{alias}' is missing 'provider'")

    descriptor = ProviderDescriptor(
        provider_id=str(entry["provider"]),
        model_id=str(entry.get("model_id") or entry.get("api_model") or alias),
        cost_class=str(entry.get("cost", entry.get("cost_class", "medium"))),
        latency_class=str(entry.get("latency", entry.get("latency_class", "fast"))),
        weight=float(entry.get("weight", 1.0)),
        features=tuple(str(f) for f in entry.get("features", [])),
    )
    pricing = entry.get("pricing_per_1m_tokens", {})
    price = PriceConfig(
        input_per_million=float(pricing.get("input", 0.0)),
        output_per_million=float(pricing.get("output", 0.0)),
    )
    return descriptor, price


def load_provider_catalog(
    *, config_path: Path | None = None, raw_config: dict[str, Any] | None = None
) -> ProviderCatalog:
    """Load and normalize a catalog; built-in defaults when nothing is given."""
    if raw_config is None:
        raw_config = (
            yaml.safe_load(config_path.read_text(encoding="utf-8")) if config_path is not None else DEFAULT_CATALOG
        )

    if not isinstance(raw_config, dict):
        raise ValueError("Provider catalog must be a mapping")
    if "models" not in raw_config or "profiles" not in raw_config:
        raise ValueError("Provider catalog requires 'models' and 'profiles' sections")

    models: dict[str, ProviderDescriptor] = {}
    pricing: dict[str, PriceConfig] = {}
    for alias, entry in raw_config["models"].items():
        descriptor, price = _normalize_model_entry(str(alias), entry)
        models[str(alias)] = descriptor
        pricing[descriptor.model_id] = price

    profiles: dict[str, tuple[ProviderDescriptor, ...]] = {}
    for name, aliases in raw_config["profiles"].items():
        missing = [a for a in aliases if a not in models]
        if missing:
            raise ValueError(f"Profile '{name}' references unknown models: {missing}")
        if not aliases:
            raise ValueError(f"Profile '{name}' is empty")
        profiles[str(name)] = tuple(models[a] for a in aliases)

    return ProviderCatalog(models=models, profiles=profiles, pricing=pricing)

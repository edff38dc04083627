"""Default engine assembly from environment configuration."""

from __future__ import annotations

import logging
from typing import Any

from dotenv import load_dotenv

from .cache import ConsensusCache
from .config import EngineConfig
from .consensus import BaseStrategy
from .manager import ConsensusManager
from .models.anthropic_client import AnthropicAdapter
from .models.catalog import load_provider_catalog
from .models.google_client import GoogleAdapter
from .models.openai_client import OpenAIAdapter
from .orchestrator import Orchestrator
from .types import CallRequest, ConsensusResult, OutputSchema
from .utils.cost_tracker import UsageTracker


_default_orchestrator: Orchestrator | None = None
_default_config: EngineConfig | None = None


def build_orchestrator(config: EngineConfig | None = None, logger: logging.Logger | None = None) -> Orchestrator:
    """Orchestrator with every built-in adapter registered.

    Adapters without credentials stay registered but unavailable; the
    orchestrator skips them at dispatch time.
    """
    config = config or EngineConfig.from_env()
    logger = logger or logging.getLogger("llm_consensus")
    catalog = load_provider_catalog(config_path=config.profiles_path)
    tracker = UsageTracker(pricing=catalog.pricing, log_dir=config.cost_log_dir)
    adapter_config = config.adapter_config()

    orchestrator = Orchestrator(catalog=catalog, tracker=tracker, logger=logger.getChild("orchestrator"))
    for adapter_cls in (OpenAIAdapter, AnthropicAdapter, GoogleAdapter):
        orchestrator.register_provider(adapter_cls(dry_run=config.dry_run, config=adapter_config))

    available = [name for name, ok in orchestrator.provider_status().items() if ok]
    if not available:
        logger.warning("No LLM providers configured; set OPENAI_API_KEY, ANTHROPIC_API_KEY or GOOGLE_API_KEY")
    else:
        logger.info("Providers available: %s", ", ".join(available))
    return orchestrator


def build_manager(config: EngineConfig | None = None, orchestrator: Orchestrator | None = None) -> ConsensusManager:
    config = config or EngineConfig.from_env()
    orchestrator = orchestrator or build_orchestrator(config)
    return ConsensusManager(
        orchestrator,
        cache=ConsensusCache(config.cache_ttl_seconds),
        tracker=orchestrator.tracker,
        timeout_ms=config.timeout_ms,
    )


def get_orchestrator() -> Orchestrator:
    """Process-wide orchestrator, built from ``.env`` and the environment on first use."""
    global _default_orchestrator, _default_config
    if _default_orchestrator is None:
        load_dotenv()
        _default_config = EngineConfig.from_env()
        _default_orchestrator = build_orchestrator(_default_config)
    return _default_orchestrator


async def consensus_call(
    profile: str,
    system_prompt: str,
    user_prompt: str,
    output_schema: OutputSchema | dict[str, Any] | None = None,
    temperature: float = 0.2,
    strategy: str | BaseStrategy = "voting",
) -> ConsensusResult:
    """Ask every available provider of ``profile`` and reconcile their answers."""
    orchestrator = get_orchestrator()
    if isinstance(output_schema, dict):
        output_schema = OutputSchema(name="response", schema=output_schema)
    request = CallRequest(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        output_schema=output_schema,
        temperature=temperature,
        timeout_ms=_default_config.timeout_ms if _default_config else 60_000,
    )
    return await orchestrator.consensus_call(profile, request, strategy)


async def reset_default_orchestrator() -> None:
    global _default_orchestrator, _default_config
    if _default_orchestrator is not None:
        await _default_orchestrator.close()
    _default_orchestrator = None
    _default_config = None

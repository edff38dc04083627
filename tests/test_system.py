"""Tests for environment configuration and default assembly."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from llm_consensus import system
from llm_consensus.config import EngineConfig


ENV_KEYS = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY")


def test_engine_config_defaults() -> None:
    config = EngineConfig.from_env({})
    assert config.timeout_ms == 60_000
    assert config.cache_ttl_seconds == 3600.0
    assert config.max_attempts == 3
    assert config.dry_run is False
    assert config.profiles_path is None
    assert config.rpm_limit == 0
    assert EngineConfig.from_env({"CONSENSUS_RPM_LIMIT": "0"}).adapter_config().rpm_limit == 0


def test_engine_config_from_env(tmp_path: Path) -> None:
    config = EngineConfig.from_env(
        {
            "CONSENSUS_TIMEOUT_MS": "1500",
            "CONSENSUS_CACHE_TTL_SECONDS": "30",
            "CONSENSUS_MAX_ATTEMPTS": "5",
            "CONSENSUS_RETRY_DELAY_SECONDS": "0",
            "CONSENSUS_RPM_LIMIT": "40",
            "CONSENSUS_PROFILES_PATH": str(tmp_path / "profiles.yaml"),
            "CONSENSUS_DRY_RUN": "true",
            "CONSENSUS_COST_LOG_DIR": str(tmp_path),
        }
    )
    assert config.timeout_ms == 1500
    assert config.cache_ttl_seconds == 30.0
    assert config.dry_run is True
    assert config.profiles_path == tmp_path / "profiles.yaml"
    adapter_config = config.adapter_config()
    assert (adapter_config.max_attempts, adapter_config.retry_delay_seconds) == (5, 0.0)
    assert adapter_config.rpm_limit == 40


def test_engine_config_rejects_bad_values() -> None:
    with pytest.raises(ValueError, match="CONSENSUS_TIMEOUT_MS"):
        EngineConfig.from_env({"CONSENSUS_TIMEOUT_MS": "soon"})
    with pytest.raises(ValueError, match="CONSENSUS_MAX_ATTEMPTS"):
        EngineConfig.from_env({"CONSENSUS_MAX_ATTEMPTS": "0"})
    with pytest.raises(ValueError, match="CONSENSUS_CACHE_TTL_SECONDS"):
        EngineConfig.from_env({"CONSENSUS_CACHE_TTL_SECONDS": "0"})
    with pytest.raises(ValueError, match="CONSENSUS_RPM_LIMIT"):
        EngineConfig.from_env({"CONSENSUS_RPM_LIMIT": "-1"})


def test_build_orchestrator_registers_all_families(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    orchestrator = system.build_orchestrator(EngineConfig())
    assert orchestrator.provider_status() == {"openai": True, "anthropic": False, "google": False}
    assert [d.provider_id for d, _ in orchestrator.available_descriptors("accurate")] == ["openai"]


def test_dry_run_consensus_end_to_end(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONSENSUS_DRY_RUN", "1")
    monkeypatch.setenv("CONSENSUS_COST_LOG_DIR", str(tmp_path / "usage"))

    async def _run() -> None:
        await system.reset_default_orchestrator()
        try:
            result = await system.consensus_call("accurate", "You are terse.", "Name a color.")
            assert result.success_count == 3
            assert {r.provider_id for r in result.call_results} == {"openai", "anthropic", "google"}
            assert all(r.payload["dry_run"] for r in result.call_results)
        finally:
            await system.reset_default_orchestrator()

    asyncio.run(_run())
    assert (tmp_path / "usage" / "usage_log.jsonl").exists()


def test_build_manager_uses_configured_ttl(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config = EngineConfig(cache_ttl_seconds=12.0, timeout_ms=2000, dry_run=True)
    manager = system.build_manager(config)
    assert manager.cache.ttl_seconds == 12.0
    assert manager.timeout_ms == 2000
    assert manager.tracker is manager.orchestrator.tracker

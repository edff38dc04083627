"""Engine settings resolved from environment variables.

Recognized variables:
    CONSENSUS_TIMEOUT_MS            per-provider call timeout (default 60000)
    CONSENSUS_CACHE_TTL_SECONDS     consensus cache lifetime (default 3600)
    CONSENSUS_MAX_ATTEMPTS          adapter attempts per call (default 3)
    CONSENSUS_RETRY_DELAY_SECONDS   linear backoff base (default 1.0)
    CONSENSUS_RPM_LIMIT             requests per minute per provider model, 0 disables (default 0)
    CONSENSUS_PROFILES_PATH         YAML provider catalog override
    CONSENSUS_DRY_RUN               1/true to answer with canned payloads
    CONSENSUS_COST_LOG_DIR          directory for usage_log.jsonl
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

from .models.base import AdapterConfig


_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_float(env: Mapping[str, str], name: str, default: float, *, positive: bool = False) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0 or (positive and value == 0):
        raise ValueError(f"{name} must be {'positive' if positive else 'non-negative'}, got {value}")
    return value


def _env_path(env: Mapping[str, str], name: str) -> Path | None:
    raw = env.get(name, "").strip()
    return Path(raw) if raw else None


@dataclass(slots=True)
class EngineConfig:
    timeout_ms: int = 60_000
    cache_ttl_seconds: float = 3600.0
    max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    rpm_limit: int = 0
    profiles_path: Path | None = None
    dry_run: bool = False
    cost_log_dir: Path | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EngineConfig":
        env = os.environ if env is None else env
        return cls(
            timeout_ms=_env_int(env, "CONSENSUS_TIMEOUT_MS", 60_000),
            cache_ttl_seconds=_env_float(env, "CONSENSUS_CACHE_TTL_SECONDS", 3600.0, positive=True),
            max_attempts=_env_int(env, "CONSENSUS_MAX_ATTEMPTS", 3),
            retry_delay_seconds=_env_float(env, "CONSENSUS_RETRY_DELAY_SECONDS", 1.0),
            rpm_limit=_env_int(env, "CONSENSUS_RPM_LIMIT", 0, minimum=0),
            profiles_path=_env_path(env, "CONSENSUS_PROFILES_PATH"),
            dry_run=env.get("CONSENSUS_DRY_RUN", "").strip().lower() in _TRUTHY,
            cost_log_dir=_env_path(env, "CONSENSUS_COST_LOG_DIR"),
        )

    def adapter_config(self) -> AdapterConfig:
        return AdapterConfig(
            max_attempts=self.max_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
            rpm_limit=self.rpm_limit,
        )

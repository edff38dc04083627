"""Abstract async provider adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import json
import logging
import os
import random
from typing import Any

from ..errors import ProviderCallFailed, ProviderUnavailable
from ..types import CallRequest
from ..utils.rate_limiter import AsyncRateLimiter, retry_with_backoff
from .parsing import extract_json, validate_payload



@dataclass(slots=True)
class AdapterConfig:
    """Retry and throttling knobs shared by every adapter family."""

    max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    rpm_limit: int = 0
    client_timeout_seconds: float = 120.0


@dataclass(slots=True)
class RawCompletion:
    """Unparsed backend output."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(slots=True)
class StructuredReply:
    """Parsed, schema-checked payload returned by ``submit``."""

    payload: Any
    input_tokens: int
    output_tokens: int
    attempts: int
    raw_text: str


class BaseProviderAdapter(ABC):
    """Base class for one backend family.

    Subclasses implement ``_complete``; this class owns JSON extraction,
    schema validation and the bounded linear-backoff retry loop.
    """

    provider_id: str
    credential_env: str

    def __init__(
        self,
        api_key: str | None = None,
        *,
        dry_run: bool = False,
        config: AdapterConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.api_key = api_key or os.getenv(self.credential_env)
        self.dry_run = dry_run
        self.config = config or AdapterConfig()
        self.rate_limiter = AsyncRateLimiter()
        self.logger = logger or logging.getLogger(f"llm_consensus.models.{self.provider_id}")

    def is_available(self) -> bool:
        """True when the adapter can be dispatched; never touches the network."""
        return self.dry_run or bool(self.api_key)

    async def submit(self, model: str, request: CallRequest) -> StructuredReply:
        """Query ``model`` and return a JSON payload that honors ``request.output_schema``."""
        if not self.is_available():
            raise ProviderUnavailable(f"Missing {self.credential_env} for provider '{self.provider_id}'")
        if not request.system_prompt or not request.user_prompt:
            raise ValueError("system_prompt and user_prompt must be non-empty")

        async def _attempt(attempt: int) -> StructuredReply:
            self.logger.info("%s request model=%s attempt=%d", self.provider_id, model, attempt)
            if self.config.rpm_limit > 0:
                await self.rate_limiter.acquire(key=f"{self.provider_id}:{model}", rpm=self.config.rpm_limit)

            completion = self._mock_completion(model, request) if self.dry_run else await self._complete(model, request)
            payload = extract_json(completion.text)
            validate_payload(payload, request.output_schema)
            return StructuredReply(
                payload=payload,
                input_tokens=completion.input_tokens,
                output_tokens=completion.output_tokens,
                attempts=attempt,
                raw_text=completion.text,
            )

        def _log_failure(attempt: int, exc: BaseException) -> None:
            self.logger.warning("%s attempt %d failed for model=%s: %s", self.provider_id, attempt, model, exc)

        try:
            return await retry_with_backoff(
                _attempt,
                max_attempts=self.config.max_attempts,
                base_delay=self.config.retry_delay_seconds,
                retryable_exceptions=(Exception,),
                on_failure=_log_failure,
            )
        except ProviderCallFailed as exc:
            raise type(exc)(
                f"{self.provider_id} failed after {self.config.max_attempts} attempts: {exc}"
            ) from exc
        except Exception as exc:
            raise ProviderCallFailed(
                f"{self.provider_id} failed after {self.config.max_attempts} attempts: {exc}"
            ) from exc

    @abstractmethod
    async def _complete(self, model: str, request: CallRequest) -> RawCompletion:
        """Send one request to the backend and return its raw text."""

    def _mock_completion(self, model: str, request: CallRequest) -> RawCompletion:
        seed = hash((self.provider_id, model, request.user_prompt[:80])) % 1_000_000
        rnd = random.Random(seed)
        head = " ".join(request.user_prompt.split()[:12]) or "empty prompt"
        text = json.dumps({"dry_run": True, "provider": self.provider_id, "model": model, "echo": head})
        return RawCompletion(
            text=text,
            input_tokens=max(32, len(request.user_prompt) // 4),
            output_tokens=max(16, len(text) // 4 + rnd.randint(0, 8)),
        )

    async def close(self) -> None:
        """Optional resource cleanup hook."""
        return None

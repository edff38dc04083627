"""Anthropic provider adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..types import CallRequest
from .base import AdapterConfig, BaseProviderAdapter, RawCompletion
from .parsing import schema_instructions


class AnthropicAdapter(BaseProviderAdapter):
    """Async wrapper around the official anthropic SDK.

    Claude has no JSON mode here, so the JSON-only contract (and the schema,
    when given) is appended to the system prompt and the reply is parsed
    leniently by the base class.
    """

    provider_id = "anthropic"
    credential_env = "ANTHROPIC_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        dry_run: bool = False,
        config: AdapterConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(api_key, dry_run=dry_run, config=config, logger=logger)
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        try:
            from anthropic import AsyncAnthropic
        except ImportError as exc:
            raise RuntimeError("anthropic package is not installed") from exc
        self._client = AsyncAnthropic(
            api_key=self.api_key,
            timeout=self.config.client_timeout_seconds,
            max_retries=0,
        )
        return self._client

    async def _complete(self, model: str, request: CallRequest) -> RawCompletion:
        client = self._get_client()
        response = await client.messages.create(
            model=model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            system=f"{request.system_prompt}\n\n{schema_instructions(request.output_schema)}",
            messages=[
                {
                    "role": "user",
                    "content": f"{request.user_prompt}\n\nRespond with ONLY valid JSON, no markdown or extra text.",
                }
            ],
        )

        text_chunks = []
        for chunk in response.content:
            if getattr(chunk, "type", None) == "text":
                text_chunks.append(chunk.text)

        usage = getattr(response, "usage", None)
        return RawCompletion(
            text="\n".join(text_chunks).strip(),
            input_tokens=int(getattr(usage, "input_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "output_tokens", 0) or 0),
        )

    async def close(self) -> None:
        if self._client is None:
            await asyncio.sleep(0)
            return
        await self._client.close()

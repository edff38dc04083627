"""OpenAI provider adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..types import CallRequest
from .base import AdapterConfig, BaseProviderAdapter, RawCompletion
from .parsing import schema_instructions


class OpenAIAdapter(BaseProviderAdapter):
    """Async wrapper around the OpenAI Python SDK using Chat Completions."""

    provider_id = "openai"
    credential_env = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        extra_headers: dict[str, str] | None = None,
        dry_run: bool = False,
        config: AdapterConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(api_key, dry_run=dry_run, config=config, logger=logger)
        self.base_url = base_url
        self.extra_headers = extra_headers or {}
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        try:
            from openai import AsyncOpenAI
        except ImportError as exc:
            raise RuntimeError("openai package is not installed") from exc

        kwargs: dict[str, Any] = {
            "api_key": self.api_key,
            "timeout": self.config.client_timeout_seconds,
            # Retries are handled by BaseProviderAdapter.submit.
            "max_retries": 0,
        }
        if self.base_url:
            kwargs["base_url"] = self.base_url
        if self.extra_headers:
            kwargs["default_headers"] = self.extra_headers

        self._client = AsyncOpenAI(**kwargs)
        return self._client

    def _response_format(self, request: CallRequest) -> dict[str, Any]:
        if request.output_schema is None:
            return {"type": "json_object"}
        return {
            "type": "json_schema",
            "json_schema": {
                "name": request.output_schema.name,
                "strict": request.output_schema.strict,
                "schema": request.output_schema.schema,
            },
        }

    def _messages(self, request: CallRequest) -> list[dict[str, str]]:
        # json_object mode requires the word JSON somewhere in the prompt.
        system = request.system_prompt
        if request.output_schema is None:
            system = f"{system}\n\n{schema_instructions(None)}"
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": request.user_prompt},
        ]

    async def _complete(self, model: str, request: CallRequest) -> RawCompletion:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=model,
            messages=self._messages(request),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            response_format=self._response_format(request),
        )

        text = (response.choices[0].message.content or "") if response.choices else ""
        usage = response.usage
        return RawCompletion(
            text=text.strip(),
            input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        )

    async def close(self) -> None:
        if self._client is None:
            await asyncio.sleep(0)
            return

        close_fn = getattr(self._client, "close", None)
        if close_fn is not None:
            maybe_coro = close_fn()
            if asyncio.iscoroutine(maybe_coro):
                await maybe_coro

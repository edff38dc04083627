"""Google Gemini provider adapter.

Uses the OpenAI-compatible Chat Completions endpoint that Gemini exposes
instead of the google-generativeai SDK.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from ..types import CallRequest
from .base import AdapterConfig
from .openai_client import OpenAIAdapter
from .parsing import schema_instructions


DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GoogleAdapter(OpenAIAdapter):
    """Gemini through the OpenAI SDK; schema enforced by prompt and local validation."""

    provider_id = "google"
    credential_env = "GOOGLE_API_KEY"

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
        super().__init__(
            api_key,
            base_url=base_url or os.getenv("GOOGLE_OPENAI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
            extra_headers=extra_headers,
            dry_run=dry_run,
            config=config,
            logger=logger,
        )

    def _response_format(self, request: CallRequest) -> dict[str, Any]:
        return {"type": "json_object"}

    def _messages(self, request: CallRequest) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": f"{request.system_prompt}\n\n{schema_instructions(request.output_schema)}"},
            {"role": "user", "content": request.user_prompt},
        ]

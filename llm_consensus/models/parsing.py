"""JSON extraction from model text and output-schema validation."""

from __future__ import annotations

import json
from typing import Any, Callable

from jsonschema import Draft7Validator

from ..errors import MalformedResponse, SchemaViolation
from ..types import OutputSchema


def _strip_markdown_fences(text: str) -> str:
    """Remove markdown code fences that some models wrap around JSON."""
    stripped = text.strip()
    if stripped.startswith("```"):
        first_newline = stripped.find("\n")
        stripped = stripped[first_newline + 1:] if first_newline != -1 else stripped[3:]
        if stripped.lower().startswith("json"):
            stripped = stripped[4:]
    if stripped.endswith("```"):
        stripped = stripped[:-3]
    return stripped.strip()


def _slice_outer_braces(text: str) -> str:
    """Keep the span between the first opening and last closing brace or bracket."""
    candidates = []
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            candidates.append((start, end))
    if not candidates:
        return text
    start, end = min(candidates)
    return text[start:end + 1]


# Tried in order; each step feeds on the previous step's output.
EXTRACTION_STEPS: tuple[Callable[[str], str], ...] = (
    lambda text: text.strip(),
    _strip_markdown_fences,
    _slice_outer_braces,
)


def extract_json(text: str | None) -> Any:
    """Parse a JSON object or array out of free-form model output."""
    if not text or not text.strip():
        raise MalformedResponse("No response text from model")

    current = text
    for step in EXTRACTION_STEPS:
        current = step(current)
        try:
            parsed = json.loads(current)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, (dict, list)):
            return parsed

    preview = text.strip()[:100]
    raise MalformedResponse(f"No JSON found in response: {preview}")


def validate_payload(payload: Any, output_schema: OutputSchema | None) -> None:
    """Raise SchemaViolation when ``payload`` does not satisfy ``output_schema``."""
    if output_schema is None:
        return

    validator = Draft7Validator(output_schema.schema)
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise SchemaViolation(
            f"Response violates schema '{output_schema.name}' at {location}: {first.message}"
        )


def schema_instructions(output_schema: OutputSchema | None) -> str:
    """Prompt suffix asking for bare JSON, with the schema inlined when present."""
    base = "You MUST respond with valid JSON only. No markdown, no other text."
    if output_schema is None:
        return base
    return f"{base}\nThe JSON must conform to this JSON Schema ({output_schema.name}):\n" + json.dumps(
        output_schema.schema, indent=2
    )

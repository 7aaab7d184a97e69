"""Shared utilities for provider implementations."""

from __future__ import annotations

import json
from typing import Any

from genbridge.types import FinishReason, UsageMetadata


def lowercase_schema_types(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *schema* with every string ``type`` value lower-cased.

    Gemini-style declarations use ``"OBJECT"``/``"STRING"``; JSON Schema
    consumers expect ``"object"``/``"string"``. The input is not modified.
    """

    def walk(node: Any) -> Any:
        if isinstance(node, list):
            return [walk(item) for item in node]
        if not isinstance(node, dict):
            return node

        updated: dict[str, Any] = {}
        for key, value in node.items():
            if key == "type" and isinstance(value, str):
                updated[key] = value.lower()
            else:
                updated[key] = walk(value)
        return updated

    result: dict[str, Any] = walk(schema)
    return result


def parse_tool_arguments(raw: str) -> dict[str, Any]:
    """Parse accumulated tool-call argument text.

    Empty text means the call has no arguments. Anything that is not a JSON
    object raises ``ValueError`` (``json.JSONDecodeError`` included).
    """
    if not raw:
        return {}
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


_OPENAI_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "tool_calls": FinishReason.STOP,
    "function_call": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
    "content_filter": FinishReason.SAFETY,
}

# Finish reasons that mark a streamed tool call as complete.
TOOL_CALL_FINISH_REASONS: frozenset[str] = frozenset({"tool_calls", "function_call"})


def map_openai_finish_reason(reason: str | None) -> FinishReason | None:
    """Map a chat-completions finish reason onto ``FinishReason``."""
    if reason is None:
        return None
    return _OPENAI_FINISH_REASONS.get(str(reason).lower(), FinishReason.OTHER)


def openai_usage_metadata(usage: Any) -> UsageMetadata | None:
    """Extract token usage from a completion or chunk ``usage`` object."""
    if usage is None:
        return None
    prompt = getattr(usage, "prompt_tokens", None)
    completion = getattr(usage, "completion_tokens", None)
    total = getattr(usage, "total_tokens", None)
    return UsageMetadata(
        prompt_token_count=int(prompt) if prompt is not None else None,
        candidates_token_count=int(completion) if completion is not None else None,
        total_token_count=int(total) if total is not None else None,
    )

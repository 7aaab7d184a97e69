"""Conversions between unified shapes and the Chat Completions wire format.

Request side: unified turns, tools and options become a chat-completions
request body. Response side: one non-streaming completion becomes one
``GenerateContentResponse``. The streaming side lives in ``_stream``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Literal

from genbridge.errors import ToolArgumentsError
from genbridge.providers._utils import (
    lowercase_schema_types,
    map_openai_finish_reason,
    openai_usage_metadata,
    parse_tool_arguments,
)
from genbridge.types import (
    Candidate,
    Content,
    FunctionCall,
    GenerateContentResponse,
    Part,
    normalize_contents,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from genbridge.types import ContentsInput, GenerateContentRequest, Role, Tool

OpenAIRole = Literal["user", "assistant", "developer"]

_ROLE_MAP: dict[str, OpenAIRole] = {
    "model": "assistant",
    "system": "developer",
}


def to_openai_role(role: str) -> OpenAIRole:
    """Map a unified role onto a chat-completions role."""
    return _ROLE_MAP.get(role, "user")


def part_to_openai_message(part: Part, role: OpenAIRole) -> dict[str, Any]:
    """Convert a single part into one chat-completions message."""
    if part.function_call is not None:
        call = part.function_call
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": call.id or "unknown_tool_id",
                    "type": "function",
                    "function": {
                        "name": call.name or "unknown_tool_name",
                        "arguments": json.dumps(call.args),
                    },
                }
            ],
        }
    if part.function_response is not None:
        result = part.function_response
        return {
            "role": "tool",
            "content": json.dumps(result.response, indent=2),
            "tool_call_id": result.id or "",
        }
    return {"role": role, "content": part.text}


def to_openai_messages(
    contents: ContentsInput, default_role: Role = "user"
) -> list[dict[str, Any]]:
    """Flatten unified turns into ordered chat-completions messages.

    Every part becomes its own message, so a turn with three parts yields
    three messages in the same order.
    """
    messages: list[dict[str, Any]] = []
    for turn in normalize_contents(contents, default_role):
        role = to_openai_role(turn.role)
        messages.extend(part_to_openai_message(part, role) for part in turn.parts)
    return messages


def to_openai_schema_format(schema: dict[str, Any]) -> dict[str, Any]:
    """Build a ``response_format`` entry for JSON-schema constrained output."""
    return {
        "type": "json_schema",
        "json_schema": {
            # OpenAI requires a name; it carries no meaning here.
            "name": "object",
            "schema": lowercase_schema_types(schema),
        },
    }


def to_openai_tools(tools: Sequence[Tool]) -> list[dict[str, Any]]:
    """Convert declared functions into chat-completions tool entries.

    Tools with a local ``call_tool`` are skipped.
    """
    converted: list[dict[str, Any]] = []
    for tool in tools:
        if tool.call_tool is not None:
            continue
        for declaration in tool.function_declarations:
            function: dict[str, Any] = {"name": declaration.name}
            if declaration.description is not None:
                function["description"] = declaration.description
            if declaration.parameters is not None:
                function["parameters"] = lowercase_schema_types(declaration.parameters)
            converted.append({"type": "function", "function": function})
    return converted


def to_openai_request_body(
    request: GenerateContentRequest, *, model: str
) -> dict[str, Any]:
    """Build a chat-completions request body without the ``stream`` flag."""
    config = request.config
    messages = to_openai_messages(request.contents)
    if config.system_instruction is not None:
        messages = to_openai_messages(config.system_instruction, "system") + messages

    body: dict[str, Any] = {"model": request.model or model, "messages": messages}
    if config.temperature is not None:
        body["temperature"] = config.temperature
    if config.top_p is not None:
        body["top_p"] = config.top_p
    if config.max_output_tokens is not None:
        body["max_tokens"] = config.max_output_tokens

    schema = config.response_schema_json()
    if config.response_mime_type == "application/json" and schema is not None:
        body["response_format"] = to_openai_schema_format(schema)

    if config.tools:
        tools = to_openai_tools(config.tools)
        if tools:
            body["tools"] = tools
    return body


def completion_to_response(
    completion: Any, *, provider: str = "openai"
) -> GenerateContentResponse:
    """Convert one non-streaming completion into one unified response.

    Raises:
        ToolArgumentsError: A tool call's arguments are not a JSON object.
    """
    choices = getattr(completion, "choices", None) or []
    candidates: list[Candidate] = []
    for position, choice in enumerate(choices):
        message = choice.message
        parts: list[Part] = []
        if message.content:
            parts.append(Part(text=message.content))
        for tool_call in getattr(message, "tool_calls", None) or []:
            parts.append(
                Part(function_call=_parse_tool_call(tool_call, provider=provider))
            )
        if not parts:
            parts.append(Part(text=""))
        candidates.append(
            Candidate(
                content=Content(role="model", parts=tuple(parts)),
                finish_reason=map_openai_finish_reason(
                    getattr(choice, "finish_reason", None)
                ),
                index=getattr(choice, "index", position),
            )
        )

    return GenerateContentResponse(
        candidates=tuple(candidates),
        usage_metadata=openai_usage_metadata(getattr(completion, "usage", None)),
    )


def _parse_tool_call(tool_call: Any, *, provider: str) -> FunctionCall:
    function = tool_call.function
    raw = function.arguments or ""
    try:
        args = parse_tool_arguments(raw)
    except ValueError as e:
        raise ToolArgumentsError(
            f"Tool call {function.name!r} returned malformed arguments: {e}",
            hint="The model produced arguments that are not a JSON object.",
            provider=provider,
            phase="generate",
            function_name=function.name,
            call_id=tool_call.id,
            raw_arguments=raw,
        ) from e
    return FunctionCall(name=function.name, args=args, id=tool_call.id)

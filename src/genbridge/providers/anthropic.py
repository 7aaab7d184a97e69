"""Anthropic Messages API adapter."""

from __future__ import annotations

from contextlib import aclosing
import json
import logging
from typing import TYPE_CHECKING, Any, NoReturn

from genbridge.errors import APIError, UnsupportedOperationError
from genbridge.providers._stream import FunctionCallAccumulator
from genbridge.providers._utils import lowercase_schema_types
from genbridge.providers.base import ProviderCapabilities
from genbridge.types import (
    CountTokensResponse,
    FinishReason,
    FunctionCall,
    GenerateContentResponse,
    Part,
    ResponseError,
    UsageMetadata,
    normalize_contents,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Callable, Sequence

    from genbridge.config import Config
    from genbridge.types import (
        ContentsInput,
        CountTokensRequest,
        EmbedContentRequest,
        GenerateContentRequest,
        Tool,
    )

log = logging.getLogger(__name__)

_ANTHROPIC_DEFAULT_MAX_TOKENS = 1024

_STOP_REASONS: dict[str, FinishReason] = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.STOP,
    "max_tokens": FinishReason.MAX_TOKENS,
}


class AnthropicContentGenerator:
    """Serve the unified interface from Anthropic's Messages API."""

    provider_name = "anthropic"

    def __init__(
        self,
        config: Config,
        *,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize with a config and an optional SDK client factory.

        ``client_factory`` must return an async context manager exposing
        ``messages.create`` and ``messages.count_tokens``.
        """
        self.config = config
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> Any:
        try:
            from anthropic import AsyncAnthropic
        except ImportError as e:
            raise APIError(
                "anthropic package not installed",
                hint="pip install anthropic",
            ) from e
        return AsyncAnthropic(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            default_headers=self.config.default_headers(),
        )

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            streaming=True,
            tools=True,
            structured_outputs=False,
            local_token_counting=False,
            embeddings=False,
        )

    def _request_body(self, request: GenerateContentRequest) -> dict[str, Any]:
        config = request.config
        messages, system = to_anthropic_messages(request.contents)
        if config.system_instruction is not None:
            instruction = "\n".join(
                part.text
                for turn in normalize_contents(config.system_instruction, "system")
                for part in turn.parts
                if part.text
            )
            system = "\n".join(s for s in (instruction, system) if s) or None

        body: dict[str, Any] = {
            "model": request.model or self.config.model,
            "messages": messages,
            "max_tokens": config.max_output_tokens or _ANTHROPIC_DEFAULT_MAX_TOKENS,
        }
        if system:
            body["system"] = system
        if config.temperature is not None:
            body["temperature"] = config.temperature
        if config.top_p is not None:
            body["top_p"] = config.top_p
        if config.tools:
            tools = to_anthropic_tools(config.tools)
            if tools:
                body["tools"] = tools
        return body

    async def generate_content(
        self, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        """Generate a whole reply with one Messages API call."""
        body = self._request_body(request)
        async with self._client_factory() as client:
            message = await client.messages.create(**body)
        return message_to_response(message)

    async def generate_content_stream(
        self, request: GenerateContentRequest
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream a reply as unified responses.

        Events that carry no content (pings, block boundaries) produce no
        response; tool calls are emitted whole when their block closes.
        """
        body = self._request_body(request)
        body["stream"] = True
        async with self._client_factory() as client:
            stream = await client.messages.create(**body)
            log.debug("anthropic stream opened for model %s", body["model"])
            try:
                async with aclosing(assemble_event_stream(stream)) as responses:
                    async for response in responses:
                        yield response
            finally:
                await stream.close()
                log.debug("anthropic stream closed")

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Count input tokens with the Messages API token-counting endpoint."""
        messages, system = to_anthropic_messages(request.contents)
        kwargs: dict[str, Any] = {
            "model": request.model or self.config.model,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system
        async with self._client_factory() as client:
            result = await client.messages.count_tokens(**kwargs)
        return CountTokensResponse(total_tokens=int(result.input_tokens))

    async def embed_content(self, request: EmbedContentRequest) -> NoReturn:
        """Raise because Anthropic has no embeddings endpoint."""
        _ = request
        raise UnsupportedOperationError(
            "Anthropic does not support embeddings",
            hint="Use an embeddings-capable provider for embed_content.",
        )


# --- Request conversion ---


def to_anthropic_messages(
    contents: ContentsInput,
) -> tuple[list[dict[str, Any]], str | None]:
    """Convert unified turns into Messages API messages plus a system prompt.

    ``system`` turns are pulled out into the system prompt. Every other part
    becomes one content block, in part order. Tool calls and tool results
    without ids are paired by function name.
    """
    system_texts: list[str] = []
    messages: list[dict[str, Any]] = []
    for turn in normalize_contents(contents):
        if turn.role == "system":
            text = "\n".join(p.text for p in turn.parts if p.text)
            if text:
                system_texts.append(text)
            continue

        blocks: list[dict[str, Any]] = []
        for part in turn.parts:
            block = _part_to_block(part)
            if block is not None:
                blocks.append(block)
        if blocks:
            role = "assistant" if turn.role == "model" else "user"
            _append_message(messages, {"role": role, "content": blocks})

    return messages, "\n".join(system_texts) or None


def _part_to_block(part: Part) -> dict[str, Any] | None:
    if part.function_call is not None:
        call = part.function_call
        return {
            "type": "tool_use",
            "id": call.id or f"toolu_{call.name}",
            "name": call.name,
            "input": call.args,
        }
    if part.function_response is not None:
        result = part.function_response
        return {
            "type": "tool_result",
            "tool_use_id": result.id or f"toolu_{result.name}",
            "content": json.dumps(result.response),
        }
    if part.text:
        return {"type": "text", "text": part.text}
    return None


def to_anthropic_tools(tools: Sequence[Tool]) -> list[dict[str, Any]]:
    """Convert declared functions into Messages API tool definitions."""
    converted: list[dict[str, Any]] = []
    for tool in tools:
        if tool.call_tool is not None:
            continue
        for declaration in tool.function_declarations:
            converted.append(
                {
                    "name": declaration.name,
                    "description": declaration.description or "",
                    "input_schema": lowercase_schema_types(
                        declaration.parameters or {"type": "object", "properties": {}}
                    ),
                }
            )
    return converted


def _append_message(messages: list[dict[str, Any]], msg: dict[str, Any]) -> None:
    """Append *msg*, merging into the previous message when roles match.

    Anthropic requires strict user/assistant alternation, and ``tool_result``
    blocks must lead their user message, so they are moved to the front of
    every user message.
    """
    if messages and messages[-1]["role"] == msg["role"]:
        messages[-1]["content"] = messages[-1]["content"] + msg["content"]
    else:
        messages.append(msg)
    if msg["role"] == "user":
        content = messages[-1]["content"]
        messages[-1]["content"] = [
            b for b in content if b["type"] == "tool_result"
        ] + [b for b in content if b["type"] != "tool_result"]


# --- Response conversion ---


def map_stop_reason(reason: str | None) -> FinishReason | None:
    if reason is None:
        return None
    return _STOP_REASONS.get(str(reason).lower(), FinishReason.OTHER)


def message_to_response(message: Any) -> GenerateContentResponse:
    """Convert a complete Messages API response into one unified response."""
    parts: list[Part] = []
    for block in getattr(message, "content", None) or []:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            parts.append(Part(text=getattr(block, "text", "")))
        elif block_type == "tool_use":
            parts.append(
                Part(
                    function_call=FunctionCall(
                        name=block.name,
                        args=dict(getattr(block, "input", None) or {}),
                        id=getattr(block, "id", None),
                    )
                )
            )

    usage: UsageMetadata | None = None
    usage_raw = getattr(message, "usage", None)
    if usage_raw is not None:
        input_tokens = int(getattr(usage_raw, "input_tokens", 0) or 0)
        output_tokens = int(getattr(usage_raw, "output_tokens", 0) or 0)
        usage = UsageMetadata(
            prompt_token_count=input_tokens,
            candidates_token_count=output_tokens,
            total_token_count=input_tokens + output_tokens,
        )

    return GenerateContentResponse.from_parts(
        parts,
        finish_reason=map_stop_reason(getattr(message, "stop_reason", None)),
        usage_metadata=usage,
    )


async def assemble_event_stream(
    events: AsyncIterable[Any],
) -> AsyncIterator[GenerateContentResponse]:
    """Translate Messages API stream events into unified responses.

    A ``tool_use`` block is accumulated from ``input_json_delta`` fragments and
    emitted whole on ``content_block_stop``. Arguments that fail to parse are
    reported as a ``ResponseError`` on that response; the stream continues.
    """
    tool_block: FunctionCallAccumulator | None = None
    tool_index: int | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    stop_reason: str | None = None

    async for event in events:
        event_type = getattr(event, "type", None)

        if event_type == "message_start":
            usage = getattr(getattr(event, "message", None), "usage", None)
            input_tokens = getattr(usage, "input_tokens", None)

        elif event_type == "content_block_start":
            block = event.content_block
            if getattr(block, "type", None) == "tool_use":
                tool_block = FunctionCallAccumulator(id=block.id, name=block.name)
                tool_index = event.index

        elif event_type == "content_block_delta":
            delta = event.delta
            delta_type = getattr(delta, "type", None)
            if delta_type == "text_delta":
                yield GenerateContentResponse.from_parts([Part(text=delta.text)])
            elif delta_type == "input_json_delta" and tool_block is not None:
                tool_block.raw_arguments += delta.partial_json or ""

        elif event_type == "content_block_stop":
            if tool_block is not None and event.index == tool_index:
                outcome = tool_block.finalize()
                tool_block, tool_index = None, None
                if isinstance(outcome, FunctionCall):
                    yield GenerateContentResponse.from_parts(
                        [Part(function_call=outcome)]
                    )
                elif isinstance(outcome, ResponseError):
                    log.warning("%s (raw=%r)", outcome.message, outcome.raw_arguments)
                    yield GenerateContentResponse.from_parts(
                        [Part(text="")], error=outcome
                    )

        elif event_type == "message_delta":
            stop_reason = getattr(event.delta, "stop_reason", None) or stop_reason
            usage = getattr(event, "usage", None)
            output_tokens = getattr(usage, "output_tokens", output_tokens)

        elif event_type == "message_stop":
            usage_metadata = None
            if input_tokens is not None or output_tokens is not None:
                usage_metadata = UsageMetadata(
                    prompt_token_count=input_tokens,
                    candidates_token_count=output_tokens,
                    total_token_count=(input_tokens or 0) + (output_tokens or 0),
                )
            yield GenerateContentResponse.from_parts(
                [],
                finish_reason=map_stop_reason(stop_reason),
                usage_metadata=usage_metadata,
            )

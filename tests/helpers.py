"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: fake SDK objects shaped like the
openai/anthropic client surfaces the adapters touch, nothing more.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

# =============================================================================
# Chat Completions chunk builders
# =============================================================================


def chunk(
    *,
    text: str | None = None,
    tool_id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
    finish_reason: str | None = None,
    index: int = 0,
    extra_tool_fragments: int = 0,
) -> Any:
    """Build one ChatCompletionChunk-shaped object."""
    tool_calls = None
    if tool_id is not None or name is not None or arguments is not None:
        fragment = SimpleNamespace(
            index=index,
            id=tool_id,
            type="function" if tool_id else None,
            function=SimpleNamespace(name=name, arguments=arguments),
        )
        tool_calls = [fragment] + [
            SimpleNamespace(
                index=index + i + 1,
                id=f"call_extra_{i}",
                function=SimpleNamespace(name="ignored", arguments="{}"),
            )
            for i in range(extra_tool_fragments)
        ]
    delta = SimpleNamespace(role=None, content=text, tool_calls=tool_calls)
    return SimpleNamespace(
        id="chatcmpl-test",
        choices=[SimpleNamespace(index=0, delta=delta, finish_reason=finish_reason)],
        usage=None,
    )


def usage_chunk(prompt: int, completion: int) -> Any:
    """Build the trailing usage-only chunk sent with include_usage."""
    return SimpleNamespace(
        id="chatcmpl-test",
        choices=[],
        usage=SimpleNamespace(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        ),
    )


def weather_call_chunks() -> list[Any]:
    """A tool call split over several chunks, then the terminal chunk."""
    return [
        chunk(tool_id="call_1", name="get_"),
        chunk(name="weather"),
        chunk(arguments='{"city":'),
        chunk(arguments='"ny"}'),
        chunk(finish_reason="tool_calls"),
    ]


async def aiter_items(items: list[Any]):
    for item in items:
        yield item


# =============================================================================
# Completion builders
# =============================================================================


def completion(
    *,
    text: str | None = "",
    tool_calls: list[tuple[str, str, str]] | None = None,
    finish_reason: str = "stop",
    usage: tuple[int, int] | None = None,
) -> Any:
    """Build a ChatCompletion-shaped object; tool_calls are (id, name, args)."""
    calls = [
        SimpleNamespace(
            id=call_id,
            type="function",
            function=SimpleNamespace(name=name, arguments=args),
        )
        for call_id, name, args in tool_calls or []
    ]
    message = SimpleNamespace(role="assistant", content=text, tool_calls=calls or None)
    usage_ns = None
    if usage is not None:
        usage_ns = SimpleNamespace(
            prompt_tokens=usage[0],
            completion_tokens=usage[1],
            total_tokens=usage[0] + usage[1],
        )
    return SimpleNamespace(
        id="chatcmpl-test",
        choices=[
            SimpleNamespace(index=0, message=message, finish_reason=finish_reason)
        ],
        usage=usage_ns,
    )


# =============================================================================
# Fake clients
# =============================================================================


@dataclass
class FakeStream:
    """Async-iterable stream that records consumption and closing."""

    items: list[Any]
    consumed: int = 0
    closed: bool = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.items:
            self.consumed += 1
            yield item

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeCompletions:
    """Captures kwargs passed to chat.completions.create()."""

    result: Any = None
    stream_items: list[Any] = field(default_factory=list)
    error: BaseException | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)
    streams: list[FakeStream] = field(default_factory=list)

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            stream = FakeStream(list(self.stream_items))
            self.streams.append(stream)
            return stream
        return self.result


@dataclass
class FakeOpenAIClient:
    """Async-context-manager client exposing chat.completions."""

    completions: FakeCompletions = field(default_factory=FakeCompletions)
    entered: int = 0
    closed: int = 0

    @property
    def chat(self) -> Any:
        return SimpleNamespace(completions=self.completions)

    async def __aenter__(self) -> FakeOpenAIClient:
        self.entered += 1
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed += 1


# =============================================================================
# Anthropic fakes
# =============================================================================


def event(event_type: str, **fields: Any) -> Any:
    return SimpleNamespace(type=event_type, **fields)


def text_delta(index: int, text: str) -> Any:
    return event(
        "content_block_delta",
        index=index,
        delta=SimpleNamespace(type="text_delta", text=text),
    )


def json_delta(index: int, partial_json: str) -> Any:
    return event(
        "content_block_delta",
        index=index,
        delta=SimpleNamespace(type="input_json_delta", partial_json=partial_json),
    )


def tool_use_start(index: int, call_id: str, name: str) -> Any:
    return event(
        "content_block_start",
        index=index,
        content_block=SimpleNamespace(type="tool_use", id=call_id, name=name, input={}),
    )


def text_start(index: int) -> Any:
    return event(
        "content_block_start",
        index=index,
        content_block=SimpleNamespace(type="text", text=""),
    )


def message_start(input_tokens: int) -> Any:
    return event(
        "message_start",
        message=SimpleNamespace(usage=SimpleNamespace(input_tokens=input_tokens)),
    )


def message_delta(stop_reason: str, output_tokens: int) -> Any:
    return event(
        "message_delta",
        delta=SimpleNamespace(stop_reason=stop_reason),
        usage=SimpleNamespace(output_tokens=output_tokens),
    )


@dataclass
class FakeMessages:
    """Captures kwargs passed to messages.create() and messages.count_tokens()."""

    result: Any = None
    stream_items: list[Any] = field(default_factory=list)
    input_tokens: int = 0
    calls: list[dict[str, Any]] = field(default_factory=list)
    count_calls: list[dict[str, Any]] = field(default_factory=list)
    streams: list[FakeStream] = field(default_factory=list)

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if kwargs.get("stream"):
            stream = FakeStream(list(self.stream_items))
            self.streams.append(stream)
            return stream
        return self.result

    async def count_tokens(self, **kwargs: Any) -> Any:
        self.count_calls.append(kwargs)
        return SimpleNamespace(input_tokens=self.input_tokens)


@dataclass
class FakeAnthropicClient:
    messages: FakeMessages = field(default_factory=FakeMessages)
    closed: int = 0

    async def __aenter__(self) -> FakeAnthropicClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed += 1

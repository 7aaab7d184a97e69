"""Provider-agnostic request and response shapes.

Every adapter accepts these request types and produces these response types,
so callers never see a provider's wire format. The shapes follow the Gemini
``GenerateContent`` model: conversation turns are ``Content`` objects holding
ordered ``Part`` objects, and a response wraps its parts in a ``Candidate``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Union

from pydantic import BaseModel

from genbridge.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable

Role = Literal["user", "model", "system"]


class FinishReason(str, Enum):
    """Why the model stopped producing output."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


# --- Parts and turns ---


@dataclass(frozen=True)
class FunctionCall:
    """A completed tool invocation requested by the model."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class FunctionResponse:
    """The result of a tool invocation, sent back to the model."""

    name: str
    response: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class Part:
    """One piece of a turn: text, a function call, or a function response."""

    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None

    def __post_init__(self) -> None:
        """Require exactly one payload."""
        populated = sum(
            value is not None
            for value in (self.text, self.function_call, self.function_response)
        )
        if populated != 1:
            raise ConfigurationError(
                f"Part must carry exactly one payload, got {populated}",
                hint="Use Part.from_text(), Part.from_function_call() or "
                "Part.from_function_response().",
            )

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)

    @classmethod
    def from_function_call(
        cls, name: str, args: dict[str, Any] | None = None, *, id: str | None = None
    ) -> Part:
        return cls(function_call=FunctionCall(name=name, args=args or {}, id=id))

    @classmethod
    def from_function_response(
        cls, name: str, response: dict[str, Any], *, id: str | None = None
    ) -> Part:
        return cls(
            function_response=FunctionResponse(name=name, response=response, id=id)
        )


@dataclass(frozen=True)
class Content:
    """A single conversation turn."""

    role: Role
    parts: tuple[Part, ...] = ()

    def __post_init__(self) -> None:
        """Freeze parts into a tuple so turns stay immutable."""
        if not isinstance(self.parts, tuple):
            object.__setattr__(self, "parts", tuple(self.parts))


ContentsInput = Union[str, Part, Content, Sequence[Union[str, Part, Content]]]


def normalize_contents(
    contents: ContentsInput, default_role: Role = "user"
) -> tuple[Content, ...]:
    """Turn any accepted ``contents`` form into an ordered tuple of turns.

    Bare strings and parts become single-part turns with *default_role*;
    ``Content`` objects keep their own role. Order is preserved.
    """
    if isinstance(contents, (str, Part, Content)):
        items: Sequence[str | Part | Content] = (contents,)
    else:
        items = contents

    turns: list[Content] = []
    for item in items:
        if isinstance(item, Content):
            turns.append(item)
        elif isinstance(item, Part):
            turns.append(Content(role=default_role, parts=(item,)))
        elif isinstance(item, str):
            turns.append(Content(role=default_role, parts=(Part(text=item),)))
        else:
            raise ConfigurationError(
                f"Unsupported content type: {type(item).__name__}",
                hint="Pass strings, Part or Content objects.",
            )
    return tuple(turns)


# --- Tools and generation options ---


@dataclass(frozen=True)
class FunctionDeclaration:
    """Schema of a function the model may call."""

    name: str
    description: str | None = None
    #: JSON schema; Gemini-style upper-case type names are accepted.
    parameters: dict[str, Any] | None = None


@dataclass(frozen=True)
class Tool:
    """A group of function declarations.

    Tools that carry ``call_tool`` are executed locally by the host and are not
    declared to the provider.
    """

    function_declarations: tuple[FunctionDeclaration, ...] = ()
    call_tool: Callable[..., Any] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.function_declarations, tuple):
            object.__setattr__(
                self, "function_declarations", tuple(self.function_declarations)
            )


ResponseSchemaInput = Union[type[BaseModel], dict[str, Any]]


@dataclass(frozen=True)
class GenerationConfig:
    """Generation options shared by all adapters."""

    system_instruction: ContentsInput | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    response_mime_type: str | None = None
    #: Pydantic ``BaseModel`` subclass or JSON Schema dict for structured output.
    response_schema: ResponseSchemaInput | None = None
    tools: tuple[Tool, ...] | None = None

    def __post_init__(self) -> None:
        """Validate option shapes early for clear errors."""
        if self.response_schema is not None and not (
            isinstance(self.response_schema, dict)
            or (
                isinstance(self.response_schema, type)
                and issubclass(self.response_schema, BaseModel)
            )
        ):
            raise ConfigurationError(
                "response_schema must be a Pydantic model class or JSON schema dict",
                hint="Pass a BaseModel subclass or a dict following JSON Schema.",
            )
        if self.max_output_tokens is not None and self.max_output_tokens <= 0:
            raise ConfigurationError(
                "max_output_tokens must be a positive integer",
                hint="Omit max_output_tokens to use the provider default.",
            )
        if self.tools is not None and not isinstance(self.tools, tuple):
            object.__setattr__(self, "tools", tuple(self.tools))

    def response_schema_json(self) -> dict[str, Any] | None:
        """Return JSON Schema for provider APIs."""
        schema = self.response_schema
        if schema is None:
            return None
        if isinstance(schema, dict):
            return schema
        return schema.model_json_schema()


# --- Requests ---


@dataclass(frozen=True)
class GenerateContentRequest:
    """A generation request: turns, optional model override, and options."""

    contents: ContentsInput
    model: str | None = None
    config: GenerationConfig = field(default_factory=GenerationConfig)


@dataclass(frozen=True)
class CountTokensRequest:
    contents: ContentsInput
    model: str | None = None


@dataclass(frozen=True)
class EmbedContentRequest:
    contents: ContentsInput
    model: str | None = None


# --- Responses ---


@dataclass(frozen=True)
class UsageMetadata:
    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None


@dataclass(frozen=True)
class Candidate:
    content: Content
    finish_reason: FinishReason | None = None
    index: int = 0


@dataclass(frozen=True)
class ResponseError:
    """Tagged failure carried by a streamed response instead of its payload.

    Raised errors cannot travel through a stream without ending it, so a chunk
    whose tool call could not be completed reports the failure here.
    """

    kind: Literal["malformed_tool_arguments"]
    message: str
    function_name: str | None = None
    call_id: str | None = None
    raw_arguments: str | None = None


@dataclass(frozen=True)
class GenerateContentResponse:
    """One unified response: a whole reply, or one chunk of a streamed reply."""

    candidates: tuple[Candidate, ...] = ()
    usage_metadata: UsageMetadata | None = None
    error: ResponseError | None = None

    @classmethod
    def from_parts(
        cls,
        parts: Sequence[Part],
        *,
        finish_reason: FinishReason | None = None,
        usage_metadata: UsageMetadata | None = None,
        error: ResponseError | None = None,
    ) -> GenerateContentResponse:
        """Build a single-candidate model response."""
        return cls(
            candidates=(
                Candidate(
                    content=Content(role="model", parts=tuple(parts)),
                    finish_reason=finish_reason,
                ),
            ),
            usage_metadata=usage_metadata,
            error=error,
        )

    @property
    def parts(self) -> tuple[Part, ...]:
        if not self.candidates:
            return ()
        return self.candidates[0].content.parts

    @property
    def text(self) -> str:
        """Concatenated text of the first candidate, ``""`` when there is none."""
        return "".join(p.text for p in self.parts if p.text is not None)

    @property
    def function_calls(self) -> tuple[FunctionCall, ...]:
        return tuple(p.function_call for p in self.parts if p.function_call)

    @property
    def finish_reason(self) -> FinishReason | None:
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason


@dataclass(frozen=True)
class CountTokensResponse:
    total_tokens: int

    def __post_init__(self) -> None:
        if self.total_tokens < 0:
            raise ValueError("total_tokens must be >= 0")

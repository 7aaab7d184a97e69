"""Chat Completions stream assembly.

A chat-completions stream delivers a tool call in fragments: the id on the
first fragment, then pieces of the name and of the raw JSON argument text,
spread over any number of chunks. ``assemble_stream`` rebuilds the call while
passing text through untouched. It yields exactly one unified response per
input chunk, in input order, and holds no state beyond one accumulator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any

from genbridge.providers._utils import (
    TOOL_CALL_FINISH_REASONS,
    map_openai_finish_reason,
    openai_usage_metadata,
    parse_tool_arguments,
)
from genbridge.types import (
    FunctionCall,
    GenerateContentResponse,
    Part,
    ResponseError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Sequence

log = logging.getLogger(__name__)


@dataclass
class FunctionCallAccumulator:
    """Fragments of the one in-progress tool call of a stream.

    Until ``reset``, fields only grow: ``id`` is set by the first fragment that
    carries one, ``name`` and ``raw_arguments`` are concatenated. The first
    fragment fixes the call's ``index``; fragments of any other call (another
    index, or another id) are ignored.
    """

    id: str = ""
    name: str = ""
    raw_arguments: str = ""
    index: int | None = None
    _warned_parallel: bool = field(default=False, repr=False)

    def add_fragments(self, fragments: Sequence[Any]) -> None:
        """Fold a chunk's ``delta.tool_calls`` list into the accumulator.

        One call per stream is assembled; fragments of a second call are
        dropped with a single warning.
        """
        for fragment in fragments:
            if self._owns(fragment):
                self._add_fragment(fragment)
            elif not self._warned_parallel:
                self._warned_parallel = True
                log.warning(
                    "Stream carries another tool call (index=%s, id=%s); "
                    "only the first is assembled",
                    getattr(fragment, "index", None),
                    getattr(fragment, "id", None),
                )

    def _owns(self, fragment: Any) -> bool:
        index = getattr(fragment, "index", None)
        fragment_id = getattr(fragment, "id", None)
        if self.index is None and not self.id and not self.name:
            self.index = index
            return True
        if index is not None and self.index is not None and index != self.index:
            return False
        return not (fragment_id and self.id and fragment_id != self.id)

    def _add_fragment(self, fragment: Any) -> None:
        fragment_id = getattr(fragment, "id", None)
        if fragment_id and not self.id:
            self.id = fragment_id
        function = getattr(fragment, "function", None)
        if function is None:
            return
        name = getattr(function, "name", None)
        if name:
            self.name += name
        arguments = getattr(function, "arguments", None)
        if arguments:
            self.raw_arguments += arguments

    def reset(self) -> None:
        """Forget the finalized call; the parallel-call warning stays spent."""
        self.id = ""
        self.name = ""
        self.raw_arguments = ""
        self.index = None

    def finalize(self) -> FunctionCall | ResponseError | None:
        """Close the call: parse arguments once.

        Returns the completed call, a tagged error when the arguments do not
        parse, or None when no call was ever started.
        """
        if not self.name:
            return None
        try:
            args = parse_tool_arguments(self.raw_arguments)
        except ValueError as e:
            return ResponseError(
                kind="malformed_tool_arguments",
                message=f"Tool call {self.name!r} returned malformed arguments: {e}",
                function_name=self.name,
                call_id=self.id or None,
                raw_arguments=self.raw_arguments,
            )
        return FunctionCall(name=self.name, args=args, id=self.id or None)


async def assemble_stream(
    chunks: AsyncIterable[Any],
) -> AsyncIterator[GenerateContentResponse]:
    """Translate chat-completions chunks into unified responses, one for one.

    A completed tool call is emitted only on the chunk whose finish reason is
    ``tool_calls`` or ``function_call``; that response carries the call and no
    text. If the accumulated arguments fail to parse, that response carries a
    ``ResponseError`` instead and the stream continues.
    """
    accumulator = FunctionCallAccumulator()
    count = 0
    async for chunk in chunks:
        count += 1
        yield _chunk_to_response(chunk, accumulator)

    if accumulator.name:
        # No terminal marker arrived for this call; its fragments are dropped.
        log.debug(
            "Stream ended with an unfinished tool call %r; discarding", accumulator.name
        )
    log.debug("Assembled %d stream chunk(s)", count)


def _chunk_to_response(
    chunk: Any, accumulator: FunctionCallAccumulator
) -> GenerateContentResponse:
    usage = openai_usage_metadata(getattr(chunk, "usage", None))
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return GenerateContentResponse.from_parts(
            [Part(text="")], usage_metadata=usage
        )

    choice = choices[0]
    delta = getattr(choice, "delta", None)
    text = getattr(delta, "content", None) or ""
    accumulator.add_fragments(getattr(delta, "tool_calls", None) or [])

    finish_reason = getattr(choice, "finish_reason", None)
    mapped_reason = map_openai_finish_reason(finish_reason)
    if finish_reason in TOOL_CALL_FINISH_REASONS:
        outcome = accumulator.finalize()
        accumulator.reset()
        if isinstance(outcome, FunctionCall):
            return GenerateContentResponse.from_parts(
                [Part(function_call=outcome)],
                finish_reason=mapped_reason,
                usage_metadata=usage,
            )
        if isinstance(outcome, ResponseError):
            log.warning("%s (raw=%r)", outcome.message, outcome.raw_arguments)
            return GenerateContentResponse.from_parts(
                [Part(text="")],
                finish_reason=mapped_reason,
                usage_metadata=usage,
                error=outcome,
            )
        log.warning("Finish reason %r arrived without a tool call", finish_reason)

    return GenerateContentResponse.from_parts(
        [Part(text=text)], finish_reason=mapped_reason, usage_metadata=usage
    )

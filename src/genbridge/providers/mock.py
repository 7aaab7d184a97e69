"""Mock adapter for testing."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from genbridge.errors import UnsupportedOperationError
from genbridge.providers.base import ProviderCapabilities
from genbridge.types import (
    CountTokensResponse,
    FinishReason,
    GenerateContentResponse,
    Part,
    UsageMetadata,
    normalize_contents,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from genbridge.types import (
        ContentsInput,
        CountTokensRequest,
        EmbedContentRequest,
        GenerateContentRequest,
    )


class MockContentGenerator:
    """Mock adapter that answers without API calls.

    Replies echo the last user text, so recipes stay informative offline.
    """

    provider_name = "mock"

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            streaming=True,
            tools=False,
            structured_outputs=False,
            local_token_counting=True,
            embeddings=False,
        )

    async def generate_content(
        self, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        """Return a deterministic echo of the last user text."""
        text = _reply_text(request.contents)
        prompt_tokens = _word_count(request.contents)
        reply_tokens = len(text.split())
        return GenerateContentResponse.from_parts(
            [Part(text=text)],
            finish_reason=FinishReason.STOP,
            usage_metadata=UsageMetadata(
                prompt_token_count=prompt_tokens,
                candidates_token_count=reply_tokens,
                total_token_count=prompt_tokens + reply_tokens,
            ),
        )

    async def generate_content_stream(
        self, request: GenerateContentRequest
    ) -> AsyncIterator[GenerateContentResponse]:
        """Yield the echo one word per response; the last carries STOP."""
        words = _reply_text(request.contents).split(" ")
        for idx, word in enumerate(words):
            last = idx == len(words) - 1
            yield GenerateContentResponse.from_parts(
                [Part(text=word if last else f"{word} ")],
                finish_reason=FinishReason.STOP if last else None,
            )

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Count whitespace-separated words as tokens."""
        return CountTokensResponse(total_tokens=_word_count(request.contents))

    async def embed_content(self, request: EmbedContentRequest) -> NoReturn:
        """Raise like the real adapters do."""
        _ = request
        raise UnsupportedOperationError(
            "embed_content is not implemented for the mock adapter"
        )


def _texts(contents: ContentsInput) -> list[tuple[str, str]]:
    return [
        (turn.role, part.text)
        for turn in normalize_contents(contents)
        for part in turn.parts
        if part.text
    ]


def _reply_text(contents: ContentsInput) -> str:
    user_texts = [text for role, text in _texts(contents) if role == "user"]
    prompt = user_texts[-1] if user_texts else ""
    return f"echo: {prompt[:100]}"


def _word_count(contents: ContentsInput) -> int:
    return sum(len(text.split()) for _, text in _texts(contents))

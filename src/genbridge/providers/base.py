"""ContentGenerator protocol: the interface every adapter implements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from genbridge.types import (
        CountTokensRequest,
        CountTokensResponse,
        EmbedContentRequest,
        GenerateContentRequest,
        GenerateContentResponse,
    )


@dataclass(frozen=True)
class ProviderCapabilities:
    """Feature flags exposed by adapters."""

    streaming: bool = True
    tools: bool = True
    structured_outputs: bool = False
    #: True when ``count_tokens`` runs locally without a network call.
    local_token_counting: bool = False
    embeddings: bool = False


@runtime_checkable
class ContentGenerator(Protocol):
    """Generate content, stream it, and count tokens for one provider."""

    async def generate_content(
        self, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        """Return the whole reply as one response."""
        ...

    def generate_content_stream(
        self, request: GenerateContentRequest
    ) -> AsyncIterator[GenerateContentResponse]:
        """Yield the reply as a sequence of self-contained responses."""
        ...

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Count tokens in the request contents."""
        ...

    async def embed_content(self, request: EmbedContentRequest) -> NoReturn:
        """Embeddings are not supported by any adapter; always raises."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Feature flags for this adapter."""
        ...

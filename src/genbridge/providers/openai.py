"""OpenAI Chat Completions adapter."""

from __future__ import annotations

from contextlib import aclosing
import logging
from typing import TYPE_CHECKING, Any, NoReturn

from genbridge.errors import APIError, UnsupportedOperationError
from genbridge.providers._openai_messages import (
    completion_to_response,
    to_openai_request_body,
)
from genbridge.providers._stream import assemble_stream
from genbridge.providers.base import ProviderCapabilities
from genbridge.tokens import count_tokens
from genbridge.types import CountTokensResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from genbridge.config import Config
    from genbridge.types import (
        CountTokensRequest,
        EmbedContentRequest,
        GenerateContentRequest,
        GenerateContentResponse,
    )

log = logging.getLogger(__name__)


class OpenAIContentGenerator:
    """Serve the unified interface from an OpenAI-compatible chat endpoint.

    The instance holds configuration only. Each call opens its own SDK client
    and closes it before returning, so concurrent calls share no state.
    """

    provider_name = "openai"
    default_base_url: str | None = None

    def __init__(
        self,
        config: Config,
        *,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize with a config and an optional SDK client factory.

        ``client_factory`` must return an async context manager exposing
        ``chat.completions.create``; it defaults to ``openai.AsyncOpenAI``.
        """
        self.config = config
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> Any:
        try:
            from openai import AsyncOpenAI
        except ImportError as e:
            raise APIError(
                "openai package not installed",
                hint="pip install openai",
            ) from e
        return AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url or self.default_base_url,
            default_headers=self.config.default_headers(),
        )

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            streaming=True,
            tools=True,
            structured_outputs=True,
            local_token_counting=True,
            embeddings=False,
        )

    def _request_body(
        self, request: GenerateContentRequest, *, stream: bool
    ) -> dict[str, Any]:
        body = to_openai_request_body(request, model=self.config.model)
        body["stream"] = stream
        return body

    async def generate_content(
        self, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        """Generate a whole reply with one non-streaming completion."""
        body = self._request_body(request, stream=False)
        async with self._client_factory() as client:
            completion = await client.chat.completions.create(**body)
        return completion_to_response(completion, provider=self.provider_name)

    async def generate_content_stream(
        self, request: GenerateContentRequest
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream a reply, one unified response per provider chunk.

        Closing the returned iterator early closes the provider stream and the
        client; a tool call still being assembled is not reported.
        """
        body = self._request_body(request, stream=True)
        async with self._client_factory() as client:
            stream = await client.chat.completions.create(**body)
            log.debug(
                "%s stream opened for model %s", self.provider_name, body["model"]
            )
            try:
                async with aclosing(assemble_stream(stream)) as responses:
                    async for response in responses:
                        yield response
            finally:
                await stream.close()
                log.debug("%s stream closed", self.provider_name)

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Count tokens locally with the model's tiktoken encoding."""
        model = request.model or self.config.model
        return CountTokensResponse(total_tokens=count_tokens(request.contents, model))

    async def embed_content(self, request: EmbedContentRequest) -> NoReturn:
        """Raise because embeddings are not implemented."""
        _ = request
        raise UnsupportedOperationError(
            f"embed_content is not implemented for the {self.provider_name} adapter",
            hint="Use a dedicated embeddings client.",
        )

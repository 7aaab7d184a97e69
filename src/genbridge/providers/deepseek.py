"""DeepSeek adapter (OpenAI-compatible Chat Completions API)."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from genbridge.errors import UnsupportedOperationError
from genbridge.providers.openai import OpenAIContentGenerator

if TYPE_CHECKING:
    from genbridge.types import EmbedContentRequest

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class DeepSeekContentGenerator(OpenAIContentGenerator):
    """DeepSeek speaks the Chat Completions protocol at its own endpoint.

    Token counting still needs a model tiktoken recognizes; DeepSeek model
    names are not, so pass ``CountTokensRequest(model=...)`` explicitly.
    """

    provider_name = "deepseek"
    default_base_url = DEEPSEEK_BASE_URL

    async def embed_content(self, request: EmbedContentRequest) -> NoReturn:
        """Raise because DeepSeek has no embeddings endpoint."""
        _ = request
        raise UnsupportedOperationError(
            "DeepSeek does not provide an embeddings endpoint",
            hint="Use an embeddings-capable provider for embed_content.",
        )

"""genbridge: one content-generation interface over many LLM providers.

Public API:
    - create_content_generator(): Build the adapter for a Config
    - Config: Configuration dataclass
    - GenerateContentRequest / GenerateContentResponse and friends: unified shapes
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from genbridge.config import Config, detect_provider
from genbridge.errors import (
    APIError,
    ConfigurationError,
    GenBridgeError,
    ToolArgumentsError,
    UnsupportedOperationError,
)
from genbridge.types import (
    Content,
    CountTokensRequest,
    CountTokensResponse,
    EmbedContentRequest,
    FinishReason,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    ResponseError,
    Tool,
)

if TYPE_CHECKING:
    from genbridge.providers.base import ContentGenerator

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("genbridge")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("genbridge").addHandler(logging.NullHandler())


def create_content_generator(config: Config) -> ContentGenerator:
    """Return the adapter for ``config.provider``.

    Example:
        generator = create_content_generator(Config(provider="openai", model="gpt-4o"))
        response = await generator.generate_content(
            GenerateContentRequest(contents="Hello!")
        )
        print(response.text)
    """
    if config.use_mock:
        from genbridge.providers.mock import MockContentGenerator

        return MockContentGenerator()

    if config.provider == "openai":
        from genbridge.providers.openai import OpenAIContentGenerator

        return OpenAIContentGenerator(config)

    if config.provider == "deepseek":
        from genbridge.providers.deepseek import DeepSeekContentGenerator

        return DeepSeekContentGenerator(config)

    if config.provider == "anthropic":
        from genbridge.providers.anthropic import AnthropicContentGenerator

        return AnthropicContentGenerator(config)

    raise ConfigurationError(
        f"Unsupported provider: {config.provider!r}",
        hint="Supported providers: 'openai', 'anthropic', 'deepseek'",
    )


__all__ = [
    "APIError",
    "Config",
    "ConfigurationError",
    "Content",
    "CountTokensRequest",
    "CountTokensResponse",
    "EmbedContentRequest",
    "FinishReason",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenBridgeError",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "Part",
    "ResponseError",
    "Tool",
    "ToolArgumentsError",
    "UnsupportedOperationError",
    "create_content_generator",
    "detect_provider",
]

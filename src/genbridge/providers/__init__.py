"""Provider adapters."""

from .anthropic import AnthropicContentGenerator
from .base import ContentGenerator, ProviderCapabilities
from .deepseek import DeepSeekContentGenerator
from .mock import MockContentGenerator
from .openai import OpenAIContentGenerator

__all__ = [
    "AnthropicContentGenerator",
    "ContentGenerator",
    "DeepSeekContentGenerator",
    "MockContentGenerator",
    "OpenAIContentGenerator",
    "ProviderCapabilities",
]

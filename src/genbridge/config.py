"""Configuration: frozen Config with explicit provider/model requirements."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
import platform
from types import MappingProxyType
from typing import Literal, cast

from dotenv import load_dotenv

from genbridge.errors import ConfigurationError

load_dotenv()

ProviderName = Literal["openai", "anthropic", "deepseek"]

_PROVIDERS: tuple[ProviderName, ...] = ("openai", "anthropic", "deepseek")

_API_KEY_ENV_VARS: dict[ProviderName, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}

_BASE_URL_ENV_VARS: dict[ProviderName, str] = {
    "openai": "OPENAI_BASE_URL",
    "anthropic": "ANTHROPIC_BASE_URL",
    "deepseek": "DEEPSEEK_BASE_URL",
}

# Auto-detection order when GENBRIDGE_PROVIDER is not set.
_DETECTION_ORDER: tuple[ProviderName, ...] = ("anthropic", "openai", "deepseek")

PROVIDER_ENV_VAR = "GENBRIDGE_PROVIDER"


@dataclass(frozen=True)
class Config:
    """Immutable adapter configuration.

    Provider and model are required. API keys and base URLs are auto-resolved
    from the provider's standard environment variables.

    Example:
        config = Config(provider="openai", model="gpt-4o-mini")
        # API key is automatically resolved from OPENAI_API_KEY
    """

    provider: ProviderName
    model: str
    #: Auto-resolved from ``<PROVIDER>_API_KEY`` when *None*.
    api_key: str | None = None
    #: Auto-resolved from ``<PROVIDER>_BASE_URL`` when *None*; SDK default otherwise.
    base_url: str | None = None
    #: Extra HTTP headers sent with every request. Stored read-only.
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    use_mock: bool = False

    def __post_init__(self) -> None:
        """Auto-resolve credentials and validate configuration."""
        if self.provider not in _PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider: {self.provider!r}",
                hint=f"Supported providers: {', '.join(map(repr, _PROVIDERS))}",
            )
        if not isinstance(self.model, str) or not self.model.strip():
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass Config(model='gpt-4o-mini') or similar.",
            )

        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

        if self.api_key is None and not self.use_mock:
            resolved_key = os.environ.get(_API_KEY_ENV_VARS[self.provider])
            object.__setattr__(self, "api_key", resolved_key)
        if self.base_url is None:
            resolved_url = os.environ.get(_BASE_URL_ENV_VARS[self.provider]) or None
            object.__setattr__(self, "base_url", resolved_url)

        if not self.use_mock and not self.api_key:
            env_var = _API_KEY_ENV_VARS[self.provider]
            raise ConfigurationError(
                f"API key required for {self.provider}",
                hint=f"Set {env_var} environment variable or pass api_key=...",
            )

    @classmethod
    def from_env(cls, model: str, *, use_mock: bool = False) -> Config:
        """Build a config for whichever provider the environment selects."""
        return cls(provider=detect_provider(), model=model, use_mock=use_mock)

    def default_headers(self) -> dict[str, str]:
        """Return headers for the SDK client, user headers taking precedence."""
        headers = {"User-Agent": _user_agent()}
        headers.update(self.headers)
        return headers

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(provider={self.provider!r}, model={self.model!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"base_url={self.base_url!r}, use_mock={self.use_mock})"
        )

    __repr__ = __str__


def detect_provider() -> ProviderName:
    """Pick a provider from the environment.

    ``GENBRIDGE_PROVIDER`` wins when set. Otherwise the first provider with an
    API key present is used, checking Anthropic, OpenAI, then DeepSeek.
    """
    explicit = os.environ.get(PROVIDER_ENV_VAR)
    if explicit:
        name = explicit.strip().lower()
        if name not in _PROVIDERS:
            raise ConfigurationError(
                f"Unknown provider in {PROVIDER_ENV_VAR}: {explicit!r}",
                hint=f"Supported providers: {', '.join(map(repr, _PROVIDERS))}",
            )
        return cast("ProviderName", name)

    for provider in _DETECTION_ORDER:
        if os.environ.get(_API_KEY_ENV_VARS[provider]):
            return provider

    raise ConfigurationError(
        "No provider could be detected from the environment",
        hint="Set GENBRIDGE_PROVIDER or one of "
        + ", ".join(_API_KEY_ENV_VARS[p] for p in _DETECTION_ORDER)
        + ".",
    )


def _user_agent() -> str:
    from genbridge import __version__

    system = platform.system().lower()
    return f"genbridge/{__version__} ({system}; {platform.machine()})"

"""Exception hierarchy for genbridge."""

from __future__ import annotations


class GenBridgeError(Exception):
    """Base exception for all genbridge errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(GenBridgeError):
    """Configuration validation or resolution failed."""


class UnsupportedOperationError(GenBridgeError):
    """The adapter does not implement the requested operation."""


class APIError(GenBridgeError):
    """A provider call produced an unusable result.

    Transport failures raised by provider SDKs are not wrapped; they reach the
    caller unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.provider = provider
        self.phase = phase


class ToolArgumentsError(APIError):
    """Tool-call arguments returned by the provider are not valid JSON."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
        phase: str | None = None,
        function_name: str | None = None,
        call_id: str | None = None,
        raw_arguments: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint, provider=provider, phase=phase)
        self.function_name = function_name
        self.call_id = call_id
        self.raw_arguments = raw_arguments

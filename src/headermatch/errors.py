"""Exception hierarchy for HeaderMatch."""

from typing import Optional


class HeaderMatchError(Exception):
    """Base exception for all HeaderMatch errors."""


class ValidationError(HeaderMatchError):
    """Required input is missing or malformed. Aborts the whole run."""


class ProviderError(HeaderMatchError):
    """Error raised by or about an AI provider."""

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.provider_id = provider_id
        self.operation = operation
        self.detail = message
        if provider_id and operation:
            message = f"Provider {provider_id} failed during {operation}: {message}"
        super().__init__(message)

    def formatted_message(self) -> str:
        """Return the message prefixed with whatever context is known."""
        if self.provider_id and self.operation:
            return f"[{self.provider_id}] {self.operation}: {self.detail}"
        if self.provider_id:
            return f"[{self.provider_id}] {self.detail}"
        return str(self)


class UnknownProviderError(ProviderError):
    """No provider is registered under the requested identifier."""


class ConfigInvalidError(ProviderError):
    """Provider configuration is missing required parameters or is malformed."""


class ProviderInitializationError(ProviderError):
    """A provider could not be created or failed configuration validation."""


class TransportError(ProviderError):
    """A single request to the AI backend failed."""


class ResponseParseError(HeaderMatchError):
    """The backend response could not be turned into a matching result."""

    def __init__(self, message: str, preview: str = ""):
        self.preview = preview
        if preview:
            message = f"{message}. Response preview: {preview}"
        super().__init__(message)


class NoJsonFoundError(ResponseParseError):
    """The response contains no JSON object start."""


class UnparseableResponseError(ResponseParseError):
    """A JSON object start was found but nothing parseable could be recovered."""

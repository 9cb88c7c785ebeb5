"""Anthropic provider."""

import logging
from typing import Optional

from anthropic import Anthropic, APIError

from ..config import settings
from ..domain import ModelConfiguration, ProviderConfiguration
from ..errors import ConfigInvalidError, TransportError
from .base import Provider, string_parameter

logger = logging.getLogger(__name__)


class AnthropicProvider(Provider):
    """Anthropic Claude via the Messages API."""

    provider_id = "anthropic"
    display_name = "Anthropic"
    supported_models = frozenset(
        {
            "claude-sonnet-4-20250514",
            "claude-3-7-sonnet-20250219",
            "claude-3-5-sonnet-20241022",
            "claude-3-5-haiku-20241022",
            "claude-3-opus-20240229",
            "claude-3-haiku-20240307",
        }
    )

    def __init__(self):
        super().__init__()
        self.client: Optional[Anthropic] = None

    def _configure(self, configuration: ProviderConfiguration) -> None:
        api_key = string_parameter(configuration, "apiKey", settings.anthropic_api_key)
        if not api_key:
            raise ConfigInvalidError("Anthropic API key is required", self.provider_id, "configure")

        kwargs = {"api_key": api_key, "timeout": settings.request_timeout_seconds}
        base_url = string_parameter(configuration, "baseUrl")
        if base_url:
            kwargs["base_url"] = base_url
        self.client = Anthropic(**kwargs)

    def send_request(self, prompt: str, model_config: ModelConfiguration) -> str:
        """Send a prompt to Claude and join the returned text blocks."""
        if self.client is None:
            raise TransportError("Provider is not configured", self.provider_id, "send_request")

        try:
            response = self.client.messages.create(
                model=model_config.model_id,
                max_tokens=model_config.max_tokens,
                temperature=model_config.temperature,
                top_p=model_config.top_p,
                top_k=model_config.top_k,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise TransportError(
                f"Failed to send request to Anthropic: {e}", self.provider_id, "send_request"
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise TransportError("Empty response from Anthropic", self.provider_id, "send_request")

        if response.stop_reason == "max_tokens":
            logger.warning("Anthropic response hit max_tokens and may be truncated")
        return text

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
        super().close()

"""OpenAI-compatible chat completions provider."""

import logging
from typing import Optional

import httpx

from ..config import settings
from ..domain import ModelConfiguration, ProviderConfiguration
from ..errors import ConfigInvalidError, TransportError
from .base import Provider, string_parameter

logger = logging.getLogger(__name__)


class OpenAIProvider(Provider):
    """OpenAI chat completions over HTTP."""

    provider_id = "openai"
    display_name = "OpenAI"
    supported_models = frozenset(
        {
            "gpt-4",
            "gpt-4-turbo-preview",
            "gpt-4-32k",
            "gpt-4o",
            "gpt-4o-mini",
            "gpt-3.5-turbo",
            "gpt-3.5-turbo-16k",
        }
    )

    def __init__(self):
        super().__init__()
        self.api_key: Optional[str] = None
        self.organization: Optional[str] = None
        self.base_url: str = self._default_base_url()
        self.timeout: float = settings.request_timeout_seconds

    def _default_base_url(self) -> str:
        return settings.openai_base_url

    def _default_api_key(self) -> Optional[str]:
        return settings.openai_api_key

    def _configure(self, configuration: ProviderConfiguration) -> None:
        self.api_key = string_parameter(configuration, "apiKey", self._default_api_key())
        if not self.api_key:
            raise ConfigInvalidError(
                f"{self.display_name} API key is required", self.provider_id, "configure"
            )
        self.organization = string_parameter(configuration, "organization")
        self.base_url = string_parameter(configuration, "baseUrl", self._default_base_url())
        timeout = configuration.get_parameter("timeoutSeconds")
        if timeout is not None:
            try:
                self.timeout = float(timeout)
            except (TypeError, ValueError) as e:
                raise ConfigInvalidError(
                    f"Invalid timeoutSeconds: {timeout!r}", self.provider_id, "configure"
                ) from e
        logger.info(f"{self.display_name} provider configured for {self.base_url}")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    def build_payload(self, prompt: str, model_config: ModelConfiguration) -> dict:
        """Translate a prompt and model configuration into a request body."""
        return {
            "model": model_config.model_id,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": model_config.max_tokens,
            "temperature": model_config.temperature,
            "top_p": model_config.top_p,
        }

    def send_request(self, prompt: str, model_config: ModelConfiguration) -> str:
        """Send a prompt to the chat completions endpoint."""
        payload = self.build_payload(prompt, model_config)

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self._headers(),
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError(
                f"Failed to send request to {self.display_name}: {e}",
                self.provider_id,
                "send_request",
            ) from e

        return self.extract_content(data)

    def extract_content(self, data: dict) -> str:
        """Pull the completion text out of a chat completions response."""
        choices = data.get("choices") or []
        if not choices:
            raise TransportError(
                f"Empty response from {self.display_name}", self.provider_id, "send_request"
            )

        message = choices[0].get("message") or {}
        content = message.get("content")
        if not content or not content.strip():
            raise TransportError(
                f"Empty content in {self.display_name} response", self.provider_id, "send_request"
            )

        if choices[0].get("finish_reason") == "length":
            logger.warning(
                f"{self.display_name} response hit the token limit and may be truncated"
            )
        return content


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter, which speaks the OpenAI chat completions format."""

    provider_id = "openrouter"
    display_name = "OpenRouter"
    supported_models = frozenset(
        {
            "anthropic/claude-3.5-sonnet",
            "anthropic/claude-3-haiku",
            "openai/gpt-4o",
            "openai/gpt-4o-mini",
            "meta-llama/llama-3-70b-instruct",
        }
    )

    def _default_base_url(self) -> str:
        return settings.openrouter_base_url

    def _default_api_key(self) -> Optional[str]:
        return settings.openrouter_api_key

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["X-Title"] = "HeaderMatch"
        return headers

"""AI provider module."""

from .base import Provider
from .anthropic_provider import AnthropicProvider
from .bedrock_provider import BedrockProvider
from .mock_provider import MockProvider
from .openai_provider import OpenAIProvider, OpenRouterProvider
from .registry import ProviderFactory, ProviderRegistry, create_default_registry

__all__ = [
    "Provider",
    "AnthropicProvider",
    "BedrockProvider",
    "MockProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "ProviderFactory",
    "ProviderRegistry",
    "create_default_registry",
]

"""Provider registry for discovering and caching provider instances."""

import logging
import threading
from collections import OrderedDict
from typing import Callable, Optional

from ..config import settings
from ..domain import ProviderConfiguration
from ..errors import ProviderInitializationError, UnknownProviderError
from .anthropic_provider import AnthropicProvider
from .base import Provider
from .bedrock_provider import BedrockProvider
from .mock_provider import MockProvider
from .openai_provider import OpenAIProvider, OpenRouterProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], Provider]


class ProviderRegistry:
    """Maps provider identifiers to ready provider instances.

    Instances are cached per ``(provider_id, configuration fingerprint)``, so
    two callers using the same backend with different credentials never share
    an instance, and a changed configuration always gets validated. The cache
    is a bounded LRU; an instance pushed out of it is closed.
    """

    def __init__(self, max_instances: Optional[int] = None):
        if max_instances is None:
            max_instances = settings.provider_cache_size
        self.max_instances = max(1, max_instances)
        self._factories: dict[str, ProviderFactory] = {}
        self._instances: OrderedDict[tuple[str, str], Provider] = OrderedDict()
        self._lock = threading.Lock()

    def register(self, provider_id: str, factory: ProviderFactory):
        """Register a provider factory, dropping any cached instances for it."""
        with self._lock:
            self._factories[provider_id] = factory
            self._evict_locked(provider_id)

    def is_available(self, provider_id: str) -> bool:
        return provider_id in self._factories

    def list_available(self) -> list[str]:
        """List all registered provider identifiers."""
        return sorted(self._factories)

    def resolve(
        self, provider_id: str, configuration: Optional[ProviderConfiguration] = None
    ) -> Provider:
        """Return a ready provider for ``provider_id`` and ``configuration``.

        Raises:
            UnknownProviderError: If nothing is registered under ``provider_id``
            ProviderInitializationError: If the configuration fails validation
        """
        if not provider_id or not provider_id.strip():
            raise UnknownProviderError("Provider ID cannot be null or empty")

        if configuration is None:
            configuration = ProviderConfiguration(provider_id=provider_id)
        key = (provider_id, configuration.fingerprint())

        with self._lock:
            cached = self._instances.get(key)
            if cached is not None and cached.is_ready():
                logger.debug(f"Reusing cached provider instance for {provider_id}")
                self._instances.move_to_end(key)
                return cached

            factory = self._factories.get(provider_id)
            if factory is None:
                raise UnknownProviderError(f"Unknown provider ID: {provider_id}")

            provider = factory()
            try:
                provider.validate_configuration(configuration)
            except Exception as e:
                logger.error(f"Failed to initialize provider {provider_id}: {e}")
                raise ProviderInitializationError(
                    f"Failed to create provider: {provider_id}: {e}", provider_id, "initialize"
                ) from e

            if cached is not None:
                self._instances.pop(key).close()
            self._instances[key] = provider
            self._trim_locked()
            logger.info(f"Created provider instance for {provider_id}")
            return provider

    def _trim_locked(self):
        while len(self._instances) > self.max_instances:
            (evicted_id, _), evicted = self._instances.popitem(last=False)
            logger.info(f"Closing least recently used provider instance for {evicted_id}")
            evicted.close()

    def evict(self, provider_id: str):
        """Drop and close every cached instance of ``provider_id``."""
        with self._lock:
            self._evict_locked(provider_id)

    def _evict_locked(self, provider_id: str):
        for key in [k for k in self._instances if k[0] == provider_id]:
            self._instances.pop(key).close()

    def clear(self):
        """Drop and close every cached instance."""
        with self._lock:
            for provider in self._instances.values():
                provider.close()
            self._instances.clear()

    close = clear


def create_default_registry() -> ProviderRegistry:
    """Create a registry with every built-in provider registered."""
    registry = ProviderRegistry()
    for provider_class in (
        OpenAIProvider,
        OpenRouterProvider,
        AnthropicProvider,
        BedrockProvider,
        MockProvider,
    ):
        registry.register(provider_class.provider_id, provider_class)
    return registry

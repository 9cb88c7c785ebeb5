"""Base provider interface."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..domain import ModelConfiguration, ProviderConfiguration
from ..errors import ConfigInvalidError

logger = logging.getLogger(__name__)


def string_parameter(
    configuration: ProviderConfiguration, key: str, fallback: Optional[str] = None
) -> Optional[str]:
    """Read a non-blank string parameter, falling back to ``fallback``."""
    value = configuration.get_parameter(key, str)
    if value is None or not value.strip():
        value = fallback
    if value is None or not value.strip():
        return None
    return value.strip()


class Provider(ABC):
    """Abstract base class for AI backends.

    A provider knows how to validate its own configuration and how to turn a
    prompt into completion text. The matching workflow itself lives in
    ``MatchingOrchestrator`` and is shared by every backend.
    """

    provider_id: str = ""
    display_name: str = ""
    supported_models: frozenset[str] = frozenset()

    def __init__(self):
        self.configuration: Optional[ProviderConfiguration] = None
        self._initialized = False

    def is_ready(self) -> bool:
        """True once validated and while the stored configuration is still valid."""
        ready = (
            self._initialized
            and self.configuration is not None
            and self.configuration.is_valid()
        )
        logger.debug(f"Provider {self.provider_id} readiness check: ready={ready}")
        return ready

    def validate_configuration(self, configuration: Optional[ProviderConfiguration]) -> None:
        """Validate and store a configuration, making the provider ready.

        Raises:
            ConfigInvalidError: If generic or backend-specific checks fail
        """
        logger.info(f"Validating configuration for provider: {self.provider_id}")

        if configuration is None:
            raise ConfigInvalidError("Configuration cannot be null", self.provider_id, "configure")
        if not configuration.is_valid():
            raise ConfigInvalidError("Configuration is invalid", self.provider_id, "configure")

        logger.debug(
            f"Configuring {self.provider_id} with parameters {configuration.redacted_parameters()}"
        )
        self._configure(configuration)

        self.configuration = configuration
        self._initialized = True
        logger.info(f"Configuration validation completed for provider: {self.provider_id}")

    @abstractmethod
    def _configure(self, configuration: ProviderConfiguration) -> None:
        """Check backend-specific parameters and prepare the client."""

    @abstractmethod
    def send_request(self, prompt: str, model_config: ModelConfiguration) -> str:
        """Send one prompt and return the completion text.

        Raises:
            TransportError: If the backend call fails or returns no content
        """

    def close(self) -> None:
        """Release any client resources held by the provider."""
        self._initialized = False

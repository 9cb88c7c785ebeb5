"""Pytest configuration and shared fixtures."""

import json

import pytest

from headermatch.domain import (
    ColumnMapping,
    ModelConfiguration,
    ProviderConfiguration,
)
from headermatch.providers import MockProvider, ProviderRegistry


def make_response(
    source_header: str,
    target_header: str,
    confidence: float,
    reasoning: str = "semantic match",
    used_existing: bool = False,
) -> str:
    """Build a well-formed model response for one header."""
    return json.dumps(
        {
            "sourceHeader": source_header,
            "matchedTargetHeader": target_header,
            "confidencePercentage": confidence,
            "reasoning": reasoning,
            "usedExistingMapping": used_existing,
        }
    )


@pytest.fixture
def mock_provider() -> MockProvider:
    """Create a configured mock provider."""
    provider = MockProvider()
    provider.validate_configuration(ProviderConfiguration(provider_id="mock"))
    return provider


@pytest.fixture
def mock_model_config() -> ModelConfiguration:
    """Create a model configuration the mock provider supports."""
    return ModelConfiguration(model_id="mock-model")


@pytest.fixture
def sample_mappings() -> list[ColumnMapping]:
    """Create a few confirmed mappings."""
    return [
        ColumnMapping(target_column="Customer ID", source_column="Cust_ID"),
        ColumnMapping(
            target_column="Order Date", source_column="OrdDt", context="ISO date of the order"
        ),
    ]


@pytest.fixture
def mock_registry(mock_provider) -> ProviderRegistry:
    """Create a registry whose 'mock' factory always returns the same provider."""
    registry = ProviderRegistry()
    registry.register("mock", lambda: mock_provider)
    return registry

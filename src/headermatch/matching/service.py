"""Column matching service: the entry point used by the CLI and the API."""

import json
import logging
from typing import Any, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from ..domain import (
    ColumnMapping,
    MatchingReport,
    MatchingStatistics,
    MatchRequest,
    OperationMode,
    ProviderConfiguration,
)
from ..errors import ValidationError
from ..providers import ProviderRegistry, create_default_registry
from .orchestrator import MatchingOrchestrator

logger = logging.getLogger(__name__)

CREDENTIALS_MESSAGE = (
    "AWS credentials not configured. Please set up AWS credentials using environment "
    "variables, system properties, or AWS credentials file."
)
REGION_MESSAGE = "Invalid AWS region specified. Please check the region parameter."
JSON_MESSAGE = "Invalid JSON format in existing mappings. Please check the JSON structure."


class ColumnMatchingService:
    """Resolves a provider, runs the orchestrator and aggregates the results.

    The registry is owned by the service, or by the caller when one is
    passed in, so cached provider instances live as long as it does.
    """

    def __init__(self, registry: Optional[ProviderRegistry] = None):
        self.registry = registry if registry is not None else create_default_registry()

    def list_available_providers(self) -> list[str]:
        return self.registry.list_available()

    def match(self, request: MatchRequest) -> MatchingReport:
        """Run one matching request end to end.

        Raises:
            ValidationError: If a required input is missing or invalid
            UnknownProviderError: If the provider is not registered
            ProviderInitializationError: If the provider rejects its configuration
        """
        provider_id = request.provider.provider_id
        logger.info(f"Starting column matching service with provider: {provider_id}")

        if not provider_id or not provider_id.strip():
            raise ValidationError("Provider ID is required")
        if not request.model.model_id or not request.model.model_id.strip():
            raise ValidationError("Model ID is required")

        provider = self.registry.resolve(provider_id, request.provider)
        orchestrator = MatchingOrchestrator(provider)
        results = orchestrator.match(
            request.source_headers,
            request.target_headers,
            request.existing_mappings,
            request.industry_context,
            request.model,
        )

        statistics = MatchingStatistics.from_results(results)
        logger.info(
            f"Processed {statistics.matched_headers_count} results with average confidence "
            f"{statistics.average_confidence:.1f}%, {statistics.existing_mappings_used_count} "
            f"existing mappings used"
        )
        return MatchingReport(
            results=results,
            statistics=statistics,
            provider_name=provider.display_name,
            operation_mode=OperationMode.COLUMN_MATCHING,
        )

    def close(self):
        self.registry.close()


def parse_existing_mappings(json_text: Optional[str]) -> list[ColumnMapping]:
    """Parse confirmed mappings from their JSON representation.

    Accepts an array of mapping objects, or an array of strings where each
    string maps to itself. Invalid entries are skipped; malformed JSON yields
    an empty list.
    """
    if json_text is None or not json_text.strip():
        logger.debug("No existing mappings provided")
        return []

    try:
        data = json.loads(json_text)
    except ValueError as e:
        logger.error(f"Failed to parse existing mappings JSON: {e}")
        return []

    if not isinstance(data, list):
        logger.error(f"Existing mappings JSON must be an array, got {type(data).__name__}")
        return []

    mappings = []
    for index, entry in enumerate(data):
        if isinstance(entry, str):
            mapping = ColumnMapping(target_column=entry, source_column=entry)
        elif isinstance(entry, dict):
            try:
                mapping = ColumnMapping.model_validate(entry)
            except PydanticValidationError as e:
                logger.warning(f"Skipping malformed mapping at index {index}: {e}")
                continue
        else:
            logger.warning(f"Skipping mapping at index {index} of type {type(entry).__name__}")
            continue

        if mapping.is_valid():
            mappings.append(mapping)
        else:
            logger.warning(f"Skipping invalid mapping at index {index}: {entry!r}")

    logger.info(f"Parsed {len(mappings)} existing mappings")
    return mappings


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def build_provider_configuration(
    provider_id: str,
    provider_name: Optional[str] = None,
    keys: Optional[Sequence[str]] = None,
    values: Optional[Sequence[Any]] = None,
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
) -> ProviderConfiguration:
    """Build a provider configuration from parallel key/value sequences.

    Raises:
        ValidationError: If the sequences differ in length or only half of
            the AWS credential pair is given
    """
    if not _is_blank(access_key_id) and _is_blank(secret_access_key):
        raise ValidationError("AWS Secret Access Key is required when Access Key ID is provided")
    if not _is_blank(secret_access_key) and _is_blank(access_key_id):
        raise ValidationError("AWS Access Key ID is required when Secret Access Key is provided")

    keys = list(keys or [])
    values = list(values or [])
    if len(keys) != len(values):
        raise ValidationError(
            "Provider parameter keys and values arrays must have the same length"
        )

    parameters: dict[str, Any] = {}
    if not _is_blank(access_key_id):
        parameters["accessKeyId"] = access_key_id
        parameters["secretAccessKey"] = secret_access_key

    for index, (key, value) in enumerate(zip(keys, values)):
        if key is None or value is None:
            logger.warning(f"Skipping null provider parameter at index {index}")
            continue
        parameters[key] = value

    configuration = ProviderConfiguration(
        provider_id=provider_id,
        provider_name=provider_name,
        parameters=parameters,
    )
    logger.info(
        f"Created provider configuration for {provider_id} with parameters: "
        f"{configuration.redacted_parameters()}"
    )
    return configuration


def describe_failure(exc: BaseException) -> str:
    """Turn a fatal error into the message shown to users."""
    message = str(exc)
    if "credentials" in message:
        return CREDENTIALS_MESSAGE
    if "region" in message:
        return REGION_MESSAGE
    if "JSON" in message:
        return JSON_MESSAGE
    return message

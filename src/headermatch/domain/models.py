"""Data models for column header matching."""

import hashlib
import json
import logging
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIRMED_MAPPING_REASONING = "Confirmed existing mapping"
NO_MATCH_REASONING = "No match found"

_SECRET_MARKERS = ("key", "secret", "token", "password")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class OperationMode(str, Enum):
    """Operation mode of the matching service."""

    COLUMN_MATCHING = "COLUMN_MATCHING"

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["OperationMode"]:
        """Look up a mode by its string value, ignoring case and padding."""
        if value is None:
            return None
        for mode in cls:
            if mode.value.lower() == value.strip().lower():
                return mode
        return None


class ColumnMapping(BaseModel):
    """A confirmed source column -> target column pairing.

    Used both to bypass the model for headers that are already known and as
    few-shot examples in the matching prompt.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    target_column: str = Field(default="", alias="targetColumn")
    source_column: str = Field(default="", alias="sourceColumn")
    context: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("context", "mappingContext"),
        serialization_alias="context",
    )
    # Tri-state override: None and True both mean valid, False forces invalid
    valid: Optional[bool] = None

    def is_valid(self) -> bool:
        """Both columns must be non-blank and the override must not be False."""
        ok = (
            not _is_blank(self.target_column)
            and not _is_blank(self.source_column)
            and self.valid is not False
        )
        if not ok:
            logger.debug(
                f"ColumnMapping validation failed: target_column={self.target_column!r}, "
                f"source_column={self.source_column!r}, valid={self.valid}"
            )
        return ok

    def matches_source_header(self, source_header: Optional[str]) -> bool:
        """Case-insensitive, trimmed comparison against a source header."""
        if source_header is None or not self.source_column:
            return False
        return self.source_column.strip().lower() == source_header.strip().lower()

    def target_column_for(self, source_header: Optional[str]) -> Optional[str]:
        return self.target_column if self.matches_source_header(source_header) else None

    def is_equivalent(self, other: Optional["ColumnMapping"]) -> bool:
        """Two mappings are equivalent when both columns match ignoring case."""
        if other is None:
            return False
        return (
            self.target_column.lower() == other.target_column.lower()
            and self.source_column.lower() == other.source_column.lower()
        )

    def to_prompt_line(self) -> str:
        line = f'"{self.source_column}" → "{self.target_column}"'
        if not _is_blank(self.context):
            line += f" ({self.context})"
        return line


class ColumnMatchingResult(BaseModel):
    """Outcome of matching one source header to a target header."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source_header: str = Field(alias="sourceHeader")
    matched_target_header: str = Field(default="", alias="matchedTargetHeader")
    confidence_percentage: Optional[float] = Field(default=None, alias="confidencePercentage")
    reasoning: str = ""
    used_existing_mapping: bool = Field(default=False, alias="usedExistingMapping")
    valid: Optional[bool] = None

    def is_valid(self) -> bool:
        """Check that every required field is present and in range."""
        ok = (
            not _is_blank(self.source_header)
            and not _is_blank(self.matched_target_header)
            and self.confidence_percentage is not None
            and 0 <= self.confidence_percentage <= 100
            and not _is_blank(self.reasoning)
            and self.valid is not False
        )
        if not ok:
            logger.debug(
                f"ColumnMatchingResult validation failed: source_header={self.source_header!r}, "
                f"matched_target_header={self.matched_target_header!r}, "
                f"confidence_percentage={self.confidence_percentage}, "
                f"reasoning={self.reasoning!r}, valid={self.valid}"
            )
        return ok

    @classmethod
    def confirmed(cls, source_header: str, mapping: ColumnMapping) -> "ColumnMatchingResult":
        """Result for a header covered by an existing mapping."""
        return cls(
            source_header=source_header,
            matched_target_header=mapping.target_column,
            confidence_percentage=100.0,
            reasoning=CONFIRMED_MAPPING_REASONING,
            used_existing_mapping=True,
        )

    @classmethod
    def failed(cls, source_header: str, reason: str) -> "ColumnMatchingResult":
        """Zero-confidence result for a header whose request or parse failed."""
        return cls(
            source_header=source_header,
            matched_target_header="",
            confidence_percentage=0.0,
            reasoning=reason,
            used_existing_mapping=False,
        )

    @classmethod
    def no_match(cls, source_header: str, reason: Optional[str] = None) -> "ColumnMatchingResult":
        reasoning = NO_MATCH_REASONING
        if not _is_blank(reason):
            reasoning = f"{NO_MATCH_REASONING} ({reason})"
        return cls.failed(source_header, reasoning)


class ModelConfiguration(BaseModel):
    """Sampling parameters common to every provider.

    Out-of-range values are accepted at construction and reported by
    ``is_valid()``; passing ``None`` for an optional parameter selects its
    default.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, protected_namespaces=())

    model_id: str = Field(alias="modelId")
    temperature: float = 0.3
    max_tokens: int = Field(default=4000, alias="maxTokens")
    top_p: float = Field(default=1.0, alias="topP")
    top_k: int = Field(default=50, alias="topK")

    @field_validator("temperature", "max_tokens", "top_p", "top_k", mode="before")
    @classmethod
    def _default_when_none(cls, value: Any, info) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    def is_valid(self) -> bool:
        ok = (
            not _is_blank(self.model_id)
            and 0.0 <= self.temperature <= 2.0
            and 0 < self.max_tokens <= 100000
            and 0.0 <= self.top_p <= 1.0
            and self.top_k > 0
        )
        if not ok:
            logger.debug(f"ModelConfiguration validation failed: {self!r}")
        return ok


class ProviderConfiguration(BaseModel):
    """Identity of a provider plus its opaque, provider-specific parameters."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId")
    provider_name: Optional[str] = Field(default=None, alias="providerName")
    parameters: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _default_provider_name(self) -> "ProviderConfiguration":
        if _is_blank(self.provider_name):
            self.provider_name = self.provider_id
        return self

    def get_parameter(self, key: str, expected_type: Optional[type[T]] = None) -> Optional[Any]:
        """Return a parameter, or None when missing or not of ``expected_type``."""
        value = self.parameters.get(key)
        if value is None:
            return None
        if expected_type is not None and not isinstance(value, expected_type):
            return None
        return value

    def has_parameter(self, key: str) -> bool:
        return key in self.parameters

    def is_valid(self) -> bool:
        ok = not _is_blank(self.provider_id) and not _is_blank(self.provider_name)
        if not ok:
            logger.debug(
                f"ProviderConfiguration validation failed: provider_id={self.provider_id!r}, "
                f"provider_name={self.provider_name!r}"
            )
        return ok

    def fingerprint(self) -> str:
        """Stable digest of the whole configuration, used as a cache key."""
        payload = json.dumps(
            {
                "provider_id": self.provider_id,
                "provider_name": self.provider_name,
                "parameters": self.parameters,
            },
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def redacted_parameters(self) -> dict[str, Any]:
        """Parameters with credential-like values masked, for logging."""
        return {
            key: "***" if any(marker in key.lower() for marker in _SECRET_MARKERS) else value
            for key, value in self.parameters.items()
        }


class MatchingStatistics(BaseModel):
    """Aggregate figures over a final result sequence."""

    model_config = ConfigDict(populate_by_name=True)

    matched_headers_count: int = Field(default=0, alias="matchedHeadersCount")
    average_confidence: float = Field(default=0.0, alias="averageConfidence")
    existing_mappings_used_count: int = Field(default=0, alias="existingMappingsUsedCount")
    existing_mapping_utilization_rate: float = Field(
        default=0.0, alias="existingMappingUtilizationRate"
    )

    @classmethod
    def from_results(cls, results: list[ColumnMatchingResult]) -> "MatchingStatistics":
        count = len(results)
        confidences = [
            r.confidence_percentage for r in results if r.confidence_percentage is not None
        ]
        used = sum(1 for r in results if r.used_existing_mapping)
        return cls(
            matched_headers_count=count,
            average_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            existing_mappings_used_count=used,
            existing_mapping_utilization_rate=used / count * 100 if count else 0.0,
        )


class MatchRequest(BaseModel):
    """Every input of one matching run."""

    model_config = ConfigDict(populate_by_name=True)

    source_headers: list[str] = Field(alias="sourceHeaders")
    target_headers: list[str] = Field(alias="targetHeaders")
    existing_mappings: list[ColumnMapping] = Field(default_factory=list, alias="existingMappings")
    industry_context: Optional[str] = Field(default=None, alias="industryContext")
    model: ModelConfiguration = Field(alias="modelConfiguration")
    provider: ProviderConfiguration = Field(alias="providerConfiguration")


class MatchingReport(BaseModel):
    """Every output of one matching run."""

    model_config = ConfigDict(populate_by_name=True)

    results: list[ColumnMatchingResult]
    statistics: MatchingStatistics
    provider_name: str = Field(alias="providerName")
    operation_mode: OperationMode = Field(
        default=OperationMode.COLUMN_MATCHING, alias="operationMode"
    )

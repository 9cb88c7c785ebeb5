"""Domain models for column header matching."""

from .models import (
    CONFIRMED_MAPPING_REASONING,
    NO_MATCH_REASONING,
    ColumnMapping,
    ColumnMatchingResult,
    MatchingReport,
    MatchingStatistics,
    MatchRequest,
    ModelConfiguration,
    OperationMode,
    ProviderConfiguration,
)

__all__ = [
    "CONFIRMED_MAPPING_REASONING",
    "NO_MATCH_REASONING",
    "ColumnMapping",
    "ColumnMatchingResult",
    "MatchingReport",
    "MatchingStatistics",
    "MatchRequest",
    "ModelConfiguration",
    "OperationMode",
    "ProviderConfiguration",
]

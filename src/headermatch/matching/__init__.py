"""Column matching workflow."""

from .orchestrator import MatchingOrchestrator
from .parser import extract_json_object, parse_matching_response, repair_json
from .prompts import build_matching_prompt
from .service import (
    ColumnMatchingService,
    build_provider_configuration,
    describe_failure,
    parse_existing_mappings,
)

__all__ = [
    "MatchingOrchestrator",
    "extract_json_object",
    "parse_matching_response",
    "repair_json",
    "build_matching_prompt",
    "ColumnMatchingService",
    "build_provider_configuration",
    "describe_failure",
    "parse_existing_mappings",
]

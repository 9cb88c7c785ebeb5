"""Matching orchestrator: the per-header request/response workflow."""

import logging
from collections import Counter
from typing import Callable, Optional, Sequence

from ..domain import ColumnMapping, ColumnMatchingResult, ModelConfiguration
from ..errors import ValidationError
from ..providers import Provider
from .parser import parse_matching_response
from .prompts import build_matching_prompt

logger = logging.getLogger(__name__)

PromptBuilder = Callable[
    [str, Sequence[str], Sequence[ColumnMapping], Optional[str]], str
]
ResponseParser = Callable[[str, str], ColumnMatchingResult]


class MatchingOrchestrator:
    """Drives prompt -> provider -> parser for every unmapped source header.

    The workflow is strictly sequential and makes exactly one attempt per
    header. Any failure for one header turns into a zero-confidence result
    for that header only.
    """

    def __init__(
        self,
        provider: Provider,
        prompt_builder: PromptBuilder = build_matching_prompt,
        response_parser: ResponseParser = parse_matching_response,
    ):
        self.provider = provider
        self.prompt_builder = prompt_builder
        self.response_parser = response_parser

    def match(
        self,
        source_headers: Sequence[str],
        target_headers: Sequence[str],
        existing_mappings: Optional[Sequence[ColumnMapping]],
        industry_context: Optional[str],
        model_config: Optional[ModelConfiguration],
    ) -> list[ColumnMatchingResult]:
        """Match every source header, returning one result per header.

        Raises:
            ValidationError: If inputs are missing or the model is unsupported
        """
        logger.info(f"Starting column matching with provider: {self.provider.provider_id}")
        self._validate_inputs(source_headers, target_headers, model_config)

        mappings = self._usable_mappings(existing_mappings)
        confirmed, unmapped = self._partition(source_headers, mappings)
        logger.info(
            f"Found {len(unmapped)} unmapped headers out of {len(source_headers)} total "
            f"headers ({len(confirmed)} already mapped)"
        )

        confirmed_results = [
            ColumnMatchingResult.confirmed(header, mapping) for header, mapping in confirmed
        ]
        inferred_results = [
            self._match_single_header(
                header, index, len(unmapped), target_headers, mappings, industry_context, model_config
            )
            for index, header in enumerate(unmapped, start=1)
        ]

        results = self._post_process(confirmed_results + inferred_results, source_headers)
        logger.info(
            f"Column matching completed: {len(results)} results "
            f"({len(unmapped)} inferred + {len(confirmed)} confirmed)"
        )
        return results

    def _validate_inputs(
        self,
        source_headers: Sequence[str],
        target_headers: Sequence[str],
        model_config: Optional[ModelConfiguration],
    ):
        if not source_headers:
            raise ValidationError("Source headers cannot be null or empty")
        if not target_headers:
            raise ValidationError("Target headers cannot be null or empty")
        if any(not header or not header.strip() for header in source_headers):
            raise ValidationError("Source headers cannot contain blank values")
        if any(not header or not header.strip() for header in target_headers):
            raise ValidationError("Target headers cannot contain blank values")
        if model_config is None or not model_config.is_valid():
            raise ValidationError("Model configuration is invalid")
        if model_config.model_id not in self.provider.supported_models:
            raise ValidationError(
                f"Model not supported by {self.provider.display_name}: {model_config.model_id}"
            )

    def _usable_mappings(
        self, existing_mappings: Optional[Sequence[ColumnMapping]]
    ) -> list[ColumnMapping]:
        usable = []
        for mapping in existing_mappings or []:
            if mapping.is_valid():
                usable.append(mapping)
            else:
                logger.warning(f"Ignoring invalid existing mapping: {mapping!r}")
        return usable

    def _partition(
        self, source_headers: Sequence[str], mappings: list[ColumnMapping]
    ) -> tuple[list[tuple[str, ColumnMapping]], list[str]]:
        """Split headers into (header, mapping) pairs and headers with no mapping."""
        confirmed = []
        unmapped = []
        for header in source_headers:
            mapping = next((m for m in mappings if m.matches_source_header(header)), None)
            if mapping is not None:
                logger.debug(f"Using confirmed mapping: {header} -> {mapping.target_column}")
                confirmed.append((header, mapping))
            else:
                unmapped.append(header)
        return confirmed, unmapped

    def _match_single_header(
        self,
        header: str,
        index: int,
        total: int,
        target_headers: Sequence[str],
        mappings: list[ColumnMapping],
        industry_context: Optional[str],
        model_config: ModelConfiguration,
    ) -> ColumnMatchingResult:
        logger.debug(f"Processing unmapped header {index} of {total}: {header}")
        try:
            prompt = self.prompt_builder(header, target_headers, mappings, industry_context)
            response = self.provider.send_request(prompt, model_config)
            logger.debug(f"Received response for '{header}', length: {len(response)} characters")
            result = self.response_parser(response, header)
        except Exception as e:
            logger.warning(f"Failed to process header '{header}', using default result: {e}")
            logger.debug(f"Exception details for header '{header}'", exc_info=True)
            return ColumnMatchingResult.failed(header, f"Processing failed: {e}")

        if result.source_header != header:
            logger.warning(
                f"Model answered for '{result.source_header}' when asked about '{header}'"
            )
            result = result.model_copy(update={"source_header": header})
        if result.matched_target_header and result.matched_target_header not in target_headers:
            logger.warning(
                f"Model matched '{header}' to '{result.matched_target_header}', "
                f"which is not a target header"
            )

        logger.debug(
            f"Processed: {header} -> {result.matched_target_header} "
            f"(confidence: {result.confidence_percentage}%)"
        )
        return result

    def _post_process(
        self, results: list[ColumnMatchingResult], source_headers: Sequence[str]
    ) -> list[ColumnMatchingResult]:
        """Drop invalid results and guarantee each source header appears once.

        An invalid result is replaced in place by a "No match found" result
        that keeps the discarded reasoning, so failure causes stay visible.
        """
        remaining = Counter(source_headers)
        final = []

        for result in results:
            header = result.source_header
            if remaining[header] <= 0:
                logger.warning(f"Dropping surplus result for source header: {header}")
                continue
            if not result.is_valid():
                logger.warning(f"Discarding invalid result for source header: {header}")
                result = ColumnMatchingResult.no_match(header, result.reasoning)
            final.append(result)
            remaining[header] -= 1

        for header in source_headers:
            if remaining[header] > 0:
                logger.warning(f"No result found for source header: {header}")
                final.append(ColumnMatchingResult.no_match(header))
                remaining[header] -= 1

        if len(final) != len(source_headers):
            logger.error(
                f"Result count ({len(final)}) doesn't match source header count "
                f"({len(source_headers)})"
            )
        return final

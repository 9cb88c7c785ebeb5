"""Prompt construction for single-header matching requests."""

import json
import logging
from typing import Optional, Sequence

from ..domain import ColumnMapping

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = (
    "CRITICAL INSTRUCTION: You are a JSON API. You must respond with ONLY valid JSON. "
    "No markdown, no explanations, no additional text."
)

TASK_DESCRIPTION = """TASK: Match ONE source header to the most appropriate target header using the following approach:
1. EXACT matches from existing mappings (100% confidence)
2. PATTERN-based matches learned from existing mappings (high confidence)
3. SEMANTIC similarity and business logic (variable confidence)
4. Common abbreviations and naming conventions"""

PATTERN_ANALYSIS = (
    "PATTERN ANALYSIS: Study the above mappings to understand naming conventions, "
    "abbreviation patterns, and business logic relationships."
)

MATCHING_GUIDELINES = """MATCHING GUIDELINES:
- First check for exact matches in existing mappings
- Learn patterns from existing mappings (e.g., abbreviations, naming conventions)
- Apply business logic and semantic similarity
- Consider common abbreviations (Qty=Quantity, Desc=Description, etc.)
- Use context clues from similar mappings
- Be consistent with learned patterns
- Flag whether you used an existing mapping or inferred the match"""

OUTPUT_REMINDER = (
    "IMPORTANT: Start your response with { and end with }. "
    "No markdown backticks, no explanations before or after the JSON."
)


def _output_schema(source_header: str) -> str:
    return "\n".join(
        [
            "CRITICAL: You must respond with ONLY a valid JSON object. Do not include any "
            "markdown formatting, explanations, or additional text.",
            "OUTPUT FORMAT: Return ONLY this JSON object:",
            "{",
            f'  "sourceHeader": {json.dumps(source_header)},',
            '  "matchedTargetHeader": "string",',
            '  "confidencePercentage": number,',
            '  "reasoning": "string",',
            '  "usedExistingMapping": boolean',
            "}",
        ]
    )


def build_matching_prompt(
    source_header: str,
    target_headers: Sequence[str],
    existing_mappings: Optional[Sequence[ColumnMapping]] = None,
    industry_context: Optional[str] = None,
) -> str:
    """Build the prompt asking the model to match exactly one source header.

    The prompt names no other source header, so each response carries a
    single small JSON object.

    Args:
        source_header: The header to classify
        target_headers: Candidate headers of the canonical schema
        existing_mappings: Confirmed mappings shown as few-shot examples
        industry_context: Optional free-text domain hint

    Returns:
        The prompt text; identical inputs always give identical output
    """
    sections = [JSON_ONLY_INSTRUCTION, TASK_DESCRIPTION]

    if existing_mappings:
        lines = ["EXISTING MAPPINGS (Learn from these patterns):"]
        lines.extend(f"- {mapping.to_prompt_line()}" for mapping in existing_mappings)
        sections.append("\n".join(lines))
        sections.append(PATTERN_ANALYSIS)

    target_lines = ["TARGET HEADERS (Available options to match to):"]
    target_lines.extend(f"{i}. {header}" for i, header in enumerate(target_headers, start=1))
    sections.append("\n".join(target_lines))

    sections.append(f"SOURCE HEADER TO MATCH:\n{source_header}")
    sections.append(MATCHING_GUIDELINES)

    if industry_context and industry_context.strip():
        sections.append(f"INDUSTRY CONTEXT: {industry_context.strip()}")

    sections.append(_output_schema(source_header))
    sections.append(OUTPUT_REMINDER)

    prompt = "\n\n".join(sections) + "\n"
    logger.debug(f"Built prompt for '{source_header}', length: {len(prompt)} characters")
    return prompt

"""Tolerant parsing of model responses into matching results.

Models are asked for a bare JSON object but regularly wrap it in prose or
markdown, leave trailing commas, or get cut off mid-object. Parsing happens
in three stages:

1. Complete object: the text from the first ``{`` to the first ``}`` after
   it, parsed as is and, failing that, once more after ``repair_json``.
2. Partial salvage: every ``}`` from the end of the text backward is tried
   as the closing brace; the first prefix that parses wins.
3. Failure: ``UnparseableResponseError`` with a bounded preview.

The repair rules are a small fixed set. A response none of them fixes
raises, and the caller records a default result for that header.
"""

import json
import logging
import re
from typing import Any, Optional

from ..config import settings
from ..domain import ColumnMatchingResult
from ..errors import NoJsonFoundError, UnparseableResponseError

logger = logging.getLogger(__name__)

NO_JSON_PREVIEW_CHARS = 100

_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_WHITESPACE_RUN = re.compile(r"\s+")
_STRING_TERMINATORS = (":", ",", "}", "]")


def preview(text: str, limit: Optional[int] = None) -> str:
    """Truncate ``text`` for diagnostics."""
    limit = settings.response_preview_chars if limit is None else limit
    return text if len(text) <= limit else text[:limit] + "..."


# ---------------------------------------------------------------------------
# Repair rules
# ---------------------------------------------------------------------------

def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing ``]`` or ``}``."""
    return _TRAILING_COMMA.sub(r"\1", text)


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run, including raw newlines in strings, with one space."""
    return _WHITESPACE_RUN.sub(" ", text)


def _next_significant(text: str, index: int) -> str:
    while index < len(text) and text[index].isspace():
        index += 1
    return text[index] if index < len(text) else ""


def escape_interior_quotes(text: str) -> str:
    """Escape double quotes that appear inside a string value.

    A quote inside a string is taken as the closing quote only when the next
    non-space character could follow a JSON string (``:``, ``,``, ``}``,
    ``]`` or end of text); any other quote is escaped.
    """
    out = []
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string and ch == "\\":
            out.append(text[i:i + 2])
            i += 2
            continue
        if ch == '"':
            if not in_string:
                in_string = True
            elif _next_significant(text, i + 1) in _STRING_TERMINATORS + ("",):
                in_string = False
            else:
                out.append('\\"')
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def repair_json(text: str) -> str:
    """Apply every repair rule, in a fixed order."""
    repaired = strip_trailing_commas(text)
    repaired = collapse_whitespace(repaired)
    repaired = escape_interior_quotes(repaired)
    return repaired


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _load_object(candidate: str) -> Optional[dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def _extract_complete_object(content: str, start: int) -> Optional[dict[str, Any]]:
    end = content.find("}", start)
    if end == -1:
        return None

    candidate = content[start:end + 1]
    parsed = _load_object(candidate)
    if parsed is not None:
        return parsed

    logger.debug("Complete JSON candidate failed to parse, attempting repairs")
    repaired = repair_json(candidate)
    if repaired != candidate:
        parsed = _load_object(repaired)
        if parsed is not None:
            logger.info("Repaired malformed JSON in model response")
            return parsed
    return None


def _salvage_partial_object(content: str, start: int) -> dict[str, Any]:
    for end in range(len(content) - 1, start - 1, -1):
        if content[end] != "}":
            continue
        parsed = _load_object(content[start:end + 1])
        if parsed is not None:
            logger.info("Salvaged JSON object from truncated or malformed response")
            return parsed

    raise UnparseableResponseError(
        "Unable to extract valid JSON from response", preview(content)
    )


def extract_json_object(content: str) -> dict[str, Any]:
    """Recover the first JSON object from free-form model output.

    Raises:
        NoJsonFoundError: If the text contains no ``{``
        UnparseableResponseError: If no candidate parses as a JSON object
    """
    start = content.find("{")
    if start == -1:
        raise NoJsonFoundError(
            "No JSON object start found in response", preview(content, NO_JSON_PREVIEW_CHARS)
        )

    parsed = _extract_complete_object(content, start)
    if parsed is not None:
        return parsed

    logger.warning("Response appears truncated or malformed, attempting partial salvage")
    return _salvage_partial_object(content, start)


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------

def _as_text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    return text if text.strip() else default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            return default
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, (int, float)):
        return value != 0
    return False


def result_from_fields(fields: dict[str, Any], source_header: str) -> ColumnMatchingResult:
    """Map a parsed JSON object onto a result, filling explicit defaults."""
    return ColumnMatchingResult(
        source_header=_as_text(fields.get("sourceHeader"), source_header),
        matched_target_header=_as_text(fields.get("matchedTargetHeader"), ""),
        confidence_percentage=_as_float(fields.get("confidencePercentage")),
        reasoning=_as_text(fields.get("reasoning"), ""),
        # usedReferenceMapping is the field name older prompts asked for
        used_existing_mapping=(
            _as_bool(fields.get("usedExistingMapping"))
            or _as_bool(fields.get("usedReferenceMapping"))
        ),
    )


def parse_matching_response(response: str, source_header: str) -> ColumnMatchingResult:
    """Parse raw model text for ``source_header`` into a result.

    Raises:
        ResponseParseError: If no JSON object can be recovered
    """
    logger.debug(f"Parsing response for '{source_header}' of length {len(response)}")
    fields = extract_json_object(response)
    result = result_from_fields(fields, source_header)
    logger.debug(
        f"Parsed result: {result.source_header} -> {result.matched_target_header} "
        f"(confidence: {result.confidence_percentage}%)"
    )
    return result

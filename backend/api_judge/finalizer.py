"""
Turn the complete model response into a sanitized assessment.

Stages, each tried only when the previous one fails:

1. strict parse of the JSON candidate (after a one-character brace/bracket patch)
2. truncation repair at the parser's error offset (see ``repair``)
3. fallback synthesis from numbers and text found in the raw response

Whatever stage succeeds, the result is validated and sanitized before it is
returned.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from .errors import NoJsonFound, SchemaIncomplete
from .fallback import has_recoverable_data, synthesize_fallback
from .repair import recover_after_parse_failure
from .sanitizer import sanitize_assessment
from .schemas import Assessment

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("overall_score", "categories", "summary")

_CODE_BLOCK = re.compile(r"```(?:json)?\n?([\s\S]*?)\n?```")


def strip_code_fence(text: str) -> str:
    match = _CODE_BLOCK.search(text)
    if match:
        logger.info("Found JSON in code block")
        return match.group(1).strip()
    return text.strip()


def locate_candidate(text: str) -> str:
    """
    Return the substring from the first ``{`` to the last ``}``.

    A response with an opening brace but no closing one (a truncated stream)
    yields everything from the brace onward so the repair stages can work on it.

    Raises:
        NoJsonFound: when there is no ``{`` at all
    """
    body = strip_code_fence(text)
    first = body.find("{")
    if first == -1:
        raise NoJsonFound("no JSON object found")
    last = body.rfind("}")
    if last < first:
        return body[first:]
    return body[first : last + 1]


def patch_imbalance(candidate: str) -> str:
    """Append at most one missing ``]`` and at most one missing ``}``."""
    open_braces, close_braces = candidate.count("{"), candidate.count("}")
    open_brackets, close_brackets = candidate.count("["), candidate.count("]")
    if open_braces == close_braces and open_brackets == close_brackets:
        return candidate
    logger.warning(
        "JSON structure incomplete - braces: %d/%d, brackets: %d/%d",
        open_braces, close_braces, open_brackets, close_brackets,
    )
    patched = candidate.rstrip()
    if open_brackets > close_brackets:
        patched += "]"
    if open_braces > close_braces:
        patched += "}"
    return patched


def build_assessment(data: Mapping[str, Any]) -> Assessment:
    missing = [field for field in REQUIRED_FIELDS if data.get(field) is None]
    if missing:
        raise SchemaIncomplete(f"missing required fields: {', '.join(missing)}")
    try:
        assessment = Assessment.model_validate(dict(data))
    except ValidationError as exc:
        raise SchemaIncomplete(f"invalid assessment structure: {exc.error_count()} errors") from exc
    return finalize_assessment(assessment)


def finalize_assessment(assessment: Assessment) -> Assessment:
    cleaned = sanitize_assessment(assessment)
    if not cleaned.summary:
        raise SchemaIncomplete("missing required fields: summary")
    return cleaned


def parse_candidate(candidate: str) -> Dict[str, Any]:
    """Strict parse; raises ``json.JSONDecodeError`` on any syntax problem."""
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        raise
    except RecursionError as exc:
        raise json.JSONDecodeError("Nesting too deep", candidate, 0) from exc
    except ValueError as exc:
        # e.g. integer literals past the interpreter's digit limit
        raise json.JSONDecodeError(f"Unparseable value: {exc}", candidate, 0) from exc
    if not isinstance(data, dict):
        raise json.JSONDecodeError("Top-level value is not an object", candidate, 0)
    return data


def finalize_response(raw: str) -> Assessment:
    """
    Produce the final assessment from the complete response text.

    Raises:
        NoJsonFound: no object and no numeric data to fall back on
        FallbackExhausted: nothing at all to recover
        SchemaIncomplete: the recovered object lacks required fields
    """
    try:
        candidate = patch_imbalance(locate_candidate(raw))
    except NoJsonFound:
        if not has_recoverable_data(raw):
            raise
        logger.warning("No JSON object in response, synthesizing from raw text")
        return finalize_assessment(synthesize_fallback(raw))

    try:
        data = parse_candidate(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("JSON parsing failed: %s", exc)
        data = recover_after_parse_failure(candidate, exc)
        if data is None:
            return finalize_assessment(synthesize_fallback(raw))
        logger.info("Parsed repaired JSON")
    return build_assessment(data)

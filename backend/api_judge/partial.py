"""
Progressive extraction of assessment fields from an incomplete model response.

The model streams one JSON object in arbitrary chunks. After every chunk the
whole accumulated text is scanned again and whatever is already complete is
reported, so the client can render scores and findings while the rest of the
document is still being generated.

Only values whose closing delimiter has arrived are reported: a summary
without its closing quote, a category without its closing brace, or an array
without its closing bracket are skipped until a later chunk completes them.
"""

from __future__ import annotations
import json
import logging
import re
from typing import List, Optional

from .categories import CATEGORY_KEYS
from .schemas import PartialAssessment, PartialCategory

logger = logging.getLogger(__name__)

# Digits must be followed by a non-digit so "8" is not reported while "85" streams
_OVERALL_SCORE = re.compile(r'"overall_score"\s*:\s*(\d{1,9})(?=\D)')
_SUMMARY = re.compile(r'"summary"\s*:\s*("(?:[^"\\]|\\.)*")')
_SCORE = re.compile(r'"score"\s*:\s*(\d{1,9})(?!\d)')

# One level of nested braces is tolerated inside a category body
_CATEGORY_PATTERNS = {
    name: re.compile(r'"%s"\s*:\s*\{([^{}]*(?:\{[^{}]*\}[^{}]*)*)\}' % name)
    for name in CATEGORY_KEYS
}


def _array_pattern(key: str) -> re.Pattern:
    return re.compile(r'"%s"\s*:\s*\[([^\]]*)\]' % key)


_ISSUES = _array_pattern("issues")
_SUGGESTIONS = _array_pattern("suggestions")
_CRITICAL_ISSUES = _array_pattern("critical_issues")
_BEST_PRACTICES = _array_pattern("best_practices_followed")


def _parse_array(pattern: re.Pattern, text: str) -> Optional[List[str]]:
    """Parse a complete ``[...]`` literal for ``pattern``; None when absent or invalid."""
    match = pattern.search(text)
    if not match:
        return None
    try:
        items = json.loads(f"[{match.group(1)}]")
    except (ValueError, RecursionError):
        return None
    return [str(item) for item in items if item is not None]


def _parse_summary(text: str) -> Optional[str]:
    match = _SUMMARY.search(text)
    if not match:
        return None
    literal = match.group(1)
    try:
        value = json.loads(literal)
    except ValueError:
        # Closed but with an invalid escape; keep the raw interior
        return literal[1:-1]
    return str(value)


def _extract_category(body: str) -> PartialCategory:
    category = PartialCategory()
    score = _SCORE.search(body)
    if score:
        category.score = int(score.group(1))
    category.issues = _parse_array(_ISSUES, body)
    category.suggestions = _parse_array(_SUGGESTIONS, body)
    return category


def extract_partial(accumulated: str) -> PartialAssessment:
    """
    Build a snapshot of everything already complete in ``accumulated``.

    Never raises; text without any ``{`` yields an empty snapshot.
    """
    snapshot = PartialAssessment()
    start = accumulated.find("{")
    if start == -1:
        return snapshot
    partial = accumulated[start:]

    score = _OVERALL_SCORE.search(partial)
    if score:
        snapshot.overall_score = int(score.group(1))

    snapshot.summary = _parse_summary(partial)

    for name, pattern in _CATEGORY_PATTERNS.items():
        match = pattern.search(partial)
        if match:
            snapshot.categories[name] = _extract_category(match.group(1))

    snapshot.critical_issues = _parse_array(_CRITICAL_ISSUES, partial)
    snapshot.best_practices_followed = _parse_array(_BEST_PRACTICES, partial)
    return snapshot


def partial_update(accumulated: str) -> Optional[PartialAssessment]:
    """Return a snapshot worth re-rendering, or None when nothing meaningful was found yet."""
    snapshot = extract_partial(accumulated)
    if not snapshot.has_content():
        return None
    logger.debug(
        "Partial snapshot: score=%s categories=%d summary=%s",
        snapshot.overall_score,
        len(snapshot.categories),
        snapshot.summary is not None,
    )
    return snapshot

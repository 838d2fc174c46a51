from __future__ import annotations
import logging
import re
from typing import List

from .categories import CATEGORY_KEYS
from .errors import FallbackExhausted
from .schemas import Assessment, CategoryAssessment

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
SUMMARY_PREVIEW_LENGTH = 200

DEGRADED_SUMMARY = "Partial result only, the AI response was malformed."
DEGRADED_CRITICAL_ISSUE = "Response format error, result may be incomplete"
DEGRADED_BEST_PRACTICE = "Re-run the evaluation for accurate results"

_DIGIT_RUN = re.compile(r"\d+")
_SUMMARY_MARKER = re.compile(r'"summary":\s*"([^"]*)', re.IGNORECASE)


def score_candidates(text: str) -> List[int]:
	"""Every digit run in ``text`` that reads as a 0-100 score, in order."""
	scores = []
	for run in _DIGIT_RUN.findall(text or ""):
		# Skip long runs before converting; they can never be in range
		if len(run.lstrip("0")) > 3:
			continue
		value = int(run)
		if 0 <= value <= 100:
			scores.append(value)
	return scores


def has_recoverable_data(text: str) -> bool:
	return bool(score_candidates(text))


def _summary_fragment(text: str) -> str:
	match = _SUMMARY_MARKER.search(text)
	if match and match.group(1):
		return match.group(1)[:SUMMARY_PREVIEW_LENGTH] + "..."
	return DEGRADED_SUMMARY


def synthesize_fallback(raw: str) -> Assessment:
	if not raw or not raw.strip():
		raise FallbackExhausted("no data to recover")
	logger.warning("Creating fallback evaluation from %d chars of raw response", len(raw))

	scores = score_candidates(raw)
	overall = scores[0] if scores else DEFAULT_SCORE
	remaining = iter(scores[1:])

	categories = {}
	for name in CATEGORY_KEYS:
		score = next(remaining, overall)
		categories[name] = CategoryAssessment(
			score=score,
			issues=[f"Details for {name} unavailable"],
			suggestions=[f"Re-run evaluation for {name} advice"],
		)

	return Assessment(
		overall_score=overall,
		summary=_summary_fragment(raw),
		categories=categories,
		critical_issues=[DEGRADED_CRITICAL_ISSUE],
		best_practices_followed=[DEGRADED_BEST_PRACTICE],
		degraded=True,
	)

from __future__ import annotations
import re
from typing import Any, Iterable, List

from .schemas import Assessment, CategoryAssessment

MAX_TEXT_LENGTH = 50
MAX_TOP_LEVEL_ITEMS = 3
MAX_CATEGORY_ITEMS = 2

_UNSAFE_CHARS = re.compile(r"[^\w\s.,!?-]", re.ASCII)


def clean_text(value: Any) -> str:
    """Make a free-text value safe for transport and display."""
    text = "" if value is None else str(value)
    text = text.replace('"', "").replace("\\", "")
    text = text.replace("\n", " ").replace("\r", " ").replace("\t", " ")
    text = _UNSAFE_CHARS.sub("", text)
    # Trimming again after the cut keeps the function idempotent
    return text.strip()[:MAX_TEXT_LENGTH].strip()


def _clean_list(items: Iterable[Any], limit: int) -> List[str]:
    return [clean_text(item) for item in list(items or [])[:limit]]


def sanitize_assessment(assessment: Assessment) -> Assessment:
    categories = {
        key: CategoryAssessment(
            score=category.score,
            issues=_clean_list(category.issues, MAX_CATEGORY_ITEMS),
            suggestions=_clean_list(category.suggestions, MAX_CATEGORY_ITEMS),
        )
        for key, category in assessment.categories.items()
    }
    return assessment.model_copy(
        update={
            "summary": clean_text(assessment.summary),
            "critical_issues": _clean_list(assessment.critical_issues, MAX_TOP_LEVEL_ITEMS),
            "best_practices_followed": _clean_list(assessment.best_practices_followed, MAX_TOP_LEVEL_ITEMS),
            "categories": categories,
        }
    )

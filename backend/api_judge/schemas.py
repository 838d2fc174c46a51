from __future__ import annotations
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .categories import CATEGORY_KEYS


def _as_str_list(value: Any) -> Any:
	if value is None:
		return []
	if isinstance(value, (list, tuple)):
		return [str(v) for v in value if v is not None]
	return value


def _as_int(value: Any) -> Any:
	# Models sometimes emit 85.0 or "85"
	if isinstance(value, float) and math.isfinite(value):
		return int(round(value))
	if isinstance(value, str) and value.strip().lstrip("-").isdigit():
		return int(value.strip())
	return value


class CategoryAssessment(BaseModel):
	score: int
	issues: List[str] = Field(default_factory=list)
	suggestions: List[str] = Field(default_factory=list)

	@field_validator("score", mode="before")
	@classmethod
	def coerce_score(cls, value: Any) -> Any:
		return _as_int(value)

	@field_validator("issues", "suggestions", mode="before")
	@classmethod
	def coerce_lists(cls, value: Any) -> Any:
		return _as_str_list(value)


class Assessment(BaseModel):
	overall_score: int
	summary: str
	categories: Dict[str, CategoryAssessment]
	critical_issues: List[str] = Field(default_factory=list)
	best_practices_followed: List[str] = Field(default_factory=list)
	# True when synthesized from raw text instead of parsed JSON
	degraded: bool = False

	@field_validator("overall_score", mode="before")
	@classmethod
	def coerce_score(cls, value: Any) -> Any:
		return _as_int(value)

	@field_validator("critical_issues", "best_practices_followed", mode="before")
	@classmethod
	def coerce_lists(cls, value: Any) -> Any:
		return _as_str_list(value)

	@field_validator("summary", mode="before")
	@classmethod
	def coerce_summary(cls, value: Any) -> Any:
		if isinstance(value, (int, float)) and not isinstance(value, bool):
			return str(value)
		return value

	@field_validator("categories", mode="before")
	@classmethod
	def known_categories(cls, value: Any) -> Any:
		if isinstance(value, dict):
			return {k: v for k, v in value.items() if k in CATEGORY_KEYS}
		return value


class PartialCategory(BaseModel):
	score: Optional[int] = None
	issues: Optional[List[str]] = None
	suggestions: Optional[List[str]] = None


class PartialAssessment(BaseModel):
	"""In-progress snapshot; every field may still be missing."""

	overall_score: Optional[int] = None
	summary: Optional[str] = None
	categories: Dict[str, PartialCategory] = Field(default_factory=dict)
	critical_issues: Optional[List[str]] = None
	best_practices_followed: Optional[List[str]] = None

	def has_content(self) -> bool:
		return bool(self.categories) or self.overall_score is not None or self.summary is not None


class EvaluateRequest(BaseModel):
	# Raw text or an already-decoded document
	swagger: Any = None

from __future__ import annotations
from typing import Dict, Mapping, Optional, Tuple

# Fixed, closed set of assessment categories (stable order)
CATEGORY_KEYS: Tuple[str, ...] = (
	"resource_design",
	"http_methods",
	"status_codes",
	"naming_conventions",
	"request_response",
	"versioning",
	"documentation",
)

DEFAULT_CATEGORY_LABELS: Dict[str, Dict[str, str]] = {
	"resource_design": {"label": "Resource Design", "icon": "🏗️"},
	"http_methods": {"label": "HTTP Methods", "icon": "🔧"},
	"status_codes": {"label": "Status Codes", "icon": "📊"},
	"naming_conventions": {"label": "Naming Conventions", "icon": "📝"},
	"request_response": {"label": "Request/Response", "icon": "🔄"},
	"versioning": {"label": "Versioning", "icon": "📋"},
	"documentation": {"label": "Documentation", "icon": "📚"},
}


def resolve_category_labels(overrides: Optional[Mapping[str, Mapping[str, str]]] = None) -> Dict[str, Dict[str, str]]:
	"""Merge configured label/icon overrides onto the defaults.

	Keys outside the recognized category set are ignored.
	"""
	resolved = {key: dict(value) for key, value in DEFAULT_CATEGORY_LABELS.items()}
	for key, value in (overrides or {}).items():
		if key not in resolved or not isinstance(value, Mapping):
			continue
		resolved[key].update({k: str(v) for k, v in value.items() if k in ("label", "icon")})
	return resolved

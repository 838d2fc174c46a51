from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from .categories import CATEGORY_KEYS

logger = logging.getLogger(__name__)

# Largest document forwarded to the model; longer input is clipped
MAX_DOCUMENT_CHARS = 200_000

DEFAULT_CONTEXT = """
# RESTful API review standards

Score each category from 0 to 100.

- resource_design: plural nouns for collections, nested resources no deeper than two levels, no verbs in paths.
- http_methods: GET reads, POST creates, PUT replaces, PATCH updates partially, DELETE removes; safe methods have no side effects.
- status_codes: 200/201/204 for success, 400/401/403/404/409/422 for client errors, 5xx only for server faults.
- naming_conventions: consistent casing for paths, parameters and fields; no abbreviations.
- request_response: consistent envelopes, pagination for collections, documented error bodies.
- versioning: explicit version in path or header, applied consistently.
- documentation: every operation has a summary, parameters and responses described, examples provided.

# Response format

{
  "overall_score": 85,
  "categories": {
    "resource_design": {"score": 90, "issues": ["Short issue"], "suggestions": ["Short suggestion"]},
    "http_methods": {"score": 80, "issues": [], "suggestions": []},
    "status_codes": {"score": 80, "issues": [], "suggestions": []},
    "naming_conventions": {"score": 80, "issues": [], "suggestions": []},
    "request_response": {"score": 80, "issues": [], "suggestions": []},
    "versioning": {"score": 80, "issues": [], "suggestions": []},
    "documentation": {"score": 80, "issues": [], "suggestions": []}
  },
  "summary": "Short overall summary",
  "critical_issues": ["Short critical issue"],
  "best_practices_followed": ["Short practice"]
}
""".strip()


def load_context(path: Optional[str]) -> str:
	"""Review standards from ``path`` when readable, otherwise the built-in text."""
	if not path:
		return DEFAULT_CONTEXT
	try:
		return Path(path).read_text(encoding="utf-8")
	except OSError as exc:
		logger.warning("Could not read review context %s (%s); using built-in standards", path, exc)
		return DEFAULT_CONTEXT


def build_evaluation_prompt(document: str, context: str = DEFAULT_CONTEXT) -> str:
	if len(document) > MAX_DOCUMENT_CHARS:
		document = document[:MAX_DOCUMENT_CHARS]
	categories = ", ".join(CATEGORY_KEYS)
	system_prompt = (
		"You are an expert API design reviewer.\n\n"
		f"Context and Standards to follow:\n{context}\n\n"
		"CRITICAL INSTRUCTIONS:\n"
		"1. Your response MUST be ONLY a valid JSON object - NO other text\n"
		"2. Do NOT use markdown code blocks\n"
		"3. Do NOT add any explanations before or after the JSON\n"
		"4. Follow EXACTLY the JSON format shown in the context above\n"
		"5. ALL text strings MUST be SHORT - maximum 50 characters each\n"
		"6. Use SIMPLE words only - no quotes, no special characters\n"
		f"7. categories MUST contain exactly these keys: {categories}\n"
		"8. Each category MUST have: score (integer 0-100), issues (array), suggestions (array)\n"
		"9. Arrays: maximum 2-3 items, each under 50 characters\n"
		"10. Summary: maximum 80 characters, simple sentence\n"
		"11. NO complex punctuation, NO newlines, NO escaped characters"
	)
	return (
		f"{system_prompt}\n\n"
		f"Here is the API specification to review:\n\n{document}\n\n"
		"RESPOND WITH ONLY THE VALID JSON OBJECT. USE SHORT SIMPLE TEXT ONLY. "
		"NO QUOTES IN TEXT VALUES. START WITH { AND END WITH }."
	)

from __future__ import annotations
import json
import logging
import httpx
from typing import Any, AsyncIterator, Dict, Optional
from .settings import settings

logger = logging.getLogger(__name__)


def extract_chunk_text(data: Dict[str, Any]) -> str:
	"""Concatenate the text parts of one streamed response chunk (thought parts skipped)."""
	try:
		parts = data["candidates"][0]["content"]["parts"]
	except (KeyError, IndexError, TypeError):
		return ""
	return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict) and not p.get("thought"))


def parse_sse_line(line: str) -> Optional[Dict[str, Any]]:
	line = line.strip()
	if not line.startswith("data:"):
		return None
	body = line[len("data:"):].strip()
	if not body or body == "[DONE]":
		return None
	try:
		data = json.loads(body)
	except ValueError:
		logger.warning("Skipping malformed stream event: %s", body[:200])
		return None
	return data if isinstance(data, dict) else None


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		http_client: Optional[httpx.AsyncClient] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:streamGenerateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:streamGenerateContent"
			self._auth_in_query = True
		self._client = http_client or httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)

	def generation_config(self) -> Dict[str, Any]:
		return {
			"temperature": settings.gemini_temperature,
			"maxOutputTokens": settings.gemini_max_output_tokens,
			"topP": settings.gemini_top_p,
			"topK": settings.gemini_top_k,
			"responseMimeType": "application/json",
		}

	async def stream_generate(self, prompt: str) -> AsyncIterator[str]:
		"""Yield response text fragments in arrival order.

		HTTP and network errors propagate to the caller mid-iteration.
		"""
		payload: Dict[str, Any] = {
			"contents": [{"role": "user", "parts": [{"text": prompt}]}],
			"generationConfig": self.generation_config(),
		}
		params: Dict[str, Any] = {"alt": "sse"}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		async with self._client.stream("POST", self.base_url, params=params, headers=headers, json=payload) as r:
			if r.status_code >= 400:
				await r.aread()
				logger.error("Gemini stream request failed (%s): %s", r.status_code, r.text[:500])
				r.raise_for_status()
			async for line in r.aiter_lines():
				data = parse_sse_line(line)
				if data is None:
					continue
				text = extract_chunk_text(data)
				if text:
					logger.debug("Streaming chunk: %s", text[:100])
					yield text

	async def aclose(self) -> None:
		await self._client.aclose()

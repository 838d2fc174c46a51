from __future__ import annotations
import json
import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from ..categories import CATEGORY_KEYS, resolve_category_labels
from ..gemini_client import GeminiClient
from ..pipeline import EvaluationPipeline, format_sse, status_event
from ..prompts import build_evaluation_prompt, load_context
from ..rate_limit import RateLimiter, client_identity, get_rate_limiter
from ..schemas import EvaluateRequest
from ..settings import settings
from .auth import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluate", tags=["evaluate"])

CONNECTING_MESSAGE = "Connecting to Gemini AI..."


def get_client_factory() -> Callable[[], GeminiClient]:
	return GeminiClient


def _document_text(swagger) -> str:
	if isinstance(swagger, str):
		return swagger
	return json.dumps(swagger, indent=2, ensure_ascii=False)


@router.post("")
async def evaluate(
	req: EvaluateRequest,
	request: Request,
	user: User = Depends(get_current_user),
	limiter: RateLimiter = Depends(get_rate_limiter),
	client_factory: Callable[[], GeminiClient] = Depends(get_client_factory),
):
	identity = client_identity(request)
	if not limiter.allow(identity):
		retry = int(limiter.retry_after(identity)) + 1
		raise HTTPException(
			status_code=429,
			detail="Only one API document can be evaluated per interval",
			headers={"Retry-After": str(retry)},
		)
	if not req.swagger:
		raise HTTPException(status_code=400, detail="An OpenAPI/Swagger document is required")
	if not settings.gemini_api_key:
		raise HTTPException(status_code=500, detail="GEMINI_API_KEY is not configured")

	document = _document_text(req.swagger)
	prompt = build_evaluation_prompt(document, load_context(settings.context_path))
	logger.info("Evaluation requested by %s (%d chars)", user.username, len(document))
	client = client_factory()

	async def _stream():
		try:
			yield format_sse(status_event(CONNECTING_MESSAGE))
			async for event in EvaluationPipeline().run(client.stream_generate(prompt)):
				yield format_sse(event)
		finally:
			await client.aclose()

	return StreamingResponse(
		_stream(),
		media_type="text/event-stream",
		headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
	)


@router.get("/categories")
def get_categories():
	labels = resolve_category_labels(settings.category_labels)
	return [{"key": key, **labels[key]} for key in CATEGORY_KEYS]

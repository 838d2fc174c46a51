from __future__ import annotations
import json
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterable, AsyncIterator, Dict

from .errors import ExtractionFailure, StreamInterrupted
from .finalizer import finalize_response
from .partial import partial_update
from .schemas import Assessment, PartialAssessment

logger = logging.getLogger(__name__)

RECEIVING_MESSAGE = "Receiving AI response..."
PARSING_MESSAGE = "Parsing evaluation result..."


def status_event(message: str) -> Dict[str, Any]:
	return {"type": "status", "message": message}


def chunk_event(text: str, accumulated: int) -> Dict[str, Any]:
	return {"type": "chunk", "text": text, "accumulated": accumulated}


def partial_event(snapshot: PartialAssessment) -> Dict[str, Any]:
	return {"type": "partial", "partial": snapshot.model_dump(exclude_none=True)}


def complete_event(assessment: Assessment) -> Dict[str, Any]:
	return {
		"type": "complete",
		"evaluation": assessment.model_dump(),
		"timestamp": datetime.now(timezone.utc).isoformat(),
	}


def error_event(failure: ExtractionFailure) -> Dict[str, Any]:
	return {"type": "error", "kind": failure.kind, "message": failure.message}


def format_sse(event: Dict[str, Any]) -> str:
	return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


class EvaluationPipeline:
	"""Drives one request: consumes model fragments in order and yields progress events.

	Exactly one terminal event (``complete`` or ``error``) ends the sequence.
	The accumulated buffer belongs to this instance only.
	"""

	def __init__(self) -> None:
		self.accumulated = ""

	async def run(self, fragments: AsyncIterable[str]) -> AsyncIterator[Dict[str, Any]]:
		yield status_event(RECEIVING_MESSAGE)
		try:
			async for fragment in fragments:
				if not fragment:
					continue
				self.accumulated += fragment
				yield chunk_event(fragment, len(self.accumulated))
				snapshot = partial_update(self.accumulated)
				if snapshot is not None:
					yield partial_event(snapshot)
		except Exception as exc:
			# Abnormal upstream termination: never finalize a partial response
			logger.error("Model stream failed after %d chars: %s", len(self.accumulated), exc)
			yield error_event(StreamInterrupted(str(exc) or exc.__class__.__name__))
			return

		logger.info("Full response received, length: %d", len(self.accumulated))
		logger.debug("Full response (first 500 chars): %s", self.accumulated[:500])
		yield status_event(PARSING_MESSAGE)
		try:
			assessment = finalize_response(self.accumulated)
		except ExtractionFailure as failure:
			logger.error("Evaluation extraction failed: %s", failure)
			yield error_event(failure)
			return
		if assessment.degraded:
			logger.warning("Returning degraded evaluation synthesized from raw text")
		yield complete_event(assessment)

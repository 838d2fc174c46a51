from __future__ import annotations
import time
from typing import Callable, Dict

from fastapi import Request


class RateLimiter:
	"""Per-identity minimum interval between requests.

	Owned by the application (``app.state.rate_limiter``) and handed to routes
	through ``get_rate_limiter`` so tests and deployments can swap it.
	"""

	def __init__(self, min_interval_seconds: float = 0, *, clock: Callable[[], float] = time.monotonic) -> None:
		self.min_interval_seconds = max(0.0, float(min_interval_seconds))
		self._clock = clock
		self._last_request: Dict[str, float] = {}

	def retry_after(self, identity: str) -> float:
		last = self._last_request.get(identity)
		if last is None:
			return 0.0
		return max(0.0, self.min_interval_seconds - (self._clock() - last))

	def allow(self, identity: str) -> bool:
		"""Record a request for ``identity``; False when it came too soon (not recorded)."""
		if not self.min_interval_seconds:
			return True
		if self.retry_after(identity) > 0:
			return False
		now = self._clock()
		self._prune(now)
		self._last_request[identity] = now
		return True

	def _prune(self, now: float) -> None:
		# Entries past the interval no longer throttle anything
		expired = [key for key, last in self._last_request.items() if now - last >= self.min_interval_seconds]
		for key in expired:
			del self._last_request[key]

	def __len__(self) -> int:
		return len(self._last_request)


def client_identity(request: Request) -> str:
	forwarded = request.headers.get("x-forwarded-for")
	if forwarded:
		return forwarded.split(",")[0].strip()
	if request.client is not None:
		return request.client.host
	return "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
	return request.app.state.rate_limiter

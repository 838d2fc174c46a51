import logging

from fastapi import FastAPI

from .rate_limit import RateLimiter
from .settings import settings
from .routers import auth
from .routers import evaluate

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="API Judge")
app.include_router(auth.router)
app.include_router(evaluate.router)

# Shared by all requests; replace via dependency override in tests
app.state.rate_limiter = RateLimiter(settings.rate_limit_seconds)

@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}

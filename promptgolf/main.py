"""
Prompt Golf - Main FastAPI Application

Prompt-writing challenges scored by an LLM judge.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from . import __version__
from .api import admin_router, challenges_router, progress_router, scoring_router
from .challenges import challenge_registry
from .config import LOG_LEVEL
from .db import SessionLocal, init_db
from .errors import (
    ChallengeError,
    JudgeError,
    NotFoundError,
    PromptGolfError,
    RetryLimitError,
    ValidationError,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="Prompt Golf",
    description="Prompt-writing challenges scored by an LLM judge against per-challenge rubrics.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS - allow all for API access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_timing_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{time.time() - start_time:.3f}s"
    return response


# ============ Exception handlers ============

def status_for(exc: PromptGolfError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RetryLimitError):
        return 429
    if isinstance(exc, JudgeError):
        return 502
    if isinstance(exc, (ValidationError, ChallengeError)):
        return 400
    return 500


def error_body(error_code: str, message: str, details=None) -> dict:
    body = {"status": "error", "error_code": error_code, "message": message}
    if details:
        body["details"] = details
    return body


@app.exception_handler(PromptGolfError)
async def prompt_golf_exception_handler(request: Request, exc: PromptGolfError):
    details = dict(exc.details)
    if exc.violations:
        details["violations"] = exc.violations
    headers = None
    if isinstance(exc, RetryLimitError) and exc.retry_after_seconds is not None:
        details["retryAfterSeconds"] = exc.retry_after_seconds
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=status_for(exc),
        content=error_body(exc.error_code, exc.message, details),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    violations = [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body(ValidationError.error_code, "Invalid request", {"violations": violations}),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
    )


# Include routers
app.include_router(challenges_router)
app.include_router(scoring_router)
app.include_router(progress_router)
app.include_router(admin_router)


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Prompt Golf",
        "version": __version__,
        "description": "Prompt-writing challenges scored by an LLM judge",
        "docs": "/docs",
        "endpoints": {
            "challenges": "/challenges",
            "challenge": "/challenges/{id}",
            "score": "/score",
            "attempts": "/attempts",
            "progress": "/progress",
            "leaderboard": "/leaderboard",
        },
    }


# Health check
@app.get("/health")
async def health():
    """Health check endpoint for load balancers and monitoring."""
    health_status = {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "challenges": challenge_registry.size if challenge_registry.is_initialized else None,
    }

    # Check database connectivity
    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health_status["database"] = "connected"
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["database"] = f"error: {e}"

    return health_status


# Startup event
@app.on_event("startup")
async def startup():
    """Initialize database and load challenges on startup."""
    init_db()
    await challenge_registry.initialize()
    logger.info("Prompt Golf v%s started with %d challenges", __version__, challenge_registry.size)


# For direct running
if __name__ == "__main__":
    import uvicorn
    from .config import API_HOST, API_PORT

    uvicorn.run(app, host=API_HOST, port=API_PORT)

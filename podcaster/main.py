"""
FastAPI application entry point.

Configures middleware, lifespan events, and mounts all routers.
Run locally: uvicorn podcaster.main:app --reload
Production:  gunicorn podcaster.main:app -w 1 -k uvicorn.workers.UvicornWorker
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from podcaster.api.v1.routes import health, runs
from podcaster.core.config import get_settings
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger, setup_logging
from podcaster.core.security import limiter

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown events."""
    setup_logging(settings)
    logger.info(
        "app_starting",
        environment=settings.app_env,
        output_dir=settings.output_dir,
    )

    Path(settings.output_dir).mkdir(parents=True, exist_ok=True)

    yield

    logger.info("app_shutting_down")


app = FastAPI(
    title="HN Podcaster",
    description="Turns the current Hacker News front page into a narrated podcast episode",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.app_env != "production" else None,
    redoc_url="/redoc" if settings.app_env != "production" else None,
)

# ── Middleware ──────────────────────────────────────────────
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Rate limiting ──────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Pipeline errors raised while serving a request ──────────
@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    status_code = 503 if exc.kind is ErrorKind.CONFIGURATION else 500
    logger.error("request_failed", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "kind": exc.kind.value})


# ── Routes ─────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(runs.router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "service": "HN Podcaster",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/healthz/",
    }

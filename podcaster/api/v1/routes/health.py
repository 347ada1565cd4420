"""Health check endpoint: used by the host's healthcheck and monitoring."""

from __future__ import annotations

from fastapi import APIRouter

from podcaster.api.v1.deps import AppSettings
from podcaster.schemas.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/healthz/", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    return HealthResponse(status="healthy", environment=settings.app_env)

"""
Pydantic v2 schemas for API request/response validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── Pipeline trigger ────────────────────────────────────────
class TriggerRequest(BaseModel):
    story_count: int | None = Field(default=None, ge=1, le=50)
    improvement_iterations: int | None = Field(default=None, ge=0, le=10)
    skip_audio: bool | None = None


class TriggerResponse(BaseModel):
    run_id: str
    status: str = "started"
    message: str = "Podcast generation started in background"


# ── Run status ──────────────────────────────────────────────
class RunStatusResponse(BaseModel):
    run_id: str
    status: str  # "running" | "completed" | "failed"
    result: dict[str, Any] | None = None
    error: dict[str, Any] | None = None


# ── Health check ────────────────────────────────────────────
class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str

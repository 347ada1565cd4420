"""
Shared FastAPI dependencies for v1 API routes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends

from podcaster.agents.pipeline import PodcastPipeline
from podcaster.agents.state import PipelineResult
from podcaster.core.config import Settings, get_settings
from podcaster.core.security import verify_api_key
from podcaster.schemas.schemas import TriggerRequest
from podcaster.services.factory import open_services

PipelineRunner = Callable[[str, TriggerRequest], Awaitable[PipelineResult]]


def get_pipeline_runner(settings: Annotated[Settings, Depends(get_settings)]) -> PipelineRunner:
    """Runs one podcast generation with real services; overridden in tests."""

    async def run(run_id: str, request: TriggerRequest) -> PipelineResult:
        async with open_services(settings, skip_audio=request.skip_audio) as services:
            return await PodcastPipeline(services, settings).run(
                story_count=request.story_count,
                skip_audio=request.skip_audio,
                max_iterations=request.improvement_iterations,
                run_id=run_id,
            )

    return run


# Re-export for convenience in route files
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Runner = Annotated[PipelineRunner, Depends(get_pipeline_runner)]

"""
Pipeline orchestrator: one call per podcast run.

Runs the compiled graph, times it and turns the final state into an
immutable PipelineResult. Failures never produce a partial result: the
caller gets either a result or a PipelineError.
"""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from pathlib import Path

import structlog

from podcaster.agents.graph import build_graph
from podcaster.agents.state import PipelineResult, PodcastState
from podcaster.core.config import Settings
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger
from podcaster.services.factory import PipelineServices

logger = get_logger(__name__)


class PodcastPipeline:
    def __init__(self, services: PipelineServices, settings: Settings) -> None:
        self._settings = settings
        self._graph = build_graph(services, settings)

    async def run(
        self,
        *,
        story_count: int | None = None,
        output_dir: str | None = None,
        skip_audio: bool | None = None,
        max_iterations: int | None = None,
        run_id: str | None = None,
    ) -> PipelineResult:
        """Generate one episode. Unset options fall back to Settings."""
        started = time.perf_counter()
        run_id = run_id or str(uuid.uuid4())

        initial_state: PodcastState = {
            "run_id": run_id,
            "story_count": self._settings.story_count if story_count is None else story_count,
            "output_dir": output_dir or self._settings.output_dir,
            "skip_audio": self._settings.skip_audio if skip_audio is None else skip_audio,
            "max_iterations": (
                self._settings.improvement_iterations if max_iterations is None else max_iterations
            ),
            "current_step": "starting",
        }

        with structlog.contextvars.bound_contextvars(run_id=run_id):
            logger.info(
                "podcast_generation_started",
                story_count=initial_state["story_count"],
                max_iterations=initial_state["max_iterations"],
                skip_audio=initial_state["skip_audio"],
            )
            try:
                if initial_state["max_iterations"] < 0:
                    raise PipelineError(
                        ErrorKind.VALIDATION,
                        f"Improvement iterations must not be negative, got {initial_state['max_iterations']}",
                    )
                Path(initial_state["output_dir"]).mkdir(parents=True, exist_ok=True)
                final = await self._graph.ainvoke(initial_state)
            except Exception as e:
                error = PipelineError.wrap(e)
                logger.error("podcast_generation_failed", error=error.message, exc_info=error)
                raise error

            result = PipelineResult(
                transcript_path=final["transcript_path"],
                audio_path=final.get("audio_path", ""),
                story_count=len(final["stories"]),
                generated_at=datetime.now(UTC),
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
            logger.info(
                "podcast_generation_completed",
                duration_ms=result.duration_ms,
                transcript=result.transcript_path,
                audio=result.audio_path or None,
                stories=result.story_count,
            )
            return result

"""
Pipeline trigger and status endpoints.

POST /api/v1/runs/trigger: kick off a podcast run (background task)
GET  /api/v1/runs/{run_id}: poll run status
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from podcaster.api.v1.deps import AuthenticatedUser, PipelineRunner, Runner
from podcaster.core.errors import PipelineError
from podcaster.core.logging import get_logger
from podcaster.core.security import limiter
from podcaster.schemas.schemas import RunStatusResponse, TriggerRequest, TriggerResponse

router = APIRouter(prefix="/runs", tags=["runs"])
logger = get_logger(__name__)

# In-memory run status tracker, scoped to this process
MAX_TRACKED_RUNS = 200
_run_status: dict[str, dict] = {}


def _record_status(run_id: str, status: dict) -> None:
    """Store a run's status, evicting the oldest finished runs past MAX_TRACKED_RUNS."""
    _run_status[run_id] = status
    finished = [rid for rid, s in _run_status.items() if s["status"] != "running"]
    for rid in finished[: max(0, len(_run_status) - MAX_TRACKED_RUNS)]:
        del _run_status[rid]


async def execute_pipeline(run_id: str, body: TriggerRequest, runner: PipelineRunner) -> None:
    """Background task: run one podcast generation and record the outcome."""
    _record_status(run_id, {"status": "running"})
    try:
        result = await runner(run_id, body)
    except Exception as e:
        error = PipelineError.wrap(e)
        logger.error("pipeline_failed", run_id=run_id, **error.to_dict())
        _record_status(run_id, {"status": "failed", "error": error.to_dict()})
        return

    _record_status(run_id, {"status": "completed", "result": result.model_dump(mode="json")})
    logger.info("pipeline_completed", run_id=run_id)


@router.post("/trigger", response_model=TriggerResponse)
@limiter.limit("5/minute")
async def trigger_run(
    request: Request,
    background_tasks: BackgroundTasks,
    _api_key: AuthenticatedUser,
    runner: Runner,
    body: TriggerRequest | None = None,
) -> TriggerResponse:
    """Trigger a new podcast run. Returns immediately with a run_id for polling."""
    run_id = str(uuid.uuid4())
    background_tasks.add_task(execute_pipeline, run_id, body or TriggerRequest(), runner)
    logger.info("pipeline_triggered", run_id=run_id, trigger="manual")

    return TriggerResponse(run_id=run_id, status="started")


@router.get("/{run_id}", response_model=RunStatusResponse)
async def get_run_status(run_id: str, _api_key: AuthenticatedUser) -> RunStatusResponse:
    """Get the current status of a podcast run."""
    if run_id not in _run_status:
        raise HTTPException(status_code=404, detail=f"Run {run_id} not found")
    return RunStatusResponse(run_id=run_id, **_run_status[run_id])

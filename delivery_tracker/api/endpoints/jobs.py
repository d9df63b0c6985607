"""
Job listing and manual refresh endpoints.
"""
import time
from typing import List
from fastapi import APIRouter, Depends, Request

from delivery_tracker.api.deps import get_engine, get_job_state
from delivery_tracker.models.schemas import JobRecord, RefreshResponse
from delivery_tracker.services import JobState, ReconciliationEngine, list_jobs
from delivery_tracker.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/jobs",
    response_model=List[JobRecord],
    summary="List tracked jobs, newest appointment first"
)
def get_jobs(state: JobState = Depends(get_job_state)) -> List[JobRecord]:
    start_time = time.time()
    jobs = list_jobs(state)
    log_performance(
        operation="list_jobs",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"jobs": len(jobs)}
    )
    return jobs


@router.api_route(
    "/refresh",
    methods=["GET", "POST"],
    response_model=RefreshResponse,
    summary="Force an immediate reconciliation cycle"
)
async def trigger_refresh(
    request: Request,
    engine: ReconciliationEngine = Depends(get_engine)
) -> RefreshResponse:
    """Run a refresh and report how many jobs are now tracked.

    A failed order fetch is not an HTTP error: the response carries
    ``refreshed: 0`` and ``success: false`` and the stored jobs are unchanged.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.info("Manual refresh triggered", request_id=request_id)
    outcome = await engine.refresh()
    return RefreshResponse(
        refreshed=outcome.processed,
        success=outcome.success,
        error_code=outcome.error_code,
    )

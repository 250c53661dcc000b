"""
Scheduler API Routes

Internal endpoints for the system-automatic duplicate sweep: trigger a run
outside the schedule, preview what it would delete, read the last summary.
"""
from fastapi import APIRouter, Depends, HTTPException, Header

from ..config import INTERNAL_API_KEY
from ..services.cleanup import SweepScheduler
from ..services.errors import RepositoryUnavailable
from ..dependencies import get_sweep_scheduler


router = APIRouter(prefix="/internal", tags=["scheduler"])


# =============================================================================
# INTERNAL API KEY VALIDATION
# =============================================================================

async def verify_internal_key(x_internal_key: str = Header(...)):
    """Verify internal API key for scheduler endpoints."""
    if x_internal_key != INTERNAL_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid internal API key")
    return True


# =============================================================================
# SCHEDULER ENDPOINTS (SYSTEM-ONLY)
# =============================================================================

@router.post("/duplicate-sweep", response_model=dict)
async def run_duplicate_sweep(
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
    _: bool = Depends(verify_internal_key),
):
    """
    Run the duplicate sweep now.

    Shares the scheduler's guard: answers status "skipped" while a scheduled
    sweep is still running.
    """
    return await scheduler.run_once()


@router.get("/duplicate-sweep/preview", response_model=dict)
async def preview_duplicate_sweep(
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
    _: bool = Depends(verify_internal_key),
):
    """
    List the entries the next sweep would mark as deleted.

    Read-only - nothing is marked or removed.
    """
    try:
        return await scheduler.sweep.preview()
    except RepositoryUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/duplicate-sweep/last", response_model=dict)
async def get_last_sweep(
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
    _: bool = Depends(verify_internal_key),
):
    """Summary of the most recent sweep."""
    return {
        "running": scheduler.is_running,
        "interval_minutes": scheduler.interval.total_seconds() / 60,
        "last_result": scheduler.last_result,
    }

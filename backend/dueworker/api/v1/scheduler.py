"""
API endpoint that triggers one delivery tick.

Cloud schedulers call this with either GET or POST.  The endpoint only
relays the tick result: a tenant-listing failure becomes HTTP 500,
everything else (including per-tenant errors) is a 200 with the errors
listed in the body.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...config import settings
from ...schemas.scheduler import TickResponse
from ...use_cases.delivery.run_tick import RunTickUseCase
from ...wiring.bootstrap import build_tick_command, get_run_tick_use_case

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.api_route("/tick", methods=["GET", "POST"], response_model=TickResponse)
def run_tick(
    workers: Optional[int] = Query(None, ge=1, le=64, description="Tenants processed in parallel"),
    use_case: RunTickUseCase = Depends(get_run_tick_use_case),
):
    """
    Run one tenant-fair delivery tick and return its summary.

    Returns:
        TickResponse with:
        - processed_count: Items delivered and transitioned in this tick
        - errors: Per-tenant failures (fetch, deliver or transition stage)
        - conflicts: Items another tick transitioned first
    """
    cmd = build_tick_command(settings, max_workers=workers)
    logger.info("Received request to run delivery tick %s", cmd.correlation_id)

    result = use_case.execute(cmd)

    if not result.ok:
        logger.error("Tick %s: critical error: %s", cmd.correlation_id, result.fatal_error)
        raise HTTPException(
            status_code=500,
            detail=f"Critical error processing due items: {result.fatal_error}",
        )

    payload = result.to_dict()
    payload.pop("fatal_error", None)
    return TickResponse(message="Due item processing finished.", **payload)

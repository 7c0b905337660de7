"""
Celery task that runs one delivery tick.

The task is a thin trigger: it wires the use case, runs it, logs the
summary and returns ``TickResult.to_dict()`` as the task result.  A
fatal tenant-listing error is logged and reported in the payload rather
than raised, so Celery does not retry a tick -- the next scheduled one
is the retry.
"""
import logging
from typing import Optional

from ..celery_app import celery_app
from ..config import settings
from ..database import SessionLocal
from ..wiring.bootstrap import build_run_tick_use_case, build_tick_command

logger = logging.getLogger(__name__)


def run_tick_once(
    correlation_id: Optional[str] = None,
    max_workers: Optional[int] = None,
    delivery_timeout_seconds: Optional[float] = None,
) -> dict:
    """Build collaborators, run one tick and return its JSON-safe summary."""
    use_case = build_run_tick_use_case(settings, SessionLocal)
    cmd = build_tick_command(
        settings,
        max_workers=max_workers,
        delivery_timeout_seconds=delivery_timeout_seconds,
        correlation_id=correlation_id,
    )
    result = use_case.execute(cmd)

    if not result.ok:
        logger.error(
            "Delivery tick %s failed fatally: %s", cmd.correlation_id, result.fatal_error
        )
    else:
        logger.info(
            "Delivery tick %s: processed=%d errors=%d conflicts=%d",
            cmd.correlation_id,
            result.processed,
            result.failed,
            result.conflicts,
        )
    return result.to_dict()


@celery_app.task(bind=True, name='dueworker.tasks.delivery_tasks.run_delivery_tick')
def run_delivery_tick(
    self,
    max_workers: Optional[int] = None,
    delivery_timeout_seconds: Optional[float] = None,
):
    """
    Run one tenant-fair delivery tick.

    Args:
        max_workers: Override ``SCHEDULER_MAX_WORKERS`` for this tick
        delivery_timeout_seconds: Override ``DELIVERY_TIMEOUT_SECONDS`` for this tick

    Returns:
        Dict with processed_count, per-tenant errors and tick metadata
    """
    task_id = getattr(self.request, "id", None)
    return run_tick_once(
        correlation_id=task_id,
        max_workers=max_workers,
        delivery_timeout_seconds=delivery_timeout_seconds,
    )

"""
Celery configuration for background tick processing.

A beat entry triggers ``run_delivery_tick`` on a fixed interval.  Ticks
may overlap (a slow tick plus the next scheduled one); that is safe
because every state change goes through the store's conditional update,
so no lock or ``worker_ready`` cleanup is needed.
"""
import logging
from datetime import timedelta

from celery import Celery

from .config import settings

# Create Celery application instance
celery_app = Celery(
    "dueworker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        'dueworker.tasks.delivery_tasks',
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone=settings.celery_timezone,
    enable_utc=True,
    task_track_started=True,  # Track when tasks start
    worker_prefetch_multiplier=1,  # Don't prefetch tasks
    broker_connection_retry_on_startup=True,  # Retry connecting to broker on startup
)

_logger = logging.getLogger(__name__)


@celery_app.on_after_configure.connect
def _log_schedule(sender, **kwargs):
    _logger.info("Celery timezone: %s (enable_utc=%s)", settings.celery_timezone, True)
    if not settings.scheduler_beat_enabled:
        _logger.warning("Periodic delivery tick disabled via SCHEDULER_BEAT_ENABLED=false")


# Task routing: ticks get their own queue so slow deliveries don't starve other work
# Run workers with: celery -A dueworker.celery_app worker -Q celery,delivery -c 2
celery_app.conf.task_routes = {
    'dueworker.tasks.delivery_tasks.run_delivery_tick': {'queue': 'delivery'},
}

# Optional: Configure result expiration
celery_app.conf.result_expires = 3600  # Tick summaries expire after 1 hour


def build_beat_schedule(interval_seconds: int) -> dict:
    """Return the Celery Beat schedule for the periodic tick."""
    return {
        'delivery-tick': {
            'task': 'dueworker.tasks.delivery_tasks.run_delivery_tick',
            'schedule': timedelta(seconds=interval_seconds),
            'options': {
                'queue': 'delivery',
                # A tick that sat in the queue past the next one is redundant.
                'expires': interval_seconds,
            },
        },
    }


# Celery Beat Schedule - Periodic Tasks
if settings.scheduler_beat_enabled:
    celery_app.conf.beat_schedule = build_beat_schedule(
        settings.scheduler_tick_interval_seconds
    )

"""Dependency injection bootstrap — the single place that binds ports to adapters.

Nothing here is cached at module level: each trigger (FastAPI lifespan,
Celery task, CLI script) builds its collaborators explicitly and passes
them down.  The FastAPI app keeps its instance on ``app.state`` and
exposes it through :func:`get_run_tick_use_case` for ``Depends()``.

Example usage in a router::

    from dueworker.wiring.bootstrap import get_run_tick_use_case

    @router.post("/scheduler/tick")
    def run_tick(
        use_case: RunTickUseCase = Depends(get_run_tick_use_case),
    ):
        result = use_case.execute(build_tick_command(settings))
"""

from __future__ import annotations

import uuid

from fastapi import Request
from sqlalchemy.orm import sessionmaker

from dueworker.config.settings import Settings
from dueworker.domain.delivery.ports import Clock, DeliveryExecutor, DueItemStore
from dueworker.infra.clock import SystemClock
from dueworker.infra.db.repositories.due_item_store import SqlDueItemStore
from dueworker.infra.delivery.logging_executor import LoggingDeliveryExecutor
from dueworker.use_cases.delivery.run_tick import RunTickCommand, RunTickUseCase


# ── Adapters ─────────────────────────────────────────────────────────────


def build_store(session_factory: sessionmaker) -> DueItemStore:
    """Build the SQL-backed store over *session_factory*."""
    return SqlDueItemStore(session_factory)


def build_delivery_executor(settings: Settings) -> DeliveryExecutor:
    """Pick the delivery executor named by ``settings.delivery_backend``."""
    if settings.delivery_backend == "log":
        return LoggingDeliveryExecutor(
            simulated_latency_seconds=settings.delivery_simulated_latency_seconds
        )
    raise ValueError(f"Unsupported delivery backend: {settings.delivery_backend!r}")


def build_clock() -> Clock:
    return SystemClock()


# ── Use Cases ────────────────────────────────────────────────────────────


def build_run_tick_use_case(
    settings: Settings,
    session_factory: sessionmaker,
) -> RunTickUseCase:
    """Build a RunTickUseCase wired with infrastructure adapters."""
    return RunTickUseCase(
        store=build_store(session_factory),
        executor=build_delivery_executor(settings),
        clock=build_clock(),
    )


def build_tick_command(
    settings: Settings,
    *,
    max_workers: int | None = None,
    delivery_timeout_seconds: float | None = None,
    deadline_seconds: float | None = None,
    correlation_id: str | None = None,
) -> RunTickCommand:
    """Build a RunTickCommand from settings, with per-trigger overrides."""
    return RunTickCommand(
        max_workers=(
            max_workers if max_workers is not None else settings.scheduler_max_workers
        ),
        delivery_timeout_seconds=(
            delivery_timeout_seconds
            if delivery_timeout_seconds is not None
            else settings.delivery_timeout_seconds
        ),
        deadline_seconds=(
            deadline_seconds if deadline_seconds is not None else settings.tick_deadline_seconds
        ),
        correlation_id=correlation_id or uuid.uuid4().hex[:12],
    )


# ── FastAPI dependencies ─────────────────────────────────────────────────


def get_run_tick_use_case(request: Request) -> RunTickUseCase:
    """Return the use case built during application startup.

    Designed for FastAPI Depends()::

        use_case: RunTickUseCase = Depends(get_run_tick_use_case)
    """
    return request.app.state.run_tick_use_case

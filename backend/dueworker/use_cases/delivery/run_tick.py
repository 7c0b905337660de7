"""RunTickUseCase — one tenant-fair selection-and-delivery pass.

This use case contains the business rules for a scheduler tick:
  1. List tenants holding at least one pending item (fatal on failure)
  2. Per tenant: fetch the top due item
  3. Send it through the DeliveryExecutor port, bounded by a timeout
  4. Conditionally mark it delivered (conflicts are benign skips)
  5. Check the CancellationToken before visiting each tenant
  6. Aggregate processed count and per-tenant errors

Each tenant contributes at most one item per tick.  Per-tenant work runs
sequentially or over a bounded thread pool; concurrency is across
tenants only and no lock is taken -- the conditional update is the sole
guard against overlapping ticks.

Delivery is at-least-once: if the process dies after a send succeeds
but before the transition commits, the item is re-sent on a later tick.

The use case depends ONLY on domain ports, never on SQLAlchemy, Celery,
or any other infrastructure.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from dueworker.domain.delivery.errors import (
    DeliveryError,
    DeliveryTimeoutError,
    FatalListError,
    FetchError,
    TransitionError,
)
from dueworker.domain.delivery.models import Item, TenantError, TickResult, TickStage
from dueworker.domain.delivery.ports import (
    CancellationToken,
    Clock,
    DeadlineCancellationToken,
    DeliveryExecutor,
    DueItemStore,
    NeverCancelledToken,
)

from .due_item_fetcher import DueItemFetcher
from .state_transitioner import StateTransitioner
from .tenant_selector import TenantSelector

logger = logging.getLogger(__name__)


# ── Command (input) ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class RunTickCommand:
    """Immutable value object describing how to run one tick."""

    max_workers: int = 1
    delivery_timeout_seconds: float = 30.0
    deadline_seconds: float | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.delivery_timeout_seconds <= 0:
            raise ValueError("delivery_timeout_seconds must be > 0")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be > 0")


# ── Per-tenant outcome ───────────────────────────────────────────────────


class _Outcome(str, Enum):
    PROCESSED = "processed"
    EMPTY = "empty"
    CONFLICT = "conflict"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class _TenantOutcome:
    tenant_id: str
    kind: _Outcome
    error: TenantError | None = None


# ── Use Case ─────────────────────────────────────────────────────────────


class RunTickUseCase:
    """Select tenants → fetch → deliver → transition → aggregate.

    The constructor accepts collaborators through ports.  ``execute()``
    may be called repeatedly and from overlapping triggers.
    """

    def __init__(
        self,
        store: DueItemStore,
        executor: DeliveryExecutor,
        clock: Clock,
    ) -> None:
        self._selector = TenantSelector(store)
        self._fetcher = DueItemFetcher(store)
        self._transitioner = StateTransitioner(store)
        self._executor = executor
        self._clock = clock

    def execute(
        self,
        cmd: RunTickCommand,
        cancel: CancellationToken | None = None,
    ) -> TickResult:
        """Run one tick and return its aggregate result.

        Only a tenant-listing failure is fatal; it is reported through
        ``TickResult.fatal_error`` rather than raised.
        """
        cancel = cancel or NeverCancelledToken()
        if cmd.deadline_seconds is not None:
            cancel = DeadlineCancellationToken(cmd.deadline_seconds, parent=cancel)

        tag = cmd.correlation_id or "-"
        started_at = self._clock.now()

        # ── Tenant universe ───────────────────────────────────────
        try:
            tenants = self._selector.list_tenants_with_due_items()
        except FatalListError as exc:
            logger.error("Tick %s aborted: %s", tag, exc, exc_info=True)
            return TickResult(
                processed=0,
                fatal_error=exc,
                started_at=started_at,
                finished_at=self._clock.now(),
                correlation_id=cmd.correlation_id,
            )

        if not tenants:
            logger.info("Tick %s: no tenants with due items", tag)
            return TickResult(
                processed=0,
                started_at=started_at,
                finished_at=self._clock.now(),
                correlation_id=cmd.correlation_id,
            )

        logger.info(
            "Tick %s: %d tenant(s) with due items (workers=%d)",
            tag,
            len(tenants),
            cmd.max_workers,
        )

        # ── Per-tenant work ───────────────────────────────────────
        if cmd.max_workers == 1:
            outcomes = self._run_sequential(tenants, cmd, cancel)
        else:
            outcomes = self._run_parallel(tenants, cmd, cancel)

        return self._aggregate(tenants, outcomes, cmd, started_at)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run_sequential(
        self,
        tenants: list[str],
        cmd: RunTickCommand,
        cancel: CancellationToken,
    ) -> list[_TenantOutcome]:
        outcomes: list[_TenantOutcome] = []
        for index, tenant_id in enumerate(tenants):
            if cancel.is_cancelled():
                outcomes.extend(
                    _TenantOutcome(t, _Outcome.SKIPPED) for t in tenants[index:]
                )
                break
            outcomes.append(self._process_tenant(tenant_id, cmd))
        return outcomes

    def _run_parallel(
        self,
        tenants: list[str],
        cmd: RunTickCommand,
        cancel: CancellationToken,
    ) -> list[_TenantOutcome]:
        def work(tenant_id: str) -> _TenantOutcome:
            if cancel.is_cancelled():
                return _TenantOutcome(tenant_id, _Outcome.SKIPPED)
            return self._process_tenant(tenant_id, cmd)

        with ThreadPoolExecutor(
            max_workers=cmd.max_workers, thread_name_prefix="dueworker-tenant"
        ) as pool:
            # map() preserves listing order in the returned outcomes.
            return list(pool.map(work, tenants))

    def _process_tenant(
        self,
        tenant_id: str,
        cmd: RunTickCommand,
    ) -> _TenantOutcome:
        # a. fetch
        try:
            item = self._fetcher.fetch_top_due_item(tenant_id)
        except FetchError as exc:
            return self._failed(tenant_id, TickStage.FETCH, exc)

        if item is None:
            logger.info("Tenant %s: no due item found (consumed since listing)", tenant_id)
            return _TenantOutcome(tenant_id, _Outcome.EMPTY)

        # b. deliver
        try:
            self._send(item, tenant_id, cmd.delivery_timeout_seconds)
        except DeliveryError as exc:
            return self._failed(tenant_id, TickStage.DELIVER, exc, item.id)

        # c. transition
        try:
            result = self._transitioner.mark_delivered(
                item.id, self._clock.now(), tenant_id=tenant_id
            )
        except TransitionError as exc:
            return self._failed(tenant_id, TickStage.TRANSITION, exc, item.id)
        except Exception as exc:
            # clock failure: still confined to this tenant
            error = TransitionError(
                tenant_id,
                f"failed to mark item {item.id} delivered: {exc}",
                item_id=item.id,
            )
            return self._failed(tenant_id, TickStage.TRANSITION, error, item.id)

        if result.conflict:
            return _TenantOutcome(tenant_id, _Outcome.CONFLICT)

        updated = result.item
        logger.info(
            "Tenant %s: delivered item %s (delivery_count=%s, last_delivered_at=%s)",
            tenant_id,
            item.id,
            updated.delivery_count if updated else "?",
            updated.last_delivered_at.isoformat()
            if updated and updated.last_delivered_at
            else "?",
        )
        return _TenantOutcome(tenant_id, _Outcome.PROCESSED)

    def _send(self, item: Item, tenant_id: str, timeout: float) -> None:
        """Run the executor on its own daemon thread and wait at most *timeout*.

        An attempt that overruns its budget is abandoned, not interrupted.
        Its thread is a daemon so it never holds up later tenants or keeps
        the process alive at exit.
        """
        failures: list[Exception] = []

        def attempt() -> None:
            try:
                self._executor.send(item)
            except Exception as exc:
                failures.append(exc)

        worker = threading.Thread(
            target=attempt, name=f"dueworker-send-{item.id}", daemon=True
        )
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            raise DeliveryTimeoutError(
                tenant_id,
                f"delivery of item {item.id} timed out after {timeout:g}s",
                item_id=item.id,
            )
        if failures:
            exc = failures[0]
            if isinstance(exc, DeliveryError):
                raise exc
            raise DeliveryError(
                tenant_id,
                f"delivery of item {item.id} failed: {exc}",
                item_id=item.id,
            ) from exc

    @staticmethod
    def _failed(
        tenant_id: str,
        stage: TickStage,
        exc: Exception,
        item_id: str | None = None,
    ) -> _TenantOutcome:
        logger.warning(
            "Tenant %s: %s failed%s: %s",
            tenant_id,
            stage.value,
            f" for item {item_id}" if item_id else "",
            exc,
            exc_info=True,
        )
        return _TenantOutcome(
            tenant_id,
            _Outcome.FAILED,
            TenantError(tenant_id=tenant_id, stage=stage, error=exc, item_id=item_id),
        )

    def _aggregate(
        self,
        tenants: list[str],
        outcomes: list[_TenantOutcome],
        cmd: RunTickCommand,
        started_at: datetime,
    ) -> TickResult:
        processed = sum(1 for o in outcomes if o.kind == _Outcome.PROCESSED)
        conflicts = sum(1 for o in outcomes if o.kind == _Outcome.CONFLICT)
        errors = tuple(
            sorted(
                (o.error for o in outcomes if o.error is not None),
                key=lambda e: e.tenant_id,
            )
        )
        skipped = tuple(o.tenant_id for o in outcomes if o.kind == _Outcome.SKIPPED)

        tag = cmd.correlation_id or "-"
        if skipped:
            logger.info(
                "Tick %s cancelled: %d tenant(s) not visited", tag, len(skipped)
            )
        logger.info(
            "Tick %s finished: %d processed, %d error(s), %d conflict(s) across %d tenant(s)",
            tag,
            processed,
            len(errors),
            conflicts,
            len(tenants),
        )
        if errors:
            logger.warning(
                "Tick %s: non-fatal errors for tenant(s) %s",
                tag,
                ", ".join(e.tenant_id for e in errors),
            )

        return TickResult(
            processed=processed,
            errors=errors,
            tenants_seen=len(tenants),
            conflicts=conflicts,
            skipped_tenants=skipped,
            started_at=started_at,
            finished_at=self._clock.now(),
            correlation_id=cmd.correlation_id,
        )

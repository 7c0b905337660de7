"""Ports (abstract interfaces) for the delivery domain.

These define WHAT the scheduler needs from the outside world without
specifying HOW it's provided.  Concrete implementations live in infra/.

Note: No infrastructure types (Session, Engine, Celery) appear here.
A store owns its own connection handling so that worker threads never
share a session.
"""

from __future__ import annotations

import abc
import time
from datetime import datetime
from typing import Callable

from .models import Item, TransitionResult


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class DueItemStore(abc.ABC):
    """Persistence boundary for schedulable items."""

    @abc.abstractmethod
    def list_tenants_with_due_items(self) -> list[str]:
        """Return distinct tenant ids owning at least one pending item.

        Must be ordered ascending so repeated calls without intervening
        mutation return the same sequence.  Items without a tenant are
        never reported.
        """
        ...

    @abc.abstractmethod
    def fetch_top_due_items(self, tenant_id: str, limit: int = 1) -> list[Item]:
        """Return up to *limit* pending items for *tenant_id*.

        Ordered by priority DESC, created_at ASC, id ASC.  An empty list
        is a normal answer (another run may have consumed the item).
        """
        ...

    @abc.abstractmethod
    def mark_delivered(self, item_id: str, at: datetime) -> TransitionResult:
        """Conditionally move *item_id* from pending to delivered.

        Atomically sets ``status=delivered``, ``last_delivered_at=at`` and
        increments ``delivery_count`` -- but only if the item is still
        pending at the moment of the write.  Otherwise returns a
        CONFLICT result and writes nothing.
        """
        ...

    @abc.abstractmethod
    def get(self, item_id: str) -> Item | None:
        """Return a single item by id, or None."""
        ...


# ---------------------------------------------------------------------------
# Infrastructure services
# ---------------------------------------------------------------------------


class DeliveryExecutor(abc.ABC):
    """Perform the side-effecting send for one item (channel, webhook, log, …)."""

    @abc.abstractmethod
    def send(self, item: Item) -> None:
        """Deliver *item*.  Raise on failure."""
        ...


class Clock(abc.ABC):
    """Supply the current time.  Injected so tests stay deterministic."""

    @abc.abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...


# ---------------------------------------------------------------------------
# Workflow collaborators
# ---------------------------------------------------------------------------


class CancellationToken(abc.ABC):
    """Check whether the current tick has been requested to stop."""

    @abc.abstractmethod
    def is_cancelled(self) -> bool:
        ...


class NeverCancelledToken(CancellationToken):
    """Token that never cancels, for CLI scripts and tests."""

    def is_cancelled(self) -> bool:
        return False


class DeadlineCancellationToken(CancellationToken):
    """Cancel once *seconds* have elapsed, or when *parent* cancels.

    Measured on a monotonic clock so wall-clock adjustments can't
    stretch or shrink a tick's budget.
    """

    def __init__(
        self,
        seconds: float,
        parent: CancellationToken | None = None,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if seconds <= 0:
            raise ValueError("seconds must be > 0")
        self._monotonic = monotonic
        self._deadline = monotonic() + seconds
        self._parent = parent or NeverCancelledToken()

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._monotonic())

    def is_cancelled(self) -> bool:
        if self._parent.is_cancelled():
            return True
        return self._monotonic() >= self._deadline


__all__ = [
    "DueItemStore",
    "DeliveryExecutor",
    "Clock",
    "CancellationToken",
    "NeverCancelledToken",
    "DeadlineCancellationToken",
]

"""Domain models for the delivery bounded context.

Pure value objects and enums that describe schedulable items and the
outcome of a scheduler tick, independently of any infrastructure.
All dataclasses use frozen=True for immutability.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_PRIORITY = 0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ItemStatus(str, Enum):
    """Lifecycle states of a schedulable item.

    The scheduler only ever performs PENDING -> DELIVERED.  Every other
    edge belongs to external mutators.
    """

    PENDING = "pending"
    DELIVERED = "delivered"
    ARCHIVED = "archived"
    DEFERRED = "deferred"


class TransitionOutcome(str, Enum):
    """Result of a conditional pending -> delivered update."""

    APPLIED = "applied"
    CONFLICT = "conflict"  # precondition no longer held; nothing written


class TickStage(str, Enum):
    """Per-tenant step at which a tick recorded a failure."""

    FETCH = "fetch"
    DELIVER = "deliver"
    TRANSITION = "transition"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Item:
    """One schedulable unit of work.

    ``topic``, ``url`` and ``notes`` are opaque payload handed to the
    delivery executor; the scheduler never inspects them.
    """

    id: str
    tenant_id: str | None
    created_at: datetime
    priority: int = DEFAULT_PRIORITY
    status: ItemStatus = ItemStatus.PENDING
    last_delivered_at: datetime | None = None
    delivery_count: int = 0
    topic: str = ""
    url: str = ""
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.delivery_count < 0:
            raise ValueError(
                f"delivery_count must be >= 0, got {self.delivery_count}"
            )
        # last_delivered_at is set exactly when the item was delivered at least once
        if (self.last_delivered_at is None) != (self.delivery_count == 0):
            raise ValueError(
                "last_delivered_at must be set if and only if delivery_count > 0 "
                f"(delivery_count={self.delivery_count}, "
                f"last_delivered_at={self.last_delivered_at})"
            )

    @property
    def is_pending(self) -> bool:
        return self.status == ItemStatus.PENDING


def selection_key(item: Item) -> tuple[int, datetime, str]:
    """Sort key for picking a tenant's next item.

    Orders by priority descending, then oldest first, then id so that
    remaining ties resolve the same way on every run.
    """
    return (-item.priority, item.created_at, item.id)


@dataclass(frozen=True)
class TransitionResult:
    """What a conditional ``mark_delivered`` reports back."""

    outcome: TransitionOutcome
    item: Item | None = None

    @property
    def applied(self) -> bool:
        return self.outcome == TransitionOutcome.APPLIED

    @property
    def conflict(self) -> bool:
        return self.outcome == TransitionOutcome.CONFLICT

    @classmethod
    def applied_with(cls, item: Item) -> TransitionResult:
        return cls(outcome=TransitionOutcome.APPLIED, item=item)

    @classmethod
    def conflicted(cls) -> TransitionResult:
        return cls(outcome=TransitionOutcome.CONFLICT)


@dataclass(frozen=True)
class TenantError:
    """A non-fatal failure attributed to one tenant during a tick."""

    tenant_id: str
    stage: TickStage
    error: Exception
    item_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "stage": self.stage.value,
            "item_id": self.item_id,
            "error_type": type(self.error).__name__,
            "error": str(self.error),
        }


@dataclass(frozen=True)
class TickResult:
    """Aggregate outcome of one scheduler tick.

    ``fatal_error`` is set only when the tenant universe could not be
    listed; in that case nothing was processed or mutated.
    """

    processed: int
    errors: tuple[TenantError, ...] = ()
    fatal_error: Exception | None = None
    tenants_seen: int = 0
    conflicts: int = 0
    skipped_tenants: tuple[str, ...] = ()
    started_at: datetime | None = None
    finished_at: datetime | None = None
    correlation_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.fatal_error is None

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped_tenants)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation relayed by tasks and HTTP endpoints."""
        return {
            "processed_count": self.processed,
            "errors": [e.to_dict() for e in self.errors],
            "fatal_error": str(self.fatal_error) if self.fatal_error else None,
            "tenants_seen": self.tenants_seen,
            "conflicts": self.conflicts,
            "skipped_tenants": list(self.skipped_tenants),
            "cancelled": self.cancelled,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "correlation_id": self.correlation_id,
        }


__all__ = [
    "DEFAULT_PRIORITY",
    "ItemStatus",
    "TransitionOutcome",
    "TickStage",
    "Item",
    "selection_key",
    "TransitionResult",
    "TenantError",
    "TickResult",
]

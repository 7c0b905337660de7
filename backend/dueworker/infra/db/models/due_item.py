"""Due item ORM model.

One row per schedulable item.  The worker only ever flips
``pending -> delivered``; the other statuses are written by whatever
manages items (API, admin tooling, snooze jobs).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text

from dueworker.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DueItemRow(Base):
    """A queued item owned by one tenant."""

    __tablename__ = "due_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(64), nullable=True)  # NULL rows are never scheduled

    # Payload handed to the delivery executor
    topic = Column(Text, nullable=False, default="")
    url = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=True)

    # Scheduling
    priority = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending")

    # Delivery bookkeeping
    last_delivered_at = Column(DateTime(timezone=True), nullable=True)
    delivery_count = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'delivered', 'archived', 'deferred')",
            name="ck_due_items_status",
        ),
        CheckConstraint("delivery_count >= 0", name="ck_due_items_delivery_count"),
        Index("idx_due_items_tenant_status", "tenant_id", "status"),
        Index("idx_due_items_status_last_delivered", "status", "last_delivered_at"),
    )

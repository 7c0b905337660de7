"""SQLAlchemy implementation of DueItemStore.

Every operation runs in its own short-lived session so the store can be
shared by tenant worker threads and by overlapping ticks.  The
``pending -> delivered`` write is a single conditional UPDATE: whichever
tick commits first wins, every other one sees rowcount 0.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from dueworker.domain.delivery.models import Item, ItemStatus, TransitionResult
from dueworker.domain.delivery.ports import DueItemStore
from dueworker.infra.db.models.due_item import DueItemRow

logger = logging.getLogger(__name__)


def _aware(dt: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on read; stored values are always UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class SqlDueItemStore(DueItemStore):
    """Persist and transition due items via SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_tenants_with_due_items(self) -> list[str]:
        with self._session_factory() as session:
            rows = (
                session.query(DueItemRow.tenant_id)
                .filter(
                    DueItemRow.status == ItemStatus.PENDING.value,
                    DueItemRow.tenant_id.isnot(None),
                )
                .distinct()
                .order_by(DueItemRow.tenant_id.asc())
                .all()
            )
            return [tenant_id for (tenant_id,) in rows]

    def fetch_top_due_items(self, tenant_id: str, limit: int = 1) -> list[Item]:
        if limit < 1:
            return []
        with self._session_factory() as session:
            rows = (
                session.query(DueItemRow)
                .filter(
                    DueItemRow.tenant_id == tenant_id,
                    DueItemRow.status == ItemStatus.PENDING.value,
                )
                .order_by(
                    DueItemRow.priority.desc(),
                    DueItemRow.created_at.asc(),
                    DueItemRow.id.asc(),
                )
                .limit(limit)
                .all()
            )
            return [self._to_domain(row) for row in rows]

    def mark_delivered(self, item_id: str, at: datetime) -> TransitionResult:
        with self._session_factory() as session:
            try:
                updated = (
                    session.query(DueItemRow)
                    .filter(
                        DueItemRow.id == item_id,
                        DueItemRow.status == ItemStatus.PENDING.value,
                    )
                    .update(
                        {
                            DueItemRow.status: ItemStatus.DELIVERED.value,
                            DueItemRow.last_delivered_at: at,
                            DueItemRow.delivery_count: DueItemRow.delivery_count + 1,
                            DueItemRow.updated_at: at,
                        },
                        synchronize_session=False,
                    )
                )
                if updated == 0:
                    session.rollback()
                    logger.debug("Conditional update matched no pending row for %s", item_id)
                    return TransitionResult.conflicted()

                item = self._load(session, item_id)
                session.commit()
            except Exception:
                session.rollback()
                raise
            return TransitionResult.applied_with(item)

    def get(self, item_id: str) -> Item | None:
        with self._session_factory() as session:
            row = session.get(DueItemRow, item_id)
            return self._to_domain(row) if row is not None else None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self, session: Session, item_id: str) -> Item:
        row = session.get(DueItemRow, item_id, populate_existing=True)
        return self._to_domain(row)

    @staticmethod
    def _to_domain(row: DueItemRow) -> Item:
        return Item(
            id=row.id,
            tenant_id=row.tenant_id,
            priority=row.priority if row.priority is not None else 0,
            status=ItemStatus(row.status),
            created_at=_aware(row.created_at),
            last_delivered_at=_aware(row.last_delivered_at),
            delivery_count=row.delivery_count or 0,
            topic=row.topic or "",
            url=row.url or "",
            notes=row.notes,
        )

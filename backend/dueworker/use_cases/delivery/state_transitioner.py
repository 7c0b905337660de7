"""StateTransitioner — the only state change the scheduler performs.

Wraps the store's conditional update.  A lost race (item already
delivered by an overlapping tick, or moved to archived/deferred) comes
back as a CONFLICT outcome and is never raised.  This is what keeps the
bookkeeping at-most-once even though delivery itself is at-least-once.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from dueworker.domain.delivery.errors import TransitionError
from dueworker.domain.delivery.models import TransitionResult
from dueworker.domain.delivery.ports import DueItemStore

logger = logging.getLogger(__name__)


def ensure_aware_utc(dt: datetime) -> datetime:
    """Normalize any datetime to aware UTC (naive => assume UTC)."""
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class StateTransitioner:
    """Move an item from pending to delivered under optimistic concurrency."""

    def __init__(self, store: DueItemStore) -> None:
        self._store = store

    def mark_delivered(
        self, item_id: str, at: datetime, *, tenant_id: str = ""
    ) -> TransitionResult:
        try:
            result = self._store.mark_delivered(item_id, ensure_aware_utc(at))
        except Exception as exc:
            raise TransitionError(
                tenant_id,
                f"failed to mark item {item_id} delivered: {exc}",
                item_id=item_id,
            ) from exc

        if result.conflict:
            logger.info(
                "Item %s no longer pending; transition skipped (concurrent tick "
                "or external mutation)",
                item_id,
            )
        return result

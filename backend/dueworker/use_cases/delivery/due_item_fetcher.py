"""DueItemFetcher — one tenant's next item to deliver."""

from __future__ import annotations

import logging

from dueworker.domain.delivery.errors import FetchError
from dueworker.domain.delivery.models import Item
from dueworker.domain.delivery.ports import DueItemStore

logger = logging.getLogger(__name__)


class DueItemFetcher:
    """Return the highest-priority pending item for a tenant, or None.

    "None" is a normal answer: a concurrent tick may have consumed the
    item between listing and fetch, or an external mutator may have
    archived or deferred it.
    """

    def __init__(self, store: DueItemStore) -> None:
        self._store = store

    def fetch_top_due_item(self, tenant_id: str) -> Item | None:
        try:
            items = self._store.fetch_top_due_items(tenant_id, limit=1)
        except Exception as exc:
            raise FetchError(
                tenant_id, f"failed to fetch due item for tenant {tenant_id}: {exc}"
            ) from exc

        if not items:
            return None

        item = items[0]
        if not item.is_pending:
            logger.debug(
                "Tenant %s: top item %s is %s, treating as absent",
                tenant_id,
                item.id,
                item.status.value,
            )
            return None
        return item

"""TenantSelector — the tenant universe for one tick.

A listing failure leaves the scheduler without any basis for fairness,
so every store exception is surfaced as :class:`FatalListError`.
"""

from __future__ import annotations

import logging

from dueworker.domain.delivery.errors import FatalListError
from dueworker.domain.delivery.ports import DueItemStore

logger = logging.getLogger(__name__)


class TenantSelector:
    """Produce the distinct, ascending set of tenants holding a due item."""

    def __init__(self, store: DueItemStore) -> None:
        self._store = store

    def list_tenants_with_due_items(self) -> list[str]:
        try:
            tenant_ids = self._store.list_tenants_with_due_items()
        except Exception as exc:
            raise FatalListError(
                f"failed to list tenants with due items: {exc}"
            ) from exc

        # Stores are expected to return a clean ascending list already;
        # normalise anyway so fairness tests stay reproducible.
        tenants = sorted({t for t in tenant_ids if t is not None})
        logger.debug("Found %d tenant(s) with due items", len(tenants))
        return tenants

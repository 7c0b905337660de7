"""Error taxonomy for a scheduler tick.

Only :class:`FatalListError` stops a tick.  Everything else is attributed
to a tenant, collected, and returned next to the processed count.  A lost
race on the conditional update is not an error at all; see
``TransitionOutcome.CONFLICT``.
"""

from __future__ import annotations

from dueworker.domain.common.errors import DomainError


class TickError(DomainError):
    """Base class for failures raised while running a tick."""


class FatalListError(TickError):
    """The tenant universe could not be listed; the tick is aborted."""


class TenantScopedError(TickError):
    """A failure confined to one tenant's work within a tick."""

    def __init__(
        self, tenant_id: str, message: str, *, item_id: str | None = None
    ) -> None:
        self.tenant_id = tenant_id
        self.item_id = item_id
        super().__init__(message)


class FetchError(TenantScopedError):
    """Loading the tenant's top due item failed."""


class DeliveryError(TenantScopedError):
    """The delivery executor failed; the item stays pending."""


class DeliveryTimeoutError(DeliveryError):
    """The delivery executor did not finish within its time budget."""


class TransitionError(TenantScopedError):
    """The conditional update failed for a reason other than a conflict."""


__all__ = [
    "TickError",
    "FatalListError",
    "TenantScopedError",
    "FetchError",
    "DeliveryError",
    "DeliveryTimeoutError",
    "TransitionError",
]

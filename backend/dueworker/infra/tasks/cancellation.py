"""Cancellation token adapters for tick triggers.

The CLI flips an :class:`EventCancellationToken` from its SIGINT/SIGTERM
handlers.  The use case wraps whatever token it gets in a
``DeadlineCancellationToken`` when the command carries a deadline.
"""

from __future__ import annotations

import logging
import threading

from dueworker.domain.delivery.ports import CancellationToken

logger = logging.getLogger(__name__)


class EventCancellationToken(CancellationToken):
    """Cancel when a :class:`threading.Event` is set."""

    def __init__(self, event: threading.Event | None = None) -> None:
        self._event = event or threading.Event()

    def cancel(self, reason: str = "") -> None:
        if not self._event.is_set():
            logger.info("Tick cancellation requested%s", f": {reason}" if reason else "")
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

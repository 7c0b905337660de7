"""Simulated delivery executor.

Stands in for a real channel: it records the delivery in the log and
returns.  An optional latency lets operators rehearse timeout settings
without touching the scheduler core.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from dueworker.domain.delivery.models import Item
from dueworker.domain.delivery.ports import DeliveryExecutor

logger = logging.getLogger(__name__)


class LoggingDeliveryExecutor(DeliveryExecutor):
    """Log each item as 'sent'."""

    def __init__(
        self,
        simulated_latency_seconds: float = 0.0,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if simulated_latency_seconds < 0:
            raise ValueError("simulated_latency_seconds must be >= 0")
        self._latency = simulated_latency_seconds
        self._sleep = sleep

    def send(self, item: Item) -> None:
        logger.info(
            "Sending item %s to tenant %s (topic=%r, url=%s)",
            item.id,
            item.tenant_id,
            item.topic,
            item.url,
        )
        if self._latency > 0:
            self._sleep(self._latency)
        logger.info("Item %s sent to tenant %s (simulated)", item.id, item.tenant_id)

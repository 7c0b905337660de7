"""System clock adapter."""

from __future__ import annotations

from datetime import datetime, timezone

from dueworker.domain.delivery.ports import Clock


class SystemClock(Clock):
    """Wall-clock time as an aware UTC datetime."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

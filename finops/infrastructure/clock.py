"""System clock adapter."""

from datetime import UTC, datetime

from finops.application.ports import Clock


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)

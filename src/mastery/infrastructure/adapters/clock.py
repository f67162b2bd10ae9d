from datetime import datetime, timedelta, timezone

from mastery.domain.cards.ports import Clock


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant until advanced. Used by tests and replays."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta: float) -> datetime:
        """Move forward by timedelta keyword arguments (days=1, hours=3, ...)."""
        self._instant = self._instant + timedelta(**delta)
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

"""
Clocks

Goal completion and withdrawal gates depend on "today", so the store
takes its notion of time from an injected clock rather than calling
datetime.now() directly.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional


class SystemClock:
    """Wall-clock time. `today` is the local calendar day."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return date.today()


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime, today: Optional[date] = None):
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self._now = now
        self._today = today

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._today if self._today is not None else self._now.date()

    def advance(self, **kwargs: float) -> None:
        """Move forward, e.g. clock.advance(days=31)."""
        delta = timedelta(**kwargs)
        self._now += delta
        if self._today is not None:
            self._today = (datetime.combine(self._today, datetime.min.time()) + delta).date()

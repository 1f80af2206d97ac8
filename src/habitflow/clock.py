"""Clock abstraction supplying the current instant and local calendar day."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    """Source of "now" for the session."""

    def now(self) -> datetime:
        """Return the current local wall-clock instant (naive)."""
        ...

    def today(self) -> date:
        """Return the current local calendar day."""
        ...


class SystemClock:
    """Clock backed by the host's local time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        # Local wall-clock day, never the UTC date.
        return self.now().date()


class ManualClock:
    """Clock whose time only moves when told to.

    Lets callers simulate midnight crossings and multi-day suspends
    without waiting.
    """

    def __init__(self, start: datetime | date):
        if not isinstance(start, datetime):
            start = datetime.combine(start, datetime.min.time())
        self._now = start
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def today(self) -> date:
        return self.now().date()

    def set(self, moment: datetime | date) -> None:
        """Jump to an absolute instant (or to midnight of a day)."""
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, datetime.min.time())
        with self._lock:
            self._now = moment

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new instant."""
        with self._lock:
            self._now = self._now + timedelta(**delta)
            return self._now


__all__ = ["Clock", "ManualClock", "SystemClock"]

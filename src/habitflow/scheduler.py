"""Background day-rollover watcher for long-lived sessions."""

from __future__ import annotations

from datetime import date
from threading import Lock
from typing import TYPE_CHECKING, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .clock import Clock
from .logging_config import get_logger

if TYPE_CHECKING:
    from .config import BaseConfig

logger = get_logger(__name__)

RolloverListener = Callable[[date, date], None]


class RolloverWatcher:
    """Keeps the session's reference day in step with the local calendar.

    The clock is polled on a coarse interval rather than at midnight, so a
    host that slept through several days lands on the right day at the next
    check.
    """

    JOB_ID = "day_rollover"

    def __init__(self, clock: Clock, *, interval_seconds: int = 60):
        """Initialize the watcher.

        Args:
            clock: Source of the local calendar day
            interval_seconds: Seconds between periodic checks
        """
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.scheduler: Optional[BackgroundScheduler] = None
        self._current_day = clock.today()
        self._lock = Lock()
        self._listeners: list[RolloverListener] = []

    @property
    def current_day(self) -> date:
        """The day the session currently treats as today."""
        with self._lock:
            return self._current_day

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def subscribe(self, listener: RolloverListener) -> Callable[[], None]:
        """Register ``listener(previous_day, new_day)``; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def check(self) -> bool:
        """Compare the clock with the reference day and roll over if they differ.

        Returns:
            True when the reference day changed
        """
        actual = self.clock.today()
        with self._lock:
            previous = self._current_day
            if actual == previous:
                return False
            self._current_day = actual
            listeners = list(self._listeners)

        logger.info(
            "Day rolled over",
            extra={
                "previous_day": previous.isoformat(),
                "current_day": actual.isoformat(),
                "days_elapsed": (actual - previous).days,
            },
        )
        for listener in listeners:
            try:
                listener(previous, actual)
            except Exception:
                logger.exception("Rollover listener failed")
        return True

    def start(self) -> None:
        """Start the periodic check."""
        if self.scheduler is not None:
            logger.warning("Rollover watcher already running")
            return

        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            func=self.check,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            name="Local Day Rollover Check",
            replace_existing=True,
            # A resume after suspend fires one catch-up run, however late.
            coalesce=True,
            max_instances=1,
            misfire_grace_time=None,
        )
        scheduler.start()
        self.scheduler = scheduler
        logger.info(
            "Rollover watcher started",
            extra={"interval_seconds": self.interval_seconds},
        )

    def stop(self) -> None:
        """Cancel the periodic check."""
        if self.scheduler is None:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Rollover watcher stopped")


def create_watcher(
    clock: Clock, config: BaseConfig, *, auto_start: bool = False
) -> RolloverWatcher:
    """Create and optionally start a rollover watcher.

    Args:
        clock: Source of the local calendar day
        config: Application configuration providing the check interval
        auto_start: Whether to start the periodic check immediately

    Returns:
        RolloverWatcher instance
    """
    watcher = RolloverWatcher(clock, interval_seconds=config.ROLLOVER_CHECK_SECONDS)
    if auto_start:
        watcher.start()
    return watcher

"""Application context for dependency injection."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from .clock import Clock, SystemClock
from .config import BaseConfig
from .domain.repositories.settings import SettingsRepository
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelSettingsRepository
from .logging_config import get_logger
from .models.habit import Habit, LogEntry
from .scheduler import RolloverWatcher, create_watcher
from .services import persistence
from .services.habits import compute_streak, total_completions
from .services.heatmap import HabitGrid, build_grid
from .services.log_store import LogStore
from .services.seed import generate_sample_logs, sample_habits

logger = get_logger(__name__)

# Seconds to wait for each in-flight write when the session closes.
SHUTDOWN_WRITE_TIMEOUT = 5.0


@dataclass
class AppContext:
    """Session object consumers read from and write through."""

    config: BaseConfig
    clock: Clock
    store: LogStore
    watcher: RolloverWatcher
    settings_repo: Optional[SettingsRepository] = None
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list, init=False, repr=False)

    @property
    def today(self) -> date:
        """The session's reference day."""
        return self.watcher.current_day

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` whenever store contents or the reference day change."""

        unsubscribe_store = self.store.subscribe(listener)
        unsubscribe_day = self.watcher.subscribe(lambda _previous, _current: listener())

        def unsubscribe() -> None:
            unsubscribe_store()
            unsubscribe_day()

        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    # Read contract
    def habits(self) -> tuple[Habit, ...]:
        return self.store.habits()

    def is_completed_today(self, habit_id: str) -> bool:
        return self.store.is_completed(habit_id, self.today)

    def streak(self, habit_id: str) -> int:
        return compute_streak(habit_id, self.store.logs(), self.today)

    def total_completions(self, habit_id: str) -> int:
        return total_completions(habit_id, self.store.logs())

    def grid(self, habit_id: str) -> HabitGrid:
        return build_grid(
            self.today,
            self.store.completed_dates(habit_id),
            window_days=self.config.GRID_WINDOW_DAYS,
            label_spacing=self.config.MONTH_LABEL_SPACING,
            edge_columns=self.config.EDGE_COLUMNS,
        )

    # Write contract
    def add_habit(self, name: str, description: str = "") -> Habit:
        return self.store.add_habit(name, description)

    def delete_habit(self, habit_id: str) -> bool:
        return self.store.delete_habit(habit_id)

    def toggle_completion(self, habit_id: str, day: date | None = None) -> bool:
        return self.store.toggle_completion(habit_id, day or self.today)

    def check_rollover(self) -> bool:
        return self.watcher.check()

    def seed_sample(self, *, rng: random.Random | None = None) -> None:
        """Replace the current state with the sample habits and history."""

        habits, logs = sample_state(self.config, self.today, rng=rng)
        self.store.reset(habits, logs)

    def reload(self) -> bool:
        """Re-read persisted state; resumes saving after a failed startup read."""
        return self.store.reload()

    def shutdown(self) -> None:
        """Stop background checks, finish pending writes and drop subscriptions."""

        self.watcher.stop()
        if not persistence.wait_for_writes(timeout=SHUTDOWN_WRITE_TIMEOUT):
            logger.warning("Pending writes still running at shutdown")
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        logger.info("Session closed")


def sample_state(
    config: BaseConfig, today: date, *, rng: random.Random | None = None
) -> tuple[list[Habit], list[LogEntry]]:
    """Return sample habits with a randomized history ending at ``today``."""

    habits = sample_habits()
    logs = generate_sample_logs(
        habits,
        today,
        days=config.SAMPLE_HISTORY_DAYS,
        rate=config.SAMPLE_COMPLETION_RATE,
        rng=rng,
    )
    return habits, logs


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Optional[Clock] = None,
    settings_repo: Optional[SettingsRepository] = None,
    start_watcher: bool = False,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()
    if clock is None:
        clock = SystemClock()

    if settings_repo is None:
        _engine, session_factory = bootstrap_database(config)
        settings_repo = SQLModelSettingsRepository(session_factory)

    persistence.set_async_execution(config.ASYNC_PERSIST)

    def fallback() -> tuple[list[Habit], list[LogEntry]]:
        if config.SEED_SAMPLE_DATA:
            return sample_state(config, clock.today())
        return [], []

    store = LogStore.load(settings_repo, fallback=fallback)
    watcher = create_watcher(clock, config, auto_start=start_watcher)

    return AppContext(
        config=config,
        clock=clock,
        store=store,
        watcher=watcher,
        settings_repo=settings_repo,
    )

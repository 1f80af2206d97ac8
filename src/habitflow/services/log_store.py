"""In-memory habit log with write-through persistence.

``LogStore`` is the single owner of habits and completion entries. Every
mutation updates memory first, notifies subscribers, then hands a full
snapshot to the persistence runner for a best-effort write to the key-value
repository. Memory stays authoritative for the session whatever the write
outcome.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from threading import RLock
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple, TypeVar
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories.settings import SettingsRepository
from ..logging_config import get_logger
from ..models.habit import Habit, LogEntry
from . import persistence
from .persistence import HABITS_KEY, LOGS_KEY, StateWriter

logger = get_logger(__name__)

Listener = Callable[[], None]
Fallback = Callable[[], Tuple[Sequence[Habit], Sequence[LogEntry]]]
T = TypeVar("T")


class InvalidHabitError(ValueError):
    """Raised when a habit cannot be created from the given input."""


class _ReadFailed(Exception):
    """The repository could not be read; stored values are unknown."""


def _read(repo: SettingsRepository, key: str) -> Optional[str]:
    try:
        return repo.get_value(key)
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Failed to read persisted %s: %s", key, exc, exc_info=True)
        raise _ReadFailed(key) from exc


def _decode(raw: Optional[str], key: str, parse: Callable[[Any], T]) -> Optional[list[T]]:
    """Parse a persisted JSON list.

    Returns ``None`` when the value is absent or is not a JSON list. Items
    that fail ``parse`` are skipped one by one.
    """

    if raw is None:
        logger.info("No persisted %s found; using defaults", key)
        return None
    try:
        items = json.loads(raw)
    except ValueError as exc:
        logger.warning("Discarding unparsable persisted %s: %s", key, exc, extra={"key": key})
        return None
    if not isinstance(items, list):
        logger.warning(
            "Discarding persisted %s: expected a list, got %s", key, type(items).__name__,
            extra={"key": key},
        )
        return None

    parsed: list[T] = []
    skipped = 0
    for item in items:
        try:
            parsed.append(parse(item))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            skipped += 1
            logger.debug("Skipping malformed %s item %r: %s", key, item, exc)
    if skipped:
        logger.warning(
            "Skipped malformed persisted %s items", key, extra={"key": key, "skipped": skipped}
        )
    return parsed


class LogStore:
    """Owner of habits and their completion log."""

    def __init__(
        self,
        habits: Iterable[Habit] = (),
        logs: Iterable[LogEntry] = (),
        *,
        repo: Optional[SettingsRepository] = None,
    ):
        self._lock = RLock()
        self._habits: list[Habit] = []
        self._logs: list[LogEntry] = []
        self._index: set[tuple[str, date]] = set()
        self._listeners: list[Listener] = []
        self._revision = 0
        self._repo = repo
        self._writer = StateWriter(repo) if repo is not None else None
        self._write_through = repo is not None
        self._replace(habits, logs)

    @classmethod
    def load(cls, repo: SettingsRepository, *, fallback: Optional[Fallback] = None) -> "LogStore":
        """Restore a store from ``repo``.

        ``habits`` and ``logs`` are decoded independently; whichever is absent
        or unparsable is taken from ``fallback`` (empty when not given) and
        the result is written back. When the repository cannot be read at
        all, the fallback is used in memory only and write-through stays off
        until :meth:`reload` succeeds, so stored history is never replaced.
        """

        store = cls(repo=repo)
        try:
            habits, logs, used_fallback = _load_state(repo, fallback)
        except _ReadFailed:
            default_habits, default_logs = fallback() if fallback else ((), ())
            store._replace(default_habits, default_logs)
            store._write_through = False
            logger.error("Persisted state unavailable; changes will not be saved this session")
            return store

        store._replace(habits, logs)
        logger.info(
            "Loaded habit log",
            extra={"habits": len(store._habits), "logs": len(store._logs)},
        )
        if used_fallback:
            store._schedule_write()
        return store

    @property
    def write_through(self) -> bool:
        """Whether mutations are currently persisted."""
        return self._write_through

    def reload(self) -> bool:
        """Re-read the repository, replacing memory and resuming write-through.

        Returns ``False`` (leaving everything as is) if the read fails again.
        """

        if self._repo is None:
            return False
        try:
            habits, logs, _ = _load_state(self._repo, None)
        except _ReadFailed:
            return False
        self._replace(habits, logs)
        self._write_through = True
        logger.info("Reloaded habit log", extra={"habits": len(self._habits)})
        self._notify()
        return True

    # Subscriptions
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change notifications; returns an unsubscribe callable."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Store listener failed")

    # Queries
    def habits(self) -> Tuple[Habit, ...]:
        with self._lock:
            return tuple(self._habits)

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        with self._lock:
            return next((h for h in self._habits if h.id == habit_id), None)

    def logs(self) -> Tuple[LogEntry, ...]:
        with self._lock:
            return tuple(self._logs)

    def completed_dates(self, habit_id: str) -> frozenset[date]:
        with self._lock:
            return frozenset(day for hid, day in self._index if hid == habit_id)

    def is_completed(self, habit_id: str, day: date) -> bool:
        _require_date(day)
        with self._lock:
            return (habit_id, day) in self._index

    # Mutations
    def add_habit(self, name: str, description: str = "") -> Habit:
        name = (name or "").strip()
        if not name:
            raise InvalidHabitError("Habit name must not be empty")
        habit = Habit(id=uuid4().hex, name=name, description=(description or "").strip())
        with self._lock:
            self._habits.append(habit)
        logger.info("Added habit", extra={"habit_id": habit.id, "habit_name": habit.name})
        self._changed()
        return habit

    def delete_habit(self, habit_id: str) -> bool:
        """Remove a habit and all of its entries; unknown ids are ignored."""

        with self._lock:
            if not any(h.id == habit_id for h in self._habits):
                logger.debug("Delete ignored for unknown habit", extra={"habit_id": habit_id})
                return False
            # Rebind all collections together so readers never see a half-deleted habit.
            self._habits = [h for h in self._habits if h.id != habit_id]
            self._logs = [e for e in self._logs if e.habit_id != habit_id]
            self._index = {key for key in self._index if key[0] != habit_id}
        logger.info("Deleted habit", extra={"habit_id": habit_id})
        self._changed()
        return True

    def toggle_completion(self, habit_id: str, day: date) -> bool:
        """Flip completion for ``(habit_id, day)`` and return the new state."""

        _require_date(day)
        with self._lock:
            if not any(h.id == habit_id for h in self._habits):
                logger.debug("Toggle ignored for unknown habit", extra={"habit_id": habit_id})
                return False
            key = (habit_id, day)
            if key in self._index:
                self._index.discard(key)
                self._logs = [e for e in self._logs if (e.habit_id, e.day) != key]
                completed = False
            else:
                self._index.add(key)
                self._logs.append(LogEntry(habit_id=habit_id, day=day))
                completed = True
        logger.info(
            "Toggled completion",
            extra={"habit_id": habit_id, "day": day.isoformat(), "completed": completed},
        )
        self._changed()
        return completed

    def reset(self, habits: Iterable[Habit], logs: Iterable[LogEntry]) -> None:
        """Replace the whole state, e.g. with sample data."""

        self._replace(habits, logs)
        logger.info("Replaced habit log", extra={"habits": len(self._habits)})
        self._changed()

    def _replace(self, habits: Iterable[Habit], logs: Iterable[LogEntry]) -> None:
        kept_habits: list[Habit] = []
        seen_ids: set[str] = set()
        for habit in habits:
            if habit.id in seen_ids:
                continue
            seen_ids.add(habit.id)
            kept_habits.append(habit)

        kept_logs: list[LogEntry] = []
        index: set[tuple[str, date]] = set()
        dropped = 0
        for entry in logs:
            key = (entry.habit_id, entry.day)
            if entry.habit_id not in seen_ids or key in index:
                dropped += 1
                continue
            index.add(key)
            kept_logs.append(entry)
        if dropped:
            logger.warning("Dropped orphaned or duplicate log entries", extra={"dropped": dropped})

        with self._lock:
            self._habits = kept_habits
            self._logs = kept_logs
            self._index = index

    # Persistence
    def _changed(self) -> None:
        self._notify()
        self._schedule_write()

    def _schedule_write(self) -> Optional[persistence.WriteJob]:
        if self._writer is None:
            return None
        if not self._write_through:
            logger.warning("Change kept in memory only; persisted state is unavailable")
            return None
        with self._lock:
            self._revision += 1
            revision = self._revision
            habits_json = json.dumps([h.to_dict() for h in self._habits])
            logs_json = json.dumps([e.to_dict() for e in self._logs])
        return persistence.submit(
            self._writer,
            revision=revision,
            habits_json=habits_json,
            logs_json=logs_json,
        )


def _load_state(
    repo: SettingsRepository, fallback: Optional[Fallback]
) -> tuple[list[Habit], list[LogEntry], bool]:
    """Read and decode both keys; raises ``_ReadFailed`` if either read fails."""

    raw_habits = _read(repo, HABITS_KEY)
    raw_logs = _read(repo, LOGS_KEY)
    habits = _decode(raw_habits, HABITS_KEY, Habit.from_dict)
    logs = _decode(raw_logs, LOGS_KEY, LogEntry.from_dict)

    used_fallback = habits is None or logs is None
    if used_fallback:
        default_habits, default_logs = fallback() if fallback else ((), ())
        habits = list(default_habits) if habits is None else habits
        logs = list(default_logs) if logs is None else logs
    return habits, logs, used_fallback


def _require_date(day: date) -> None:
    # datetime is a date subclass; only plain calendar days are accepted.
    if isinstance(day, datetime) or not isinstance(day, date):
        raise TypeError(f"expected a calendar date, got {type(day).__name__}")


__all__ = ["HABITS_KEY", "LOGS_KEY", "InvalidHabitError", "LogStore", "StateWriter"]

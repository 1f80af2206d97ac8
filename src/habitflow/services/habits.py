"""Habit service helpers for streaks and lifetime totals."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from ..models.habit import LogEntry

GRACE_DAYS = 1


def _dates_for(habit_id: str, logs: Iterable[LogEntry]) -> set[date]:
    return {entry.day for entry in logs if entry.habit_id == habit_id}


def compute_streak(habit_id: str, logs: Iterable[LogEntry], today: date) -> int:
    """Return the current run of consecutive completed days for ``habit_id``.

    The run is anchored at ``today`` when it is logged. Otherwise yesterday
    keeps the streak alive until a whole day has been skipped.
    """

    days = _dates_for(habit_id, logs)
    if not days:
        return 0

    cursor = today
    if cursor not in days:
        cursor = today - timedelta(days=GRACE_DAYS)
        if cursor not in days:
            return 0

    # Walk backwards until the first gap.
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def total_completions(habit_id: str, logs: Iterable[LogEntry]) -> int:
    """Return the number of distinct days ``habit_id`` was completed."""

    return len(_dates_for(habit_id, logs))


__all__ = ["GRACE_DAYS", "compute_streak", "total_completions"]

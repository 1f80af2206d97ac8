"""Sample habits and randomized completion history."""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import Iterable, Optional

from ..models.habit import Habit, LogEntry

SAMPLE_HABITS = [
    {"id": "1", "name": "LeetCode Practice", "description": "Solve 1 medium problem"},
    {"id": "2", "name": "Reading", "description": "Read 20 pages"},
    {"id": "3", "name": "Workout", "description": "30 mins cardio"},
]


def sample_habits() -> list[Habit]:
    """Return fresh copies of the sample habits."""

    return [Habit(**spec) for spec in SAMPLE_HABITS]


def generate_sample_logs(
    habits: Iterable[Habit],
    today: date,
    *,
    days: int = 150,
    rate: float = 0.6,
    rng: Optional[random.Random] = None,
) -> list[LogEntry]:
    """Randomly mark each of the last ``days`` days complete with probability ``rate``."""

    rng = rng or random.Random()
    logs: list[LogEntry] = []
    for habit in habits:
        for offset in range(days):
            if rng.random() < rate:
                logs.append(LogEntry(habit_id=habit.id, day=today - timedelta(days=offset)))
    return logs


__all__ = ["SAMPLE_HABITS", "generate_sample_logs", "sample_habits"]

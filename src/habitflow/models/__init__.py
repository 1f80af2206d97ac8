"""Domain records and SQLModel table exports."""

from .habit import Habit, LogEntry
from .settings import AppSetting

__all__ = [
    "AppSetting",
    "Habit",
    "LogEntry",
]

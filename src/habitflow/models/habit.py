"""Habits tracking data structures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping


@dataclass(frozen=True)
class Habit:
    """A user-defined habit the app tracks daily."""

    id: str
    name: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Habit":
        """Build a habit from its persisted form.

        Raises ``KeyError``/``TypeError``/``ValueError`` on malformed input.
        """
        habit_id = raw["id"]
        name = raw["name"]
        description = raw.get("description") or ""
        if not isinstance(habit_id, str) or not habit_id:
            raise ValueError(f"invalid habit id: {habit_id!r}")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"invalid habit name: {name!r}")
        if not isinstance(description, str):
            raise TypeError(f"invalid habit description: {description!r}")
        return cls(id=habit_id, name=name, description=description)


@dataclass(frozen=True)
class LogEntry:
    """Completion record for a habit on a local calendar day."""

    habit_id: str
    day: date

    def to_dict(self) -> dict[str, str]:
        return {"habitId": self.habit_id, "date": self.day.isoformat()}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LogEntry":
        habit_id = raw["habitId"]
        if not isinstance(habit_id, str) or not habit_id:
            raise ValueError(f"invalid habit reference: {habit_id!r}")
        # date.fromisoformat rejects anything carrying a time component
        return cls(habit_id=habit_id, day=date.fromisoformat(raw["date"]))

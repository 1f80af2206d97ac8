"""Week-aligned calendar grid used to render a habit's activity heatmap.

The grid is a list of columns, one per week, each holding seven ``DayCell``
rows from Monday to Sunday. The window covers the trailing year ending at the
reference day, widened to whole weeks on both ends.

Month labels are placed on the first column and then on columns whose week
crosses into a new month, provided enough columns have passed since the last
label. The ``edge`` flag marks the right-most columns so overlays can open
towards the left instead of running off screen.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import AbstractSet, List, Tuple

DAYS_PER_WEEK = 7
DEFAULT_WINDOW_DAYS = 364
DEFAULT_LABEL_SPACING = 4
DEFAULT_EDGE_COLUMNS = 9


@dataclass(frozen=True)
class DayCell:
    """One square of the heatmap."""

    day: date
    completed: bool
    edge: bool
    future: bool = False


@dataclass(frozen=True)
class MonthLabel:
    """Month caption anchored to a column index."""

    index: int
    month: str


@dataclass(frozen=True)
class HabitGrid:
    """Columns of weeks plus month label placement."""

    weeks: Tuple[Tuple[DayCell, ...], ...]
    month_labels: Tuple[MonthLabel, ...]

    @property
    def days(self) -> List[DayCell]:
        return [cell for week in self.weeks for cell in week]


def week_start(day: date) -> date:
    """Return the Monday of ``day``'s week."""

    return day - timedelta(days=day.weekday())


def _month_name(day: date) -> str:
    return day.strftime("%b")


def month_labels_for(
    week_starts: List[date], *, label_spacing: int = DEFAULT_LABEL_SPACING
) -> List[MonthLabel]:
    """Place month labels over the given week columns."""

    labels: List[MonthLabel] = []
    for index, first_day in enumerate(week_starts):
        crosses_month = first_day.month != (first_day + timedelta(days=DAYS_PER_WEEK)).month
        if index != 0 and not crosses_month:
            continue
        if labels and index - labels[-1].index < label_spacing:
            continue
        # Name the month by the middle of the week.
        labels.append(MonthLabel(index=index, month=_month_name(first_day + timedelta(days=3))))
    return labels


def build_grid(
    today: date,
    completed_dates: AbstractSet[date],
    *,
    window_days: int = DEFAULT_WINDOW_DAYS,
    label_spacing: int = DEFAULT_LABEL_SPACING,
    edge_columns: int = DEFAULT_EDGE_COLUMNS,
) -> HabitGrid:
    """Build the heatmap grid for the year ending at ``today``.

    Args:
        today: Reference day; its week is the last column
        completed_dates: Days on which the habit was completed
        window_days: How far back from ``today`` the window reaches
        label_spacing: Minimum columns between two month labels
        edge_columns: Number of trailing columns flagged as ``edge``

    Returns:
        HabitGrid with Monday-first weeks in chronological order
    """

    start = week_start(today - timedelta(days=window_days))
    end = week_start(today) + timedelta(days=DAYS_PER_WEEK - 1)
    total_weeks = ((end - start).days + 1) // DAYS_PER_WEEK

    weeks: List[Tuple[DayCell, ...]] = []
    week_starts: List[date] = []
    for week_index in range(total_weeks):
        first_day = start + timedelta(weeks=week_index)
        edge = week_index > total_weeks - (edge_columns + 1)
        week_starts.append(first_day)
        weeks.append(
            tuple(
                DayCell(
                    day=day,
                    completed=day in completed_dates,
                    edge=edge,
                    future=day > today,
                )
                for day in (first_day + timedelta(days=offset) for offset in range(DAYS_PER_WEEK))
            )
        )

    return HabitGrid(
        weeks=tuple(weeks),
        month_labels=tuple(month_labels_for(week_starts, label_spacing=label_spacing)),
    )


__all__ = [
    "DayCell",
    "HabitGrid",
    "MonthLabel",
    "build_grid",
    "month_labels_for",
    "week_start",
]

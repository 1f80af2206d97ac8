"""Tests for the week-aligned heatmap grid."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitflow.services.heatmap import build_grid, month_labels_for, week_start

TODAY = date(2024, 6, 10)  # a Monday


@pytest.mark.parametrize("today", [TODAY, date(2024, 6, 16), date(2023, 12, 31), date(2024, 2, 29)])
def test_weeks_are_full_and_monday_first(today):
    grid = build_grid(today, set())

    assert all(len(week) == 7 for week in grid.weeks)
    assert len(grid.days) % 7 == 0
    assert all(week[0].day.weekday() == 0 for week in grid.weeks)
    # 364 days back lands on the same weekday, so the span is always 53 weeks.
    assert len(grid.weeks) == 53


def test_window_covers_trailing_year_through_end_of_week():
    grid = build_grid(TODAY, set())
    days = [cell.day for cell in grid.days]

    assert days[0] == week_start(TODAY - timedelta(days=364))
    assert days[-1] == date(2024, 6, 16)
    assert TODAY in days
    # Strictly consecutive, chronological
    assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))


def test_future_cells_only_after_today():
    grid = build_grid(date(2024, 6, 12), set())
    future = [cell.day for cell in grid.days if cell.future]

    assert future == [date(2024, 6, d) for d in range(13, 17)]


def test_completed_flags_follow_completion_set():
    completed = {TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=200)}
    grid = build_grid(TODAY, completed)

    flagged = {cell.day for cell in grid.days if cell.completed}
    assert flagged == completed


def test_dates_outside_window_are_not_rendered():
    old = TODAY - timedelta(days=500)
    grid = build_grid(TODAY, {old})

    assert not any(cell.completed for cell in grid.days)


def test_edge_flag_marks_last_nine_columns():
    grid = build_grid(TODAY, set())
    total = len(grid.weeks)

    edge_columns = [i for i, week in enumerate(grid.weeks) if week[0].edge]
    assert edge_columns == list(range(total - 9, total))
    # Whole column shares the flag
    assert all(len({cell.edge for cell in week}) == 1 for week in grid.weeks)


def test_edge_columns_configurable():
    grid = build_grid(TODAY, set(), edge_columns=3)

    assert [i for i, week in enumerate(grid.weeks) if week[0].edge] == [50, 51, 52]


@pytest.mark.parametrize(
    "today",
    [TODAY, date(2024, 3, 1), date(2024, 9, 30), date(2025, 1, 5), date(2023, 11, 27)],
)
def test_month_labels_respect_spacing(today):
    grid = build_grid(today, set())
    indexes = [label.index for label in grid.month_labels]

    assert indexes[0] == 0
    assert all(b - a >= 4 for a, b in zip(indexes, indexes[1:]))


def test_month_labels_placed_on_month_crossing_weeks():
    grid = build_grid(TODAY, set())

    for label in grid.month_labels[1:]:
        first_day = grid.weeks[label.index][0].day
        assert first_day.month != (first_day + timedelta(days=7)).month


def test_month_label_names_mid_week_day():
    grid = build_grid(TODAY, set())

    first = grid.month_labels[0]
    assert first.index == 0
    assert first.month == (grid.weeks[0][0].day + timedelta(days=3)).strftime("%b")


def test_crowded_month_labels_are_skipped():
    # Two month crossings two columns apart: the second is suppressed.
    starts = [
        date(2024, 1, 1),
        date(2024, 1, 8),
        date(2024, 1, 15),
        date(2024, 1, 22),
        date(2024, 1, 29),  # crosses into February at index 4
        date(2024, 2, 5),
        date(2024, 2, 12),
    ]
    labels = month_labels_for(starts, label_spacing=4)
    assert [label.index for label in labels] == [0, 4]

    labels = month_labels_for(starts, label_spacing=5)
    assert [label.index for label in labels] == [0]


def test_grid_is_deterministic():
    completed = {TODAY - timedelta(days=i) for i in range(0, 100, 3)}
    assert build_grid(TODAY, completed) == build_grid(TODAY, completed)


def test_week_start_returns_monday():
    assert week_start(date(2024, 6, 16)) == date(2024, 6, 10)
    assert week_start(date(2024, 6, 10)) == date(2024, 6, 10)

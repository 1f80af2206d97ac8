"""Command line front end for HabitFlow."""

from __future__ import annotations

from datetime import datetime

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .models.habit import Habit
from .services.heatmap import HabitGrid
from .services.log_store import InvalidHabitError

WEEKDAY_LABELS = ["Mon", "", "Wed", "", "Fri", "", ""]


def _resolve_habit(app: AppContext, habit_id: str) -> Habit:
    """Match a habit by id or unique id prefix."""

    habits = app.habits()
    exact = [h for h in habits if h.id == habit_id]
    if exact:
        return exact[0]
    matches = [h for h in habits if h.id.startswith(habit_id)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise click.BadParameter(f"No habit with id {habit_id!r}", param_hint="HABIT_ID")
    raise click.BadParameter(f"Ambiguous habit id {habit_id!r}", param_hint="HABIT_ID")


def render_grid(grid: HabitGrid) -> str:
    """Render a heatmap as text, two characters per week column."""

    width = len(grid.weeks) * 2
    header = [" "] * width
    for label in grid.month_labels:
        start = label.index * 2
        for offset, char in enumerate(label.month):
            if start + offset < width:
                header[start + offset] = char

    lines = ["    " + "".join(header).rstrip()]
    for row in range(7):
        cells = []
        for week in grid.weeks:
            cell = week[row]
            if cell.future:
                cells.append("  ")
            else:
                cells.append("# " if cell.completed else ". ")
        lines.append(f"{WEEKDAY_LABELS[row]:<4}" + "".join(cells).rstrip())
    return "\n".join(lines)


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the HabitFlow database and logs.",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: str | None) -> None:
    """Track daily habits, streaks and yearly activity."""

    config = BaseConfig(data_dir=data_dir)
    # Writes must land before the process exits.
    config.ASYNC_PERSIST = False
    setup_logging(config)
    app = create_app_context(config)
    if not app.store.write_through:
        click.echo("Warning: saved habits could not be read; changes will not be saved.", err=True)
    ctx.obj = app
    ctx.call_on_close(app.shutdown)


@cli.command("list")
@click.pass_obj
def list_habits(app: AppContext) -> None:
    """Show habits with today's status, streak and total."""

    habits = app.habits()
    if not habits:
        click.echo("No habits tracked yet.")
        return
    for habit in habits:
        mark = "x" if app.is_completed_today(habit.id) else " "
        click.echo(
            f"[{mark}] {habit.id[:8]}  {habit.name}  "
            f"streak {app.streak(habit.id)}  total {app.total_completions(habit.id)}"
        )
        if habit.description:
            click.echo(f"             {habit.description}")


@cli.command("add")
@click.argument("name")
@click.option("--description", "-d", default="Daily Goal", show_default=True)
@click.pass_obj
def add_habit(app: AppContext, name: str, description: str) -> None:
    """Create a new habit."""

    try:
        habit = app.add_habit(name, description)
    except InvalidHabitError as exc:
        raise click.BadParameter(str(exc), param_hint="NAME") from exc
    click.echo(f"Created habit {habit.id[:8]}: {habit.name}")


@cli.command("delete")
@click.argument("habit_id")
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt.")
@click.pass_obj
def delete_habit(app: AppContext, habit_id: str, yes: bool) -> None:
    """Delete a habit and its whole history."""

    habit = _resolve_habit(app, habit_id)
    if not yes:
        click.confirm(f"Delete {habit.name!r} and all of its history?", abort=True)
    app.delete_habit(habit.id)
    click.echo(f"Deleted habit {habit.name}")


@cli.command("toggle")
@click.argument("habit_id")
@click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Day to toggle (defaults to today).",
)
@click.pass_obj
def toggle(app: AppContext, habit_id: str, on_date: datetime | None) -> None:
    """Mark a habit done, or undo it, for a day."""

    habit = _resolve_habit(app, habit_id)
    day = on_date.date() if on_date else app.today
    completed = app.toggle_completion(habit.id, day)
    state = "done" if completed else "not done"
    click.echo(f"{habit.name} marked {state} on {day.isoformat()} (streak {app.streak(habit.id)})")


@cli.command("heatmap")
@click.argument("habit_id")
@click.pass_obj
def heatmap(app: AppContext, habit_id: str) -> None:
    """Print the past year of activity for a habit."""

    habit = _resolve_habit(app, habit_id)
    click.echo(f"{habit.name}: {app.streak(habit.id)} day streak, {app.total_completions(habit.id)} total")
    click.echo(render_grid(app.grid(habit.id)))


@cli.command("seed")
@click.option("--yes", is_flag=True, default=False, help="Skip the confirmation prompt.")
@click.pass_obj
def seed(app: AppContext, yes: bool) -> None:
    """Replace all habits with sample data."""

    if not yes:
        click.confirm("Replace all habits and history with sample data?", abort=True)
    app.seed_sample()
    click.echo(f"Seeded {len(app.habits())} sample habits.")


def main() -> None:  # pragma: no cover - console script
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()

"""Flask CLI commands for HabitPulse."""

from __future__ import annotations

from pathlib import Path

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitpulse-seed")
    @click.option("--user-id", type=int, default=1, show_default=True, help="Owner of the demo habits")
    @click.option("--days", type=int, default=60, show_default=True, help="Days of history to generate")
    def habitpulse_seed(user_id: int, days: int) -> None:
        """Seed demo habits with completion history."""

        # Import here to avoid circular imports at module import time
        from .extensions import get_habit_service
        from .services.seed import seed_demo_habits

        summary = seed_demo_habits(get_habit_service(app), user_id=user_id, days=days)
        click.echo(f"Seeded {summary.habits} habits with {summary.logs} completions.")

    @app.cli.command("habitpulse-report")
    @click.argument("habit_id", type=int)
    @click.option("--user-id", type=int, default=1, show_default=True)
    @click.option(
        "--group-by",
        type=click.Choice(["day", "week", "month"]),
        default="week",
        show_default=True,
    )
    @click.option("--chart", type=click.Path(dir_okay=False, path_type=Path), default=None,
                  help="Write a PNG completion chart to this path")
    def habitpulse_report(habit_id: int, user_id: int, group_by: str, chart: Path | None) -> None:
        """Print streak and completion statistics for a habit."""

        from .errors import HabitNotFoundError
        from .extensions import get_habit_service
        from .services.reports import export_completion_png

        service = get_habit_service(app)
        try:
            habit = service.get_habit(habit_id, user_id=user_id)
        except HabitNotFoundError as exc:
            raise click.ClickException(str(exc)) from exc

        stats = service.stats(habit_id, user_id=user_id)
        summaries = service.completion_summaries(habit_id, user_id=user_id, granularity=group_by)

        click.echo(f"{habit.name} ({habit.recurrence_type})")
        click.echo(f"  current streak : {stats.current_streak}")
        click.echo(f"  longest streak : {stats.longest_streak}")
        click.echo(f"  completions    : {stats.total_completions}")
        click.echo(f"  completion rate: {stats.completion_rate:.2f} per day")
        click.echo(f"  avg difficulty : {stats.average_difficulty:.2f}")
        for summary in summaries:
            click.echo(f"  {summary.date.isoformat()}  {'#' * summary.count} {summary.count}")

        if chart is not None:
            path = export_completion_png(
                summaries=summaries,
                output_path=chart,
                granularity=group_by,
                streaks=service.streak_history(habit_id, user_id=user_id),
                title=habit.name,
            )
            click.echo(f"Chart written: {path}")

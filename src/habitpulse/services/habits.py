"""Habit use-cases: completion events and analytics reads over the repositories."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Optional

from ..domain.policies import DailyPolicy, RecurrencePolicy
from ..domain.repositories import HabitLogRepository, HabitRepository
from ..errors import HabitLogNotFoundError, HabitValidationError
from ..logging_config import get_logger
from ..models.habit import Feeling, Habit, HabitLog
from . import aggregation, analytics, streaks
from .recurrence import ScheduleEvaluator, is_on_schedule

logger = get_logger(__name__)

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50
NOTES_MAX_LENGTH = 500
DIFFICULTY_RANGE = range(1, 6)


def validate_log_fields(
    *,
    value: float | None = None,
    difficulty: int | None = None,
    notes: str | None = None,
    feeling: Feeling | str | None = None,
    **_: Any,
) -> None:
    """Raise HabitValidationError for out-of-range optional log fields."""

    if value is not None and value < 0:
        raise HabitValidationError("Value must be greater than or equal to 0.")
    if difficulty is not None and difficulty not in DIFFICULTY_RANGE:
        raise HabitValidationError("Difficulty must be between 1 and 5.")
    if notes is not None and len(notes) > NOTES_MAX_LENGTH:
        raise HabitValidationError(f"Notes must be at most {NOTES_MAX_LENGTH} characters.")
    if feeling is not None and not isinstance(feeling, Feeling):
        try:
            Feeling(feeling)
        except ValueError as exc:
            raise HabitValidationError(f"Unknown feeling: {feeling!r}") from exc


def _coerce_feeling(fields: dict[str, Any]) -> dict[str, Any]:
    feeling = fields.get("feeling")
    if feeling is not None and not isinstance(feeling, Feeling):
        fields = {**fields, "feeling": Feeling(feeling)}
    return fields


class HabitService:
    """Coordinates repositories with the streak engine.

    Collaborators are passed in explicitly; there is no global registry.
    Repository errors (not-found, database failures) propagate unchanged.
    """

    def __init__(
        self,
        *,
        habits: HabitRepository,
        logs: HabitLogRepository,
        clock: Callable[[], datetime] = datetime.now,
        evaluator: ScheduleEvaluator = is_on_schedule,
    ) -> None:
        self.habits = habits
        self.logs = logs
        self.clock = clock
        self.evaluator = evaluator

    # Habit management -----------------------------------------------------

    def create_habit(
        self,
        user_id: int,
        *,
        name: str,
        policy: RecurrencePolicy | None = None,
        description: str = "",
    ) -> Habit:
        name_norm = (name or "").strip()
        if not NAME_MIN_LENGTH <= len(name_norm) <= NAME_MAX_LENGTH:
            raise HabitValidationError(
                f"Habit name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters."
            )

        now = self.clock()
        habit = Habit(
            user_id=user_id,
            name=name_norm,
            description=(description or "").strip(),
            created_at=now,
            updated_at=now,
        )
        habit.set_policy(policy or DailyPolicy())
        created = self.habits.create(habit, user_id=user_id)
        logger.info(
            "Habit created",
            extra={"habit_id": created.id, "user_id": user_id, "recurrence": created.recurrence_type},
        )
        return created

    def get_habit(self, habit_id: int, *, user_id: int) -> Habit:
        return self.habits.require(habit_id, user_id=user_id)

    def list_habits(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        return self.habits.list_all(user_id=user_id, include_inactive=include_inactive)

    def archive_habit(self, habit_id: int, *, user_id: int) -> Habit:
        habit = self.habits.require(habit_id, user_id=user_id)
        habit.is_archived = True
        habit.is_active = False
        return self.habits.update(habit, user_id=user_id)

    # Completion events ----------------------------------------------------

    def complete(
        self,
        habit_id: int,
        *,
        user_id: int,
        completed_at: datetime | None = None,
        **log_fields: Any,
    ) -> streaks.CompletionResult:
        """Record a completion and update the habit's streak in one write."""

        validate_log_fields(**log_fields)
        log_fields = _coerce_feeling(log_fields)
        when = completed_at or self.clock()

        with self.habits.write_unit(habit_id, user_id=user_id) as unit:
            result = streaks.complete_habit(
                unit.habit, when, unit.logs, evaluator=self.evaluator, **log_fields
            )
            unit.add_log(result.log)
            unit.apply_state(result.state)

        logger.info(
            "Habit completed",
            extra={
                "habit_id": habit_id,
                "user_id": user_id,
                "streak": result.state.streak,
                "longest_streak": result.state.longest_streak,
            },
        )
        return result

    def uncomplete(
        self,
        habit_id: int,
        *,
        user_id: int,
        on: datetime | None = None,
    ) -> streaks.UncompletionResult:
        """Remove the completion logged on ``on``'s day (default today)."""

        when = on or self.clock()
        with self.habits.write_unit(habit_id, user_id=user_id) as unit:
            result = streaks.uncomplete_habit(unit.habit, unit.logs, on=when, evaluator=self.evaluator)
            if result.removed_log is not None:
                unit.remove_log(result.removed_log)
                unit.apply_state(result.state)

        if result.removed_log is None:
            logger.info("Nothing to uncomplete", extra={"habit_id": habit_id, "day": when.date()})
        else:
            logger.info(
                "Habit uncompleted",
                extra={
                    "habit_id": habit_id,
                    "user_id": user_id,
                    "streak": result.state.streak,
                    "longest_streak": result.state.longest_streak,
                },
            )
        return result

    def toggle(
        self,
        habit_id: int,
        *,
        user_id: int,
        completed: bool,
        on: datetime | None = None,
    ) -> Habit:
        """Mark ``on``'s day as done or not done; repeating a toggle is a no-op."""

        when = on or self.clock()
        if not completed:
            return self.uncomplete(habit_id, user_id=user_id, on=when).habit

        # The day check and the insert share one write unit so two toggles
        # of the same day cannot both add a log.
        with self.habits.write_unit(habit_id, user_id=user_id) as unit:
            if any(log.completed_at.date() == when.date() for log in unit.logs):
                return unit.habit
            result = streaks.complete_habit(unit.habit, when, unit.logs, evaluator=self.evaluator)
            unit.add_log(result.log)
            unit.apply_state(result.state)

        logger.info(
            "Habit toggled on",
            extra={"habit_id": habit_id, "user_id": user_id, "streak": result.state.streak},
        )
        return result.habit

    def update_log(self, log_id: int, *, user_id: int, **fields: Any) -> HabitLog:
        """Edit a log's optional fields; streaks are unaffected."""

        validate_log_fields(**fields)
        return self.logs.update_fields(log_id, user_id=user_id, **_coerce_feeling(fields))

    def delete_log(self, log_id: int, *, habit_id: int, user_id: int) -> streaks.UncompletionResult:
        """Delete one log of a habit and rescore the logs that remain."""

        with self.habits.write_unit(habit_id, user_id=user_id) as unit:
            result = streaks.remove_habit_log(unit.habit, unit.logs, log_id, evaluator=self.evaluator)
            if result.removed_log is None:
                raise HabitLogNotFoundError(log_id)
            unit.remove_log(result.removed_log)
            unit.apply_state(result.state)

        logger.info(
            "Habit log deleted",
            extra={
                "habit_id": habit_id,
                "log_id": log_id,
                "user_id": user_id,
                "streak": result.state.streak,
                "longest_streak": result.state.longest_streak,
            },
        )
        return result

    def delete_habit(self, habit_id: int, *, user_id: int) -> None:
        self.habits.delete(habit_id, user_id=user_id)
        logger.info("Habit deleted", extra={"habit_id": habit_id, "user_id": user_id})

    # Analytics reads ------------------------------------------------------

    def _range(
        self, habit: Habit, start: date | datetime | None, end: date | datetime | None
    ) -> tuple[date | datetime, date | datetime]:
        return start or habit.created_at, end or self.clock()

    def streak_history(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> list[streaks.StreakSummary]:
        """Streak summaries inside the range, scored against the full history."""

        habit = self.habits.require(habit_id, user_id=user_id)
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        summaries = streaks.compute_streak_history(habit, history, evaluator=self.evaluator)
        if start is None and end is None:
            return summaries

        lower, upper = analytics.normalize_range(*self._range(habit, start, end))
        inclusive = isinstance(end, datetime) or end is None
        return [
            summary
            for summary in summaries
            if lower <= summary.date and (summary.date <= upper if inclusive else summary.date < upper)
        ]

    def completion_summaries(
        self,
        habit_id: int,
        *,
        user_id: int,
        granularity: aggregation.Granularity | str = aggregation.Granularity.DAY,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> list[aggregation.CompletionSummary]:
        habit = self.habits.require(habit_id, user_id=user_id)
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        lower, upper = self._range(habit, start, end)
        return aggregation.aggregate_completions(
            analytics.logs_in_range(history, lower, upper), granularity
        )

    def completion_rate(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> float:
        habit = self.habits.require(habit_id, user_id=user_id)
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        return analytics.completion_rate(history, *self._range(habit, start, end))

    def average_difficulty(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> float:
        habit = self.habits.require(habit_id, user_id=user_id)
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        return analytics.average_difficulty(history, *self._range(habit, start, end))

    def stats(
        self,
        habit_id: int,
        *,
        user_id: int,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> analytics.HabitStats:
        habit = self.habits.require(habit_id, user_id=user_id)
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        return analytics.summarize_habit(
            habit, history, *self._range(habit, start, end), evaluator=self.evaluator
        )

    def latest_log(self, habit_id: int, *, user_id: int) -> Optional[HabitLog]:
        history = self.logs.list_for_habit(habit_id, user_id=user_id)
        return history[-1] if history else None


__all__ = ["HabitService", "validate_log_fields"]

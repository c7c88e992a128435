"""Streak history calculation and the completion events that drive it.

Every function here is a pure function of its arguments: the caller fetches
the habit and its ordered log history, and persists whatever comes back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from ..errors import LogHistoryError
from ..models.habit import Feeling, Habit, HabitLog
from .recurrence import ScheduleEvaluator, is_on_schedule


@dataclass(frozen=True, slots=True)
class StreakSummary:
    """Streak value recorded at one log."""

    date: datetime
    streak: int
    was_streak_broken: bool


@dataclass(frozen=True, slots=True)
class StreakState:
    """Streak fields to write back onto a habit."""

    streak: int
    longest_streak: int
    last_completed_at: Optional[datetime]


@dataclass(slots=True)
class CompletionResult:
    """Outcome of completing a habit: the log to insert and the new habit state."""

    habit: Habit
    log: HabitLog
    state: StreakState
    history: list[StreakSummary] = field(default_factory=list)


@dataclass(slots=True)
class UncompletionResult:
    """Outcome of undoing a completion; ``removed_log`` is None when nothing matched."""

    habit: Habit
    removed_log: Optional[HabitLog]
    state: StreakState
    history: list[StreakSummary] = field(default_factory=list)


def _check_history(habit: Habit, logs: Sequence[HabitLog]) -> None:
    previous: Optional[datetime] = None
    for log in logs:
        if habit.id is not None and log.habit_id is not None and log.habit_id != habit.id:
            raise LogHistoryError(
                f"Log {log.id} belongs to habit {log.habit_id}, not habit {habit.id}"
            )
        if previous is not None and log.completed_at < previous:
            raise LogHistoryError("Habit logs must be ordered by completed_at ascending")
        previous = log.completed_at


def compute_streak_history(
    habit: Habit,
    logs: Sequence[HabitLog],
    *,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> list[StreakSummary]:
    """Return one :class:`StreakSummary` per log, in log order.

    The first log is measured against ``habit.created_at``, every later log
    against the log right before it. An off-schedule log restarts the streak
    at 1 and is flagged as a break.
    """

    _check_history(habit, logs)

    policy = habit.policy
    history: list[StreakSummary] = []
    current = 0
    reference = habit.created_at
    for log in logs:
        if evaluator(policy, reference, log.completed_at):
            current += 1
            broken = False
        else:
            current = 1
            broken = True
        history.append(StreakSummary(date=log.completed_at, streak=current, was_streak_broken=broken))
        reference = log.completed_at
    return history


def compute_current_streak(
    habit: Habit,
    logs: Sequence[HabitLog],
    *,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> int:
    """Streak as of the most recent log, 0 without logs."""

    history = compute_streak_history(habit, logs, evaluator=evaluator)
    return history[-1].streak if history else 0


def compute_longest_streak(
    habit: Habit,
    logs: Sequence[HabitLog],
    *,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> int:
    """Highest streak reached anywhere in ``logs``, 0 without logs."""

    history = compute_streak_history(habit, logs, evaluator=evaluator)
    return max((summary.streak for summary in history), default=0)


def _state_from(habit: Habit, logs: Sequence[HabitLog], history: Sequence[StreakSummary]) -> StreakState:
    recomputed_longest = max((summary.streak for summary in history), default=0)
    return StreakState(
        streak=history[-1].streak if history else 0,
        # Best performance on record is preserved even if history shrinks.
        longest_streak=max(habit.longest_streak or 0, recomputed_longest),
        last_completed_at=logs[-1].completed_at if logs else None,
    )


def complete_habit(
    habit: Habit,
    completed_at: datetime,
    history: Sequence[HabitLog],
    *,
    value: float | None = None,
    difficulty: int | None = None,
    notes: str | None = None,
    details: dict[str, Any] | None = None,
    feeling: Feeling | None = None,
    photo_url: str | None = None,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> CompletionResult:
    """Build the log for a new completion and the habit's resulting streak state.

    The new log is merged into ``history`` by ``completed_at`` so back-dated
    completions are scored in their proper place.
    """

    log = HabitLog(
        habit_id=habit.id,
        user_id=habit.user_id,
        completed_at=completed_at,
        value=value,
        difficulty=difficulty,
        notes=notes,
        details=details,
        feeling=feeling,
        has_photo=bool(photo_url),
        photo_url=photo_url,
    )
    # sorted() is stable: same-timestamp logs keep the existing one first
    merged = sorted([*history, log], key=lambda item: item.completed_at)
    summaries = compute_streak_history(habit, merged, evaluator=evaluator)
    return CompletionResult(
        habit=habit,
        log=log,
        state=_state_from(habit, merged, summaries),
        history=summaries,
    )


def uncomplete_habit(
    habit: Habit,
    history: Sequence[HabitLog],
    *,
    on: datetime,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> UncompletionResult:
    """Remove the latest log on ``on``'s calendar day and recompute the streak.

    ``longest_streak`` never goes down. When no log falls on that day the
    habit's stored state is returned untouched.
    """

    day = on.date()
    target: Optional[HabitLog] = None
    for log in reversed(history):
        if log.completed_at.date() == day:
            target = log
            break

    if target is None:
        return _unchanged(habit, history, evaluator)
    return _without(habit, history, target, evaluator)


def remove_habit_log(
    habit: Habit,
    history: Sequence[HabitLog],
    log_id: int,
    *,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> UncompletionResult:
    """Drop the log with ``log_id`` from ``history`` and recompute the streak.

    Later logs are rescored against whatever now precedes them, so deleting
    a log from the middle can split a streak in two. ``longest_streak`` keeps
    its recorded best. ``removed_log`` is None when no log has that id.
    """

    target = next((log for log in history if log.id == log_id), None)
    if target is None:
        return _unchanged(habit, history, evaluator)
    return _without(habit, history, target, evaluator)


def _unchanged(
    habit: Habit, history: Sequence[HabitLog], evaluator: ScheduleEvaluator
) -> UncompletionResult:
    _check_history(habit, history)
    return UncompletionResult(
        habit=habit,
        removed_log=None,
        state=StreakState(
            streak=habit.streak or 0,
            longest_streak=habit.longest_streak or 0,
            last_completed_at=habit.last_completed_at,
        ),
        history=compute_streak_history(habit, history, evaluator=evaluator),
    )


def _without(
    habit: Habit, history: Sequence[HabitLog], target: HabitLog, evaluator: ScheduleEvaluator
) -> UncompletionResult:
    remaining = [log for log in history if log is not target]
    summaries = compute_streak_history(habit, remaining, evaluator=evaluator)
    return UncompletionResult(
        habit=habit,
        removed_log=target,
        state=_state_from(habit, remaining, summaries),
        history=summaries,
    )


def apply_state(habit: Habit, state: StreakState, *, now: datetime | None = None) -> Habit:
    """Copy ``state`` onto ``habit`` in place and return it."""

    habit.streak = state.streak
    habit.longest_streak = state.longest_streak
    habit.last_completed_at = state.last_completed_at
    habit.updated_at = now or datetime.now()
    return habit


__all__ = [
    "CompletionResult",
    "StreakState",
    "StreakSummary",
    "UncompletionResult",
    "apply_state",
    "complete_habit",
    "compute_current_streak",
    "compute_longest_streak",
    "compute_streak_history",
    "remove_habit_log",
    "uncomplete_habit",
]

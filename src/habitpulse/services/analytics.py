"""Range-scoped completion statistics for a habit."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from ..models.habit import Habit, HabitLog
from .recurrence import ScheduleEvaluator, is_on_schedule
from .streaks import compute_streak_history

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class HabitStats:
    """Dashboard numbers for one habit over a date range."""

    habit_id: Optional[int]
    start: datetime
    end: datetime
    total_completions: int
    completion_rate: float
    average_difficulty: float
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[datetime]


def normalize_range(start_date: date | datetime, end_date: date | datetime) -> tuple[datetime, datetime]:
    """Turn a date range into datetimes.

    A plain ``date`` start means midnight of that day; a plain ``date`` end
    covers that whole day, so ``2024-01-01..2024-01-10`` spans ten days.
    """

    if isinstance(start_date, datetime):
        start = start_date
    else:
        start = datetime.combine(start_date, time.min)

    if isinstance(end_date, datetime):
        end = end_date
    else:
        end = datetime.combine(end_date + timedelta(days=1), time.min)
    return start, end


def _in_range(logs: Iterable[HabitLog], start: datetime, end: datetime, *, end_inclusive: bool) -> list[HabitLog]:
    if end_inclusive:
        return [log for log in logs if start <= log.completed_at <= end]
    return [log for log in logs if start <= log.completed_at < end]


def logs_in_range(
    logs: Iterable[HabitLog],
    start_date: date | datetime,
    end_date: date | datetime,
) -> list[HabitLog]:
    """Return the logs that fall inside the (normalized) range."""

    start, end = normalize_range(start_date, end_date)
    return _in_range(logs, start, end, end_inclusive=isinstance(end_date, datetime))


def completion_rate(
    logs: Iterable[HabitLog],
    start_date: date | datetime,
    end_date: date | datetime,
) -> float:
    """Completions per day across the range.

    ``total_days`` is the range length rounded up to whole days; an empty or
    inverted range gives 0. The ratio is not clamped, several completions a
    day push it above 1.
    """

    start, end = normalize_range(start_date, end_date)
    total_days = math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)
    if total_days <= 0:
        return 0.0
    return len(logs_in_range(logs, start_date, end_date)) / total_days


def average_difficulty(
    logs: Iterable[HabitLog],
    start_date: date | datetime,
    end_date: date | datetime,
) -> float:
    """Mean difficulty of the logs in range that recorded one, else 0.

    Logs without a difficulty are left out entirely rather than counted as 0.
    """

    rated = [log.difficulty for log in logs_in_range(logs, start_date, end_date) if log.difficulty is not None]
    if not rated:
        return 0.0
    return sum(rated) / len(rated)


def summarize_habit(
    habit: Habit,
    logs: Sequence[HabitLog],
    start_date: date | datetime,
    end_date: date | datetime,
    *,
    evaluator: ScheduleEvaluator = is_on_schedule,
) -> HabitStats:
    """Build :class:`HabitStats` for ``habit``.

    ``logs`` is the habit's full ordered history: streaks are computed over all
    of it, the rate and difficulty only over the range.
    """

    start, end = normalize_range(start_date, end_date)
    history = compute_streak_history(habit, logs, evaluator=evaluator)
    recomputed_longest = max((summary.streak for summary in history), default=0)
    return HabitStats(
        habit_id=habit.id,
        start=start,
        end=end,
        total_completions=len(logs_in_range(logs, start_date, end_date)),
        completion_rate=completion_rate(logs, start_date, end_date),
        average_difficulty=average_difficulty(logs, start_date, end_date),
        current_streak=history[-1].streak if history else 0,
        longest_streak=max(habit.longest_streak or 0, recomputed_longest),
        last_completed_at=logs[-1].completed_at if logs else None,
    )


__all__ = [
    "HabitStats",
    "average_difficulty",
    "completion_rate",
    "logs_in_range",
    "normalize_range",
    "summarize_habit",
]

"""JSON views of habits, logs and analytics results."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from ...domain.policies import policy_to_payload
from ...models.habit import Habit, HabitLog
from ...services.aggregation import CompletionSummary
from ...services.analytics import HabitStats
from ...services.streaks import StreakSummary


def _iso(value: Optional[date | datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def habit_to_dict(habit: Habit) -> dict[str, Any]:
    return {
        "id": habit.id,
        "user_id": habit.user_id,
        "name": habit.name,
        "description": habit.description,
        "recurrence": policy_to_payload(habit.policy),
        "streak": habit.streak,
        "longest_streak": habit.longest_streak,
        "is_active": habit.is_active,
        "is_archived": habit.is_archived,
        "created_at": _iso(habit.created_at),
        "updated_at": _iso(habit.updated_at),
        "last_completed_at": _iso(habit.last_completed_at),
    }


def log_to_dict(log: HabitLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "habit_id": log.habit_id,
        "completed_at": _iso(log.completed_at),
        "value": log.value,
        "difficulty": log.difficulty,
        "notes": log.notes,
        "details": log.details,
        "feeling": log.feeling.value if log.feeling is not None else None,
        "has_photo": log.has_photo,
        "photo_url": log.photo_url,
    }


def streak_summary_to_dict(summary: StreakSummary) -> dict[str, Any]:
    return {
        "date": _iso(summary.date),
        "streak": summary.streak,
        "was_streak_broken": summary.was_streak_broken,
    }


def completion_summary_to_dict(summary: CompletionSummary) -> dict[str, Any]:
    """Bucket view; ``details`` lists the logs inside the bucket."""

    return {
        "date": _iso(summary.date),
        "count": summary.count,
        "details": [log_to_dict(log) for log in summary.details],
    }


def stats_to_dict(stats: HabitStats) -> dict[str, Any]:
    return {
        "habit_id": stats.habit_id,
        "start": _iso(stats.start),
        "end": _iso(stats.end),
        "total_completions": stats.total_completions,
        "completion_rate": stats.completion_rate,
        "average_difficulty": stats.average_difficulty,
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "last_completed_at": _iso(stats.last_completed_at),
    }


__all__ = [
    "completion_summary_to_dict",
    "habit_to_dict",
    "log_to_dict",
    "stats_to_dict",
    "streak_summary_to_dict",
]

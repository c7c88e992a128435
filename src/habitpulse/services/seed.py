"""Demo data for local development."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..domain.policies import DailyPolicy, MonthlyPolicy, WeeklyPolicy
from ..models.habit import Feeling
from .habits import HabitService

DEMO_USER_ID = 1


@dataclass(slots=True)
class SeedSummary:
    """Counts returned after demo seeding."""

    habits: int = 0
    logs: int = 0


def seed_demo_habits(
    service: HabitService,
    *,
    user_id: int = DEMO_USER_ID,
    days: int = 60,
    today: datetime | None = None,
    rng: random.Random | None = None,
) -> SeedSummary:
    """Create three demo habits with ``days`` of plausible history.

    Completions are played through :meth:`HabitService.complete`, so the
    stored streak fields match what the engine computes.
    """

    today = today or datetime.now()
    rng = rng or random.Random(42)
    start = datetime.combine((today - timedelta(days=days)).date(), time(7, 0))
    summary = SeedSummary()

    plans = [
        ("Morning run", DailyPolicy(), 0.8, timedelta(days=1)),
        ("Weekly review", WeeklyPolicy(days_of_week=frozenset({0})), 0.9, timedelta(days=7)),
        ("Pay bills", MonthlyPolicy(days_of_month=frozenset({1})), 1.0, timedelta(days=30)),
    ]
    feelings = list(Feeling)

    for name, policy, hit_rate, step in plans:
        habit = service.create_habit(user_id, name=name, policy=policy)
        habit.created_at = start
        service.habits.update(habit, user_id=user_id)
        summary.habits += 1

        cursor = start
        while cursor <= today:
            if rng.random() < hit_rate:
                service.complete(
                    habit.id,
                    user_id=user_id,
                    completed_at=cursor + timedelta(minutes=rng.randint(0, 180)),
                    difficulty=rng.randint(1, 5),
                    feeling=rng.choice(feelings),
                )
                summary.logs += 1
            cursor += step

    return summary


__all__ = ["SeedSummary", "seed_demo_habits"]

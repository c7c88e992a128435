"""Service module exports."""

from . import (
    aggregation,
    analytics,
    habits,
    recurrence,
    reports,
    seed,
    streaks,
)

__all__ = [
    "aggregation",
    "analytics",
    "habits",
    "recurrence",
    "reports",
    "seed",
    "streaks",
]

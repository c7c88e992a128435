"""SQLModel table exports."""

from .habit import Feeling, Habit, HabitLog

__all__ = [
    "Feeling",
    "Habit",
    "HabitLog",
]

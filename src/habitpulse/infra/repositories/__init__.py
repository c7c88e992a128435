"""Concrete repository implementations using SQLModel."""

from .habit import SQLModelHabitRepository, SQLModelHabitWriteUnit
from .habit_log import SQLModelHabitLogRepository

__all__ = [
    "SQLModelHabitLogRepository",
    "SQLModelHabitRepository",
    "SQLModelHabitWriteUnit",
]

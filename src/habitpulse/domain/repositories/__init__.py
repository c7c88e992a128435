"""Repository protocol definitions for domain layer."""

from .habit import HabitLogRepository, HabitRepository, HabitWriteUnit

__all__ = [
    "HabitLogRepository",
    "HabitRepository",
    "HabitWriteUnit",
]

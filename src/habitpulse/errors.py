"""Error types raised by HabitPulse collaborators and the streak engine."""

from __future__ import annotations


class HabitError(Exception):
    """Base class for habit domain errors."""


class HabitNotFoundError(HabitError, LookupError):
    """Raised when a habit does not exist or is not owned by the caller."""

    def __init__(self, habit_id: int | None) -> None:
        super().__init__(f"Habit with ID {habit_id} not found")
        self.habit_id = habit_id


class HabitLogNotFoundError(HabitError, LookupError):
    """Raised when a habit log does not exist or is not owned by the caller."""

    def __init__(self, log_id: int | None) -> None:
        super().__init__(f"Habit log with ID {log_id} not found")
        self.log_id = log_id


class HabitValidationError(HabitError, ValueError):
    """Raised when habit or log fields fail domain validation."""


class LogHistoryError(ValueError):
    """A log sequence handed to the engine violates its preconditions.

    This signals a caller-side bug (foreign log, unsorted history) and is
    never meant to be caught and recovered from.
    """


__all__ = [
    "HabitError",
    "HabitLogNotFoundError",
    "HabitNotFoundError",
    "HabitValidationError",
    "LogHistoryError",
]

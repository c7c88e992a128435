"""Habit and habit-log repository protocols."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Optional, Protocol

from ...models.habit import Habit, HabitLog

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from ...services.streaks import StreakState


class HabitWriteUnit(Protocol):
    """One habit's log history opened for a single atomic write."""

    habit: Habit
    logs: list[HabitLog]

    def add_log(self, log: HabitLog) -> HabitLog:
        """Stage a new log for insertion."""
        ...

    def remove_log(self, log: HabitLog) -> None:
        """Stage an existing log for deletion."""
        ...

    def apply_state(self, state: StreakState) -> Habit:
        """Stage the habit's new streak fields."""
        ...


class HabitRepository(Protocol):
    """Repository for managing habit entities."""

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def require(self, habit_id: int, *, user_id: int) -> Habit:
        """Retrieve a habit by ID or raise HabitNotFoundError."""
        ...

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List habits, optionally including inactive and archived ones."""
        ...

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit together with its logs."""
        ...

    def write_unit(self, habit_id: int, *, user_id: int) -> AbstractContextManager[HabitWriteUnit]:
        """Open the single-writer unit for a completion or uncompletion."""
        ...


class HabitLogRepository(Protocol):
    """Repository for reading habit logs and editing their optional fields."""

    def list_for_habit(self, habit_id: int, *, user_id: int) -> list[HabitLog]:
        """All logs for a habit, ordered by completed_at ascending."""
        ...

    def get_by_id(self, log_id: int, *, user_id: int) -> Optional[HabitLog]:
        """Retrieve a log by ID."""
        ...

    def require(self, log_id: int, *, user_id: int) -> HabitLog:
        """Retrieve a log by ID or raise HabitLogNotFoundError."""
        ...

    def update_fields(self, log_id: int, *, user_id: int, **fields: Any) -> HabitLog:
        """Edit optional measurement fields of a log."""
        ...

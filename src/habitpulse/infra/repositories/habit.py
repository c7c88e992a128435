"""SQLModel implementation of the habit repository."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlmodel import Session, select

from ...errors import HabitNotFoundError
from ...logging_config import get_logger
from ...models.habit import Habit, HabitLog
from ...services.streaks import StreakState, apply_state
from ..locks import HabitLockRegistry

logger = get_logger(__name__)


@dataclass
class SQLModelHabitWriteUnit:
    """Habit row and its logs, loaded in one session for an atomic write."""

    session: Session
    habit: Habit
    logs: list[HabitLog]
    added: list[HabitLog] = field(default_factory=list)

    def add_log(self, log: HabitLog) -> HabitLog:
        log.habit_id = self.habit.id
        log.user_id = self.habit.user_id
        self.session.add(log)
        self.added.append(log)
        return log

    def remove_log(self, log: HabitLog) -> None:
        self.session.delete(log)

    def apply_state(self, state: StreakState) -> Habit:
        apply_state(self.habit, state)
        self.session.add(self.habit)
        return self.habit


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        locks: HabitLockRegistry | None = None,
    ):
        """Initialize with a session factory and an optional shared lock registry."""
        self.session_factory = session_factory
        self.locks = locks or HabitLockRegistry()

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def require(self, habit_id: int, *, user_id: int) -> Habit:
        """Retrieve a habit by ID or raise HabitNotFoundError."""
        habit = self.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        return habit

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List habits, optionally including inactive and archived ones."""
        with self.session_factory() as session:
            statement = (
                select(Habit).where(Habit.user_id == user_id).order_by(Habit.name)  # type: ignore
            )

            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712
                statement = statement.where(Habit.is_archived == False)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Update an existing habit."""
        if habit.user_id != user_id:
            raise HabitNotFoundError(habit.id)
        with self.session_factory() as session:
            habit.updated_at = datetime.now()
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit together with its logs."""
        with self.locks.hold(habit_id):
            with self.session_factory() as session:
                habit = session.exec(
                    select(Habit)
                    .where(Habit.id == habit_id, Habit.user_id == user_id)
                    .with_for_update()
                ).first()
                if habit is None:
                    raise HabitNotFoundError(habit_id)
                session.delete(habit)
                session.commit()

    @contextmanager
    def write_unit(self, habit_id: int, *, user_id: int) -> Iterator[SQLModelHabitWriteUnit]:
        """Open a single-writer unit for one habit.

        Holds the habit's lock and loads the row ``FOR UPDATE`` so concurrent
        completions of the same habit run one after another. Everything staged
        on the unit commits together when the block exits, or rolls back if it
        raises.
        """
        with self.locks.hold(habit_id):
            with self.session_factory() as session:
                habit = session.exec(
                    select(Habit)
                    .where(Habit.id == habit_id, Habit.user_id == user_id)
                    .with_for_update()
                ).first()
                if habit is None:
                    raise HabitNotFoundError(habit_id)

                logs = list(
                    session.exec(
                        select(HabitLog)
                        .where(HabitLog.habit_id == habit_id)
                        .order_by(HabitLog.completed_at, HabitLog.id)  # type: ignore
                    ).all()
                )
                unit = SQLModelHabitWriteUnit(session=session, habit=habit, logs=logs)
                try:
                    yield unit
                    session.commit()
                except Exception:
                    session.rollback()
                    logger.warning("Rolled back habit write", extra={"habit_id": habit_id})
                    raise

                session.refresh(habit)
                for log in unit.added:
                    session.refresh(log)
                session.expunge_all()

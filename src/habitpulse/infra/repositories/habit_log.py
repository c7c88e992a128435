"""SQLModel implementation of the habit log repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from ...errors import HabitLogNotFoundError, HabitValidationError
from ...models.habit import HabitLog

EDITABLE_FIELDS = ("value", "difficulty", "notes", "details", "feeling", "photo_url")


class SQLModelHabitLogRepository:
    """SQLModel-based habit log repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_for_habit(self, habit_id: int, *, user_id: int) -> list[HabitLog]:
        """All logs for a habit, ordered by completed_at ascending."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog)
                .where(HabitLog.user_id == user_id)
                .where(HabitLog.habit_id == habit_id)
                .order_by(HabitLog.completed_at, HabitLog.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_by_id(self, log_id: int, *, user_id: int) -> Optional[HabitLog]:
        """Retrieve a log by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(HabitLog).where(HabitLog.id == log_id, HabitLog.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def require(self, log_id: int, *, user_id: int) -> HabitLog:
        """Retrieve a log by ID or raise HabitLogNotFoundError."""
        log = self.get_by_id(log_id, user_id=user_id)
        if log is None:
            raise HabitLogNotFoundError(log_id)
        return log

    def update_fields(self, log_id: int, *, user_id: int, **fields: Any) -> HabitLog:
        """Edit optional measurement fields; completed_at and ownership never change."""
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise HabitValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        with self.session_factory() as session:
            log = session.exec(
                select(HabitLog).where(HabitLog.id == log_id, HabitLog.user_id == user_id)
            ).first()
            if log is None:
                raise HabitLogNotFoundError(log_id)

            for key, value in fields.items():
                setattr(log, key, value)
            if "photo_url" in fields:
                log.has_photo = bool(fields["photo_url"])
            log.updated_at = datetime.now()

            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

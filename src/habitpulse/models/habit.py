"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..domain.policies import (
    RecurrencePolicy,
    RecurrenceType,
    UnrecognizedPolicy,
    policy_from_payload,
    policy_to_payload,
)
from ..errors import HabitValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


class Feeling(str, Enum):
    """How the user felt after completing a habit."""

    GREAT = "great"
    GOOD = "good"
    OKAY = "okay"
    TIRED = "tired"
    BAD = "bad"


class Habit(SQLModel, table=True):
    """A user-defined recurring commitment with its streak state."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    name: str = Field(nullable=False, max_length=50, index=True)
    description: str = Field(default="", max_length=255)

    recurrence_type: str = Field(default=RecurrenceType.DAILY.value, max_length=16)
    recurrence_times: int = Field(default=1, nullable=False)
    days_of_week: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    days_of_month: list[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    specific_dates: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    week_start: int = Field(default=1, nullable=False)

    streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    is_archived: bool = Field(default=False, nullable=False)

    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, nullable=False)
    last_completed_at: Optional[datetime] = Field(default=None)

    logs: list["HabitLog"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitLog", back_populates="habit", cascade="all, delete-orphan"
        ),
    )

    @property
    def policy(self) -> RecurrencePolicy:
        """Return the typed recurrence policy stored in the row.

        Rows whose recurrence columns no longer validate load as
        :class:`UnrecognizedPolicy`, so every completion scores off-schedule.
        """

        try:
            return policy_from_payload(
                self.recurrence_type,
                {
                    "times": self.recurrence_times,
                    "days_of_week": self.days_of_week,
                    "days_of_month": self.days_of_month,
                    "specific_dates": self.specific_dates,
                    "week_start": self.week_start,
                },
            )
        except HabitValidationError as exc:
            logger.warning(
                "Stored recurrence is invalid",
                extra={"habit_id": self.id, "recurrence": self.recurrence_type, "reason": str(exc)},
            )
            return UnrecognizedPolicy(tag=self.recurrence_type)

    def set_policy(self, policy: RecurrencePolicy) -> None:
        """Write ``policy`` back onto the recurrence columns."""

        payload = policy_to_payload(policy)
        self.recurrence_type = payload["type"]
        self.recurrence_times = payload.get("times", 1)
        self.days_of_week = payload.get("days_of_week", [])
        self.days_of_month = payload.get("days_of_month", [])
        self.specific_dates = payload.get("specific_dates", [])
        self.week_start = payload.get("week_start", 1)


class HabitLog(SQLModel, table=True):
    """One completion of a habit, attributed to ``completed_at``."""

    __tablename__: ClassVar[str] = "habit_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: Optional[int] = Field(default=None, foreign_key="habit.id", index=True)
    user_id: int = Field(nullable=False, index=True)
    completed_at: datetime = Field(nullable=False, index=True)

    value: Optional[float] = Field(default=None)
    difficulty: Optional[int] = Field(default=None, description="1 (easy) to 5 (hard)")
    notes: Optional[str] = Field(default=None, max_length=500)
    details: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    feeling: Optional[Feeling] = Field(default=None)
    has_photo: bool = Field(default=False, nullable=False)
    photo_url: Optional[str] = Field(default=None, max_length=512)

    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, nullable=False)

    habit: Optional["Habit"] = Relationship(
        back_populates="logs",
        sa_relationship=relationship("Habit", back_populates="logs"),
    )


__all__ = ["Feeling", "Habit", "HabitLog"]

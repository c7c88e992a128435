"""Request payload schemas for the habits API."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ...domain.policies import RecurrencePolicy, RecurrenceType, policy_from_payload
from ...models.habit import Feeling
from ...services.aggregation import Granularity

DateOrDateTime = Union[datetime, date]


def _parse_temporal(value: Any) -> Any:
    """Read ``YYYY-MM-DD`` as a date and anything longer as a datetime."""

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    return value


def as_datetime(value: DateOrDateTime | None) -> Optional[datetime]:
    """Widen a date to midnight of that day; datetimes pass through."""

    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


class HabitCreate(BaseModel):
    """Payload for creating a habit."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(min_length=3, max_length=50, description="Short label for the habit")
    description: str = Field(default="", max_length=255)
    recurrence: RecurrenceType = Field(default=RecurrenceType.DAILY, description="Habit frequency")
    times: int = Field(default=1, ge=1, le=100)
    days_of_week: list[int] = Field(default_factory=list, description="0 = Sunday .. 6 = Saturday")
    days_of_month: list[int] = Field(default_factory=list)
    specific_dates: list[date] = Field(default_factory=list)
    week_start: int = Field(default=1, ge=0, le=6)

    @field_validator("days_of_week")
    @classmethod
    def validate_weekdays(cls, value: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("Days of week must be between 0 and 6.")
        return sorted(set(value))

    @field_validator("days_of_month")
    @classmethod
    def validate_month_days(cls, value: list[int]) -> list[int]:
        if any(day < 1 or day > 31 for day in value):
            raise ValueError("Days of month must be between 1 and 31.")
        return sorted(set(value))

    @model_validator(mode="after")
    def ensure_custom_dates(self) -> "HabitCreate":
        """Require at least one date when the custom cadence is selected."""

        if self.recurrence is RecurrenceType.CUSTOM and not self.specific_dates:
            raise ValueError("Pick at least one date for a custom cadence.")
        return self

    def to_policy(self) -> RecurrencePolicy:
        return policy_from_payload(
            self.recurrence,
            {
                "times": self.times,
                "days_of_week": self.days_of_week,
                "days_of_month": self.days_of_month,
                "specific_dates": self.specific_dates,
                "week_start": self.week_start,
            },
        )


class LogFields(BaseModel):
    """Optional measurement fields shared by completion and edit payloads."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    value: Optional[float] = Field(default=None, ge=0)
    difficulty: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = Field(default=None, max_length=500)
    details: Optional[dict[str, Any]] = None
    feeling: Optional[Feeling] = None
    photo_url: Optional[str] = Field(default=None, max_length=512)

    def log_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"completed_at", "on"})


class CompletionRequest(LogFields):
    """Payload for completing a habit."""

    completed_at: Optional[DateOrDateTime] = None

    @field_validator("completed_at", mode="before")
    @classmethod
    def parse_completed_at(cls, value: Any) -> Any:
        return _parse_temporal(value)


class LogUpdate(LogFields):
    """Payload for editing a log's optional fields."""


class DayRequest(BaseModel):
    """Payload naming the day an uncomplete or toggle applies to."""

    model_config = ConfigDict(extra="forbid")

    on: Optional[DateOrDateTime] = None

    @field_validator("on", mode="before")
    @classmethod
    def parse_on(cls, value: Any) -> Any:
        return _parse_temporal(value)


class ToggleRequest(DayRequest):
    completed: bool = True


class RangeQuery(BaseModel):
    """Query-string parameters for analytics reads."""

    model_config = ConfigDict(extra="ignore")

    start: Optional[DateOrDateTime] = None
    end: Optional[DateOrDateTime] = None
    group_by: Granularity = Granularity.DAY

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_bounds(cls, value: Any) -> Any:
        return _parse_temporal(value)

    @model_validator(mode="after")
    def ensure_ordered(self) -> "RangeQuery":
        if self.start is not None and self.end is not None and as_datetime(self.start) > as_datetime(self.end):
            raise ValueError("start must not be after end.")
        return self


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by field name."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = tuple(error.get("loc", ()))
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


__all__ = [
    "CompletionRequest",
    "DayRequest",
    "HabitCreate",
    "LogUpdate",
    "RangeQuery",
    "ToggleRequest",
    "as_datetime",
    "validation_errors",
]

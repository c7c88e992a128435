"""Recurrence policy variants and their boundary conversions.

A habit's cadence is one of four policies. Days of the week use the stored
convention ``0 = Sunday .. 6 = Saturday``; ``sunday_to_python_weekday`` maps
them onto :meth:`datetime.date.weekday`.

Loosely typed data (form payloads, JSON columns) becomes a policy only through
:func:`policy_from_payload`; the streak engine itself only ever sees the
dataclasses below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Iterable, Mapping, Union

from ..errors import HabitValidationError


class RecurrenceType(str, Enum):
    """Supported recurrence policy tags."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


def sunday_to_python_weekday(day: int) -> int:
    """Convert a 0=Sunday weekday into Python's 0=Monday numbering."""

    return (day + 6) % 7


def _check_times(times: int) -> None:
    if times < 1:
        raise HabitValidationError("Recurrence times must be at least 1.")


@dataclass(frozen=True, slots=True)
class DailyPolicy:
    times: int = 1

    kind: ClassVar[RecurrenceType] = RecurrenceType.DAILY

    def __post_init__(self) -> None:
        _check_times(self.times)


@dataclass(frozen=True, slots=True)
class WeeklyPolicy:
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    times: int = 1
    week_start: int = 1  # Monday

    kind: ClassVar[RecurrenceType] = RecurrenceType.WEEKLY

    def __post_init__(self) -> None:
        _check_times(self.times)
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))
        if any(day not in range(7) for day in self.days_of_week):
            raise HabitValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday).")
        if self.week_start not in range(7):
            raise HabitValidationError("Week start must be between 0 (Sunday) and 6 (Saturday).")


@dataclass(frozen=True, slots=True)
class MonthlyPolicy:
    days_of_month: frozenset[int] = field(default_factory=frozenset)
    times: int = 1

    kind: ClassVar[RecurrenceType] = RecurrenceType.MONTHLY

    def __post_init__(self) -> None:
        _check_times(self.times)
        object.__setattr__(self, "days_of_month", frozenset(self.days_of_month))
        if any(day not in range(1, 32) for day in self.days_of_month):
            raise HabitValidationError("Days of month must be between 1 and 31.")


@dataclass(frozen=True, slots=True)
class CustomPolicy:
    specific_dates: frozenset[date] = field(default_factory=frozenset)
    times: int = 1

    kind: ClassVar[RecurrenceType] = RecurrenceType.CUSTOM

    def __post_init__(self) -> None:
        _check_times(self.times)
        object.__setattr__(self, "specific_dates", frozenset(self.specific_dates))


@dataclass(frozen=True, slots=True)
class UnrecognizedPolicy:
    """Placeholder for a stored tag that matches no known policy."""

    tag: str


RecurrencePolicy = Union[DailyPolicy, WeeklyPolicy, MonthlyPolicy, CustomPolicy, UnrecognizedPolicy]


def _int_set(values: Iterable[Any] | None, label: str) -> frozenset[int]:
    try:
        return frozenset(int(value) for value in (values or ()))
    except (TypeError, ValueError) as exc:
        raise HabitValidationError(f"{label} must be a list of integers.") from exc


def _date_set(values: Iterable[Any] | None) -> frozenset[date]:
    parsed: set[date] = set()
    for value in values or ():
        if isinstance(value, date):
            parsed.add(value)
            continue
        try:
            parsed.add(date.fromisoformat(str(value)[:10]))
        except ValueError as exc:
            raise HabitValidationError(f"Invalid specific date: {value!r}") from exc
    return frozenset(parsed)


def _week_start(payload: Mapping[str, Any]) -> int:
    raw = payload.get("week_start")
    try:
        return 1 if raw is None else int(raw)
    except (TypeError, ValueError) as exc:
        raise HabitValidationError("Week start must be an integer.") from exc


def _times(payload: Mapping[str, Any]) -> int:
    raw = payload.get("times", 1)
    try:
        return int(raw if raw is not None else 1)
    except (TypeError, ValueError) as exc:
        raise HabitValidationError("Recurrence times must be an integer.") from exc


def policy_from_payload(kind: str | RecurrenceType, payload: Mapping[str, Any] | None = None) -> RecurrencePolicy:
    """Build a policy from a recurrence tag and its loosely typed fields.

    Unknown tags yield :class:`UnrecognizedPolicy` rather than an error so
    that stale rows still load; schedule evaluation treats them as off-schedule.
    """

    payload = payload or {}
    tag = kind.value if isinstance(kind, RecurrenceType) else str(kind or "").strip().lower()

    if tag == RecurrenceType.DAILY.value:
        return DailyPolicy(times=_times(payload))
    if tag == RecurrenceType.WEEKLY.value:
        return WeeklyPolicy(
            days_of_week=_int_set(payload.get("days_of_week"), "Days of week"),
            times=_times(payload),
            week_start=_week_start(payload),
        )
    if tag == RecurrenceType.MONTHLY.value:
        return MonthlyPolicy(
            days_of_month=_int_set(payload.get("days_of_month"), "Days of month"),
            times=_times(payload),
        )
    if tag == RecurrenceType.CUSTOM.value:
        return CustomPolicy(
            specific_dates=_date_set(payload.get("specific_dates")),
            times=_times(payload),
        )
    return UnrecognizedPolicy(tag=tag)


def policy_to_payload(policy: RecurrencePolicy) -> dict[str, Any]:
    """Serialize a policy into JSON-friendly primitives."""

    if isinstance(policy, UnrecognizedPolicy):
        return {"type": policy.tag}

    payload: dict[str, Any] = {"type": policy.kind.value, "times": policy.times}
    if isinstance(policy, WeeklyPolicy):
        payload["days_of_week"] = sorted(policy.days_of_week)
        payload["week_start"] = policy.week_start
    elif isinstance(policy, MonthlyPolicy):
        payload["days_of_month"] = sorted(policy.days_of_month)
    elif isinstance(policy, CustomPolicy):
        payload["specific_dates"] = [d.isoformat() for d in sorted(policy.specific_dates)]
    return payload


__all__ = [
    "CustomPolicy",
    "DailyPolicy",
    "MonthlyPolicy",
    "RecurrencePolicy",
    "RecurrenceType",
    "UnrecognizedPolicy",
    "WeeklyPolicy",
    "policy_from_payload",
    "policy_to_payload",
    "sunday_to_python_weekday",
]

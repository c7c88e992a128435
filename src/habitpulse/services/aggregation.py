"""Group completion logs into day, week or month buckets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from ..models.habit import HabitLog


class Granularity(str, Enum):
    """Bucket size used when aggregating completions."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True, slots=True)
class CompletionSummary:
    """Completions that share one bucket."""

    date: date
    count: int
    details: list[HabitLog] = field(default_factory=list)


def bucket_for_day(day: date, granularity: Granularity) -> date:
    """Return the bucket date for a calendar day.

    Weeks start on Monday, so a Sunday completion lands in the week that
    began six days earlier. Month buckets are keyed on the first of the month.
    """

    if granularity is Granularity.DAY:
        return day
    if granularity is Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity is Granularity.MONTH:
        return day.replace(day=1)
    raise ValueError(f"Unsupported granularity: {granularity!r}")


def bucket_key(log: HabitLog, granularity: Granularity) -> date:
    """Return the bucket a log belongs to."""

    return bucket_for_day(log.completed_at.date(), granularity)


def aggregate_completions(
    logs: Iterable[HabitLog],
    granularity: Granularity | str = Granularity.DAY,
) -> list[CompletionSummary]:
    """Group ``logs`` by bucket and return summaries sorted by bucket date.

    Logs keep their input order inside each bucket. Empty input yields an
    empty list.
    """

    granularity = Granularity(granularity)
    buckets: dict[date, list[HabitLog]] = {}
    for log in logs:
        buckets.setdefault(bucket_key(log, granularity), []).append(log)

    return [
        CompletionSummary(date=key, count=len(grouped), details=grouped)
        for key, grouped in sorted(buckets.items(), key=lambda item: item[0])
    ]


__all__ = ["CompletionSummary", "Granularity", "aggregate_completions", "bucket_for_day", "bucket_key"]

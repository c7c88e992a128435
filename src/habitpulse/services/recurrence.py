"""Decide whether a completion lands on schedule for a recurrence policy."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable

from ..domain.policies import (
    CustomPolicy,
    DailyPolicy,
    MonthlyPolicy,
    RecurrencePolicy,
    WeeklyPolicy,
    sunday_to_python_weekday,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

ScheduleEvaluator = Callable[[RecurrencePolicy, datetime, datetime], bool]


def _day_index(value: date) -> int:
    return value.toordinal()


def _week_index(value: date, *, week_start: int) -> int:
    """Ordinal of the first day of the week containing ``value``."""

    offset = (value.weekday() - sunday_to_python_weekday(week_start)) % 7
    return (value - timedelta(days=offset)).toordinal()


def _month_index(value: date) -> int:
    return value.year * 12 + (value.month - 1)


def _within_next_period(reference: int, candidate: int, period: int = 1) -> bool:
    """True when ``candidate`` is the reference period or the one right after it."""

    return reference <= candidate <= reference + period


def is_on_schedule(policy: RecurrencePolicy, reference: datetime, candidate: datetime) -> bool:
    """Return True if ``candidate`` counts toward the streak relative to ``reference``.

    ``reference`` is the previous counted completion (or the habit's creation
    time). The candidate must fall in the same calendar period as the
    reference or the one immediately after it; skipping a whole period, or
    landing before the reference's period, breaks the streak.

    Custom policies are not enforced yet and always pass. Anything that is
    not a known policy fails closed.
    """

    ref_day = reference.date() if isinstance(reference, datetime) else reference
    cand_day = candidate.date() if isinstance(candidate, datetime) else candidate

    if isinstance(policy, DailyPolicy):
        return _within_next_period(_day_index(ref_day), _day_index(cand_day))
    if isinstance(policy, WeeklyPolicy):
        return _within_next_period(
            _week_index(ref_day, week_start=policy.week_start),
            _week_index(cand_day, week_start=policy.week_start),
            period=7,
        )
    if isinstance(policy, MonthlyPolicy):
        return _within_next_period(_month_index(ref_day), _month_index(cand_day))
    if isinstance(policy, CustomPolicy):
        # TODO(@habits): enforce specific_dates once product confirms the rule for off-date completions.
        logger.debug("Custom recurrence evaluated permissively", extra={"candidate": candidate})
        return True
    return False


__all__ = ["ScheduleEvaluator", "is_on_schedule"]

"""Tests for streak history calculation.

These tests verify the per-log streak values, including:
- Consecutive on-schedule completions
- Gaps that break the streak
- The first log measured against the habit's creation time
- Empty histories
- Rejection of malformed log sequences
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from habitpulse.domain.policies import DailyPolicy, MonthlyPolicy, UnrecognizedPolicy, WeeklyPolicy
from habitpulse.errors import LogHistoryError
from habitpulse.services.streaks import (
    StreakSummary,
    compute_current_streak,
    compute_longest_streak,
    compute_streak_history,
)
from tests.conftest import make_habit, make_log


class TestStreakHistory:
    """One summary per log, in log order."""

    def test_consecutive_days(self):
        """Three daily logs in a row build a streak of 3."""
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, day, 9)) for day in (1, 2, 3)]

        history = compute_streak_history(habit, logs)

        assert [summary.streak for summary in history] == [1, 2, 3]
        assert not any(summary.was_streak_broken for summary in history)
        assert compute_current_streak(habit, logs) == 3
        assert compute_longest_streak(habit, logs) == 3

    def test_gap_breaks_streak(self):
        """A skipped stretch restarts the streak at 1 and flags the break."""
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, 1, 9)), make_log(habit, datetime(2024, 1, 5, 9))]

        history = compute_streak_history(habit, logs)

        assert history == [
            StreakSummary(date=datetime(2024, 1, 1, 9), streak=1, was_streak_broken=False),
            StreakSummary(date=datetime(2024, 1, 5, 9), streak=1, was_streak_broken=True),
        ]
        assert compute_current_streak(habit, logs) == 1
        assert compute_longest_streak(habit, logs) == 1

    def test_weekly_consecutive_mondays(self):
        habit = make_habit(
            policy=WeeklyPolicy(days_of_week=frozenset({1})), created_at=datetime(2024, 1, 1)
        )
        logs = [make_log(habit, datetime(2024, 1, 1, 7)), make_log(habit, datetime(2024, 1, 8, 7))]

        history = compute_streak_history(habit, logs)

        assert [summary.streak for summary in history] == [1, 2]
        assert history[-1].was_streak_broken is False

    def test_streak_resumes_after_break(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        days = [1, 2, 3, 7, 8]
        logs = [make_log(habit, datetime(2024, 1, day, 9)) for day in days]

        history = compute_streak_history(habit, logs)

        assert [summary.streak for summary in history] == [1, 2, 3, 1, 2]
        assert [summary.was_streak_broken for summary in history] == [False, False, False, True, False]
        assert compute_current_streak(habit, logs) == 2
        assert compute_longest_streak(habit, logs) == 3

    def test_same_day_logs_each_count(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, 1, hour)) for hour in (7, 12, 19)]

        assert [summary.streak for summary in compute_streak_history(habit, logs)] == [1, 2, 3]

    def test_first_log_far_after_creation_is_broken(self):
        """The first log is scored against created_at, not assumed on schedule."""
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, 10, 9))]

        history = compute_streak_history(habit, logs)

        assert history == [StreakSummary(date=datetime(2024, 1, 10, 9), streak=1, was_streak_broken=True)]

    def test_monthly_across_year(self):
        habit = make_habit(policy=MonthlyPolicy(), created_at=datetime(2023, 11, 20))
        logs = [make_log(habit, datetime(2023, 12, 1)), make_log(habit, datetime(2024, 1, 1))]

        assert [summary.streak for summary in compute_streak_history(habit, logs)] == [1, 2]

    def test_unrecognized_policy_breaks_every_log(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        habit.recurrence_type = "fortnightly"
        logs = [make_log(habit, datetime(2024, 1, 1)), make_log(habit, datetime(2024, 1, 2))]

        history = compute_streak_history(habit, logs)

        assert [summary.streak for summary in history] == [1, 1]
        assert all(summary.was_streak_broken for summary in history)

    def test_invalid_stored_weekdays_break_every_log(self):
        habit = make_habit(policy=WeeklyPolicy(days_of_week=frozenset({1})), created_at=datetime(2024, 1, 1))
        habit.days_of_week = [9]
        logs = [make_log(habit, datetime(2024, 1, 1)), make_log(habit, datetime(2024, 1, 8))]

        history = compute_streak_history(habit, logs)

        assert [summary.streak for summary in history] == [1, 1]
        assert all(summary.was_streak_broken for summary in history)

    def test_custom_evaluator_is_used(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, 1)), make_log(habit, datetime(2024, 3, 1))]
        calls = []

        def always(policy, reference, candidate):
            calls.append((policy, reference, candidate))
            return True

        history = compute_streak_history(habit, logs, evaluator=always)

        assert [summary.streak for summary in history] == [1, 2]
        assert calls[0] == (DailyPolicy(), datetime(2024, 1, 1), datetime(2024, 1, 1))
        assert calls[1][1] == datetime(2024, 1, 1)


class TestEmptyAndInvariants:
    def test_empty_history(self):
        habit = make_habit()

        assert compute_streak_history(habit, []) == []
        assert compute_current_streak(habit, []) == 0
        assert compute_longest_streak(habit, []) == 0

    def test_longest_never_below_current(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        start = datetime(2024, 1, 1, 8)
        offsets = [0, 1, 2, 5, 6, 7, 8, 20]
        logs = [make_log(habit, start + timedelta(days=offset)) for offset in offsets]

        history = compute_streak_history(habit, logs)

        assert len(history) == len(logs)
        assert compute_longest_streak(habit, logs) >= compute_current_streak(habit, logs)
        assert all(summary.streak >= 1 for summary in history)
        assert all(
            summary.streak == 1 for summary in history if summary.was_streak_broken
        )

    def test_history_is_deterministic(self):
        habit = make_habit(created_at=datetime(2024, 1, 1))
        logs = [make_log(habit, datetime(2024, 1, day)) for day in (1, 2, 4)]

        assert compute_streak_history(habit, logs) == compute_streak_history(habit, logs)


class TestPreconditions:
    """Malformed input is a caller bug and raises LogHistoryError."""

    def test_unsorted_logs_rejected(self):
        habit = make_habit()
        logs = [make_log(habit, datetime(2024, 1, 3)), make_log(habit, datetime(2024, 1, 2))]

        with pytest.raises(LogHistoryError):
            compute_streak_history(habit, logs)

    def test_foreign_log_rejected(self):
        habit = make_habit(habit_id=1)
        other = make_habit(habit_id=2)

        with pytest.raises(LogHistoryError):
            compute_streak_history(habit, [make_log(other, datetime(2024, 1, 1))])

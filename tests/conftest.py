"""Pytest configuration and shared fixtures for HabitPulse tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the streak engine, repositories, and services without touching the
real app database.
"""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitpulse.domain.policies import DailyPolicy, RecurrencePolicy
from habitpulse.infra.locks import HabitLockRegistry
from habitpulse.infra.repositories import SQLModelHabitLogRepository, SQLModelHabitRepository
from habitpulse.models import Habit, HabitLog
from habitpulse.services.habits import HabitService

DEFAULT_USER_ID = 1
FIXED_NOW = datetime(2024, 1, 31, 20, 0)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test.

    Yields:
        Session: SQLModel session for test
    """
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    def factory():
        """Create a new Session with expire_on_commit disabled."""
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def habit_repo(session_factory):
    return SQLModelHabitRepository(session_factory, locks=HabitLockRegistry())


@pytest.fixture
def log_repo(session_factory):
    return SQLModelHabitLogRepository(session_factory)


@pytest.fixture
def habit_service(habit_repo, log_repo):
    """HabitService wired to the test database with a frozen clock."""

    return HabitService(habits=habit_repo, logs=log_repo, clock=lambda: FIXED_NOW)


# =============================================================================
# Test Data Factories
# =============================================================================


def make_habit(
    *,
    policy: RecurrencePolicy | None = None,
    created_at: datetime = datetime(2024, 1, 1, 8, 0),
    habit_id: int | None = 1,
    user_id: int = DEFAULT_USER_ID,
    name: str = "Test Habit",
    longest_streak: int = 0,
    streak: int = 0,
) -> Habit:
    """Build an unsaved habit for pure engine tests."""

    habit = Habit(
        id=habit_id,
        user_id=user_id,
        name=name,
        created_at=created_at,
        updated_at=created_at,
        streak=streak,
        longest_streak=longest_streak,
    )
    habit.set_policy(policy or DailyPolicy())
    return habit


def make_log(habit: Habit, completed_at: datetime, **fields: Any) -> HabitLog:
    """Build an unsaved log attached to ``habit`` by id."""

    return HabitLog(
        habit_id=habit.id,
        user_id=habit.user_id,
        completed_at=completed_at,
        **fields,
    )


@pytest.fixture
def habit_factory(db_session):
    """Factory for creating persisted test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        policy: RecurrencePolicy | None = None,
        created_at: datetime = datetime(2024, 1, 1, 8, 0),
        user_id: int = DEFAULT_USER_ID,
        is_active: bool = True,
        longest_streak: int = 0,
    ) -> Habit:
        habit = make_habit(
            policy=policy,
            created_at=created_at,
            habit_id=None,
            user_id=user_id,
            name=name,
            longest_streak=longest_streak,
        )
        habit.is_active = is_active
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def log_factory(db_session):
    """Factory for creating persisted habit logs.

    Returns:
        Callable: Function that creates and persists HabitLog instances
    """

    def _create_log(habit: Habit, completed_at: datetime, **fields: Any) -> HabitLog:
        log = make_log(habit, completed_at, **fields)
        db_session.add(log)
        db_session.commit()
        db_session.refresh(log)
        return log

    return _create_log


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 1e-9):
    """Assert that two floats are equal within a tolerance.

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"

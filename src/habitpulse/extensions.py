"""Database and service wiring for the HabitPulse Flask app."""

from __future__ import annotations

from flask import Flask, current_app

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.locks import HabitLockRegistry
from .infra.repositories import SQLModelHabitLogRepository, SQLModelHabitRepository
from .services.habits import HabitService

EXTENSION_KEY = "habitpulse"


def init_db(app: Flask) -> None:
    """Create the engine, schema and the app-scoped HabitService."""

    config: BaseConfig = app.config["HABITPULSE_CONFIG"]
    engine, session_factory = bootstrap_database(config)

    # One registry per app: every request shares the same per-habit locks.
    locks = HabitLockRegistry()
    service = HabitService(
        habits=SQLModelHabitRepository(session_factory, locks=locks),
        logs=SQLModelHabitLogRepository(session_factory),
    )
    app.extensions[EXTENSION_KEY] = {
        "engine": engine,
        "session_factory": session_factory,
        "service": service,
    }


def get_engine(app: Flask | None = None):
    """Return the engine bound to ``app`` (defaults to the current app)."""

    target = app or current_app
    return target.extensions[EXTENSION_KEY]["engine"]


def get_habit_service(app: Flask | None = None) -> HabitService:
    """Return the HabitService bound to ``app`` (defaults to the current app)."""

    target = app or current_app
    return target.extensions[EXTENSION_KEY]["service"]


__all__ = ["get_engine", "get_habit_service", "init_db"]

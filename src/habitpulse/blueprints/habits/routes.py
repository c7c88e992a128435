"""Habit routes."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import Unauthorized

from ...errors import HabitLogNotFoundError, HabitNotFoundError, HabitValidationError
from ...extensions import get_habit_service
from ...logging_config import get_logger
from . import bp
from .presenters import (
    completion_summary_to_dict,
    habit_to_dict,
    log_to_dict,
    stats_to_dict,
    streak_summary_to_dict,
)
from .schemas import (
    CompletionRequest,
    DayRequest,
    HabitCreate,
    LogUpdate,
    RangeQuery,
    ToggleRequest,
    as_datetime,
    validation_errors,
)

USER_HEADER = "X-User-Id"

logger = get_logger(__name__)


def _require_user_id() -> int:
    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw.isdigit():
        raise Unauthorized(f"{USER_HEADER} header is required")
    return int(raw)


def _json_body() -> dict[str, Any]:
    return request.get_json(silent=True) or {}


def _range_query() -> RangeQuery:
    return RangeQuery.model_validate(request.args.to_dict())


@bp.errorhandler(ValidationError)
def _invalid_payload(exc: ValidationError):
    return jsonify({"error": "invalid_payload", "fields": validation_errors(exc)}), 400


@bp.errorhandler(HabitValidationError)
def _invalid_habit(exc: HabitValidationError):
    return jsonify({"error": "invalid_payload", "message": str(exc)}), 400


@bp.errorhandler(HabitNotFoundError)
def _habit_not_found(exc: HabitNotFoundError):
    return jsonify({"error": "habit_not_found", "habit_id": exc.habit_id}), 404


@bp.errorhandler(HabitLogNotFoundError)
def _log_not_found(exc: HabitLogNotFoundError):
    return jsonify({"error": "log_not_found", "log_id": exc.log_id}), 404


@bp.errorhandler(Unauthorized)
def _unauthorized(exc: Unauthorized):
    return jsonify({"error": "unauthorized", "message": exc.description}), 401


@bp.get("/")
def list_habits():
    """List the caller's habits."""

    user_id = _require_user_id()
    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    habits = get_habit_service().list_habits(user_id=user_id, include_inactive=include_inactive)
    return jsonify([habit_to_dict(habit) for habit in habits])


@bp.post("/")
def create_habit():
    user_id = _require_user_id()
    form = HabitCreate.model_validate(_json_body())
    habit = get_habit_service().create_habit(
        user_id,
        name=form.name,
        policy=form.to_policy(),
        description=form.description,
    )
    return jsonify(habit_to_dict(habit)), 201


@bp.get("/<int:habit_id>")
def habit_detail(habit_id: int):
    """Habit with its all-time stats and most recent completion."""

    user_id = _require_user_id()
    service = get_habit_service()
    habit = service.get_habit(habit_id, user_id=user_id)
    latest = service.latest_log(habit_id, user_id=user_id)
    payload = habit_to_dict(habit)
    payload["stats"] = stats_to_dict(service.stats(habit_id, user_id=user_id))
    payload["latest_log"] = log_to_dict(latest) if latest is not None else None
    return jsonify(payload)


@bp.post("/<int:habit_id>/archive")
def archive_habit(habit_id: int):
    user_id = _require_user_id()
    habit = get_habit_service().archive_habit(habit_id, user_id=user_id)
    return jsonify(habit_to_dict(habit))


@bp.delete("/<int:habit_id>")
def delete_habit(habit_id: int):
    """Delete a habit and every log recorded for it."""

    user_id = _require_user_id()
    get_habit_service().delete_habit(habit_id, user_id=user_id)
    return jsonify({"deleted": True, "habit_id": habit_id})


@bp.post("/<int:habit_id>/complete")
def complete_habit(habit_id: int):
    """Record a completion and return the refreshed streak."""

    user_id = _require_user_id()
    form = CompletionRequest.model_validate(_json_body())
    result = get_habit_service().complete(
        habit_id,
        user_id=user_id,
        completed_at=as_datetime(form.completed_at),
        **form.log_fields(),
    )
    return (
        jsonify(
            {
                "habit": habit_to_dict(result.habit),
                "log": log_to_dict(result.log),
                "history": [streak_summary_to_dict(summary) for summary in result.history],
            }
        ),
        201,
    )


@bp.post("/<int:habit_id>/uncomplete")
def uncomplete_habit(habit_id: int):
    """Remove the completion recorded on a day (today by default)."""

    user_id = _require_user_id()
    form = DayRequest.model_validate(_json_body())
    result = get_habit_service().uncomplete(habit_id, user_id=user_id, on=as_datetime(form.on))
    removed = result.removed_log
    return jsonify(
        {
            "habit": habit_to_dict(result.habit),
            "removed_log": log_to_dict(removed) if removed is not None else None,
        }
    )


@bp.delete("/<int:habit_id>/logs/<int:log_id>")
def delete_log(habit_id: int, log_id: int):
    """Delete one completion and return the rescored streak."""

    user_id = _require_user_id()
    result = get_habit_service().delete_log(log_id, habit_id=habit_id, user_id=user_id)
    return jsonify(
        {
            "habit": habit_to_dict(result.habit),
            "removed_log": log_to_dict(result.removed_log),
            "history": [streak_summary_to_dict(summary) for summary in result.history],
        }
    )

@bp.post("/<int:habit_id>/toggle")
def toggle_habit(habit_id: int):
    """Set a day's completion state; repeating the same toggle changes nothing."""

    user_id = _require_user_id()
    form = ToggleRequest.model_validate(_json_body())
    habit = get_habit_service().toggle(
        habit_id,
        user_id=user_id,
        completed=form.completed,
        on=as_datetime(form.on),
    )
    logger.debug("Habit toggled", extra={"habit_id": habit_id, "completed": form.completed})
    return jsonify(habit_to_dict(habit))


@bp.get("/<int:habit_id>/streak-summaries")
def streak_summaries(habit_id: int):
    user_id = _require_user_id()
    query = _range_query()
    summaries = get_habit_service().streak_history(
        habit_id, user_id=user_id, start=query.start, end=query.end
    )
    return jsonify([streak_summary_to_dict(summary) for summary in summaries])


@bp.get("/<int:habit_id>/completions")
def completions(habit_id: int):
    """Completion counts bucketed by ``group_by`` (day, week or month)."""

    user_id = _require_user_id()
    query = _range_query()
    summaries = get_habit_service().completion_summaries(
        habit_id,
        user_id=user_id,
        granularity=query.group_by,
        start=query.start,
        end=query.end,
    )
    return jsonify([completion_summary_to_dict(summary) for summary in summaries])


@bp.get("/<int:habit_id>/analytics")
def analytics(habit_id: int):
    user_id = _require_user_id()
    query = _range_query()
    stats = get_habit_service().stats(habit_id, user_id=user_id, start=query.start, end=query.end)
    return jsonify(stats_to_dict(stats))


@bp.patch("/logs/<int:log_id>")
def update_log(log_id: int):
    """Edit a log's optional fields; its timestamp stays fixed."""

    user_id = _require_user_id()
    form = LogUpdate.model_validate(_json_body())
    log = get_habit_service().update_log(log_id, user_id=user_id, **form.log_fields())
    return jsonify(log_to_dict(log))

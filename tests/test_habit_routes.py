from __future__ import annotations

from datetime import datetime

import pytest

from habitpulse import create_app
from habitpulse.extensions import get_habit_service

FROZEN_NOW = datetime(2024, 1, 31, 20, 0)
HEADERS = {"X-User-Id": "1", "Accept": "application/json"}


@pytest.fixture()
def habits_app(tmp_path, monkeypatch: pytest.MonkeyPatch):
    db_path = tmp_path / "habits.db"
    monkeypatch.setenv("HABITPULSE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("HABITPULSE_DATABASE_URL", f"sqlite:///{db_path}")
    app = create_app("development")
    app.config.update(TESTING=True)
    get_habit_service(app).clock = lambda: FROZEN_NOW
    return app


@pytest.fixture()
def client(habits_app):
    with habits_app.test_client() as client:
        yield client


def _create_habit(client, **overrides) -> dict:
    payload = {"name": "Meditate", "recurrence": "daily"}
    payload.update(overrides)
    response = client.post("/habits/", json=payload, headers=HEADERS)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _backdate(app, habit_id: int, created_at: datetime) -> None:
    service = get_habit_service(app)
    habit = service.get_habit(habit_id, user_id=1)
    habit.created_at = created_at
    service.habits.update(habit, user_id=1)


def test_missing_user_header_is_unauthorized(client):
    response = client.get("/habits/")
    assert response.status_code == 401
    assert response.get_json()["error"] == "unauthorized"


def test_create_and_list(client):
    created = _create_habit(
        client, name="Gym", recurrence="weekly", days_of_week=[1, 3, 5], times=3
    )

    assert created["recurrence"] == {
        "type": "weekly",
        "times": 3,
        "days_of_week": [1, 3, 5],
        "week_start": 1,
    }
    listing = client.get("/habits/", headers=HEADERS).get_json()
    assert [habit["name"] for habit in listing] == ["Gym"]


def test_create_validation_errors(client):
    response = client.post(
        "/habits/", json={"name": "x", "recurrence": "weekly", "days_of_week": [9]}, headers=HEADERS
    )

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "invalid_payload"
    assert set(body["fields"]) == {"name", "days_of_week"}


def test_other_users_habit_is_not_found(client):
    habit = _create_habit(client)
    response = client.get(f"/habits/{habit['id']}", headers={"X-User-Id": "2"})

    assert response.status_code == 404
    assert response.get_json() == {"error": "habit_not_found", "habit_id": habit["id"]}


def test_complete_then_detail(habits_app, client):
    habit = _create_habit(client)
    _backdate(habits_app, habit["id"], datetime(2024, 1, 1, 6))

    for day in (1, 2):
        response = client.post(
            f"/habits/{habit['id']}/complete",
            json={"completed_at": f"2024-01-0{day}T08:00:00", "difficulty": 3, "feeling": "good"},
            headers=HEADERS,
        )
        assert response.status_code == 201

    body = response.get_json()
    assert body["habit"]["streak"] == 2
    assert body["log"]["feeling"] == "good"
    assert [item["streak"] for item in body["history"]] == [1, 2]

    detail = client.get(f"/habits/{habit['id']}", headers=HEADERS).get_json()
    assert detail["stats"]["total_completions"] == 2
    assert detail["latest_log"]["completed_at"] == "2024-01-02T08:00:00"


def test_complete_rejects_bad_difficulty(client):
    habit = _create_habit(client)
    response = client.post(
        f"/habits/{habit['id']}/complete", json={"difficulty": 6}, headers=HEADERS
    )

    assert response.status_code == 400
    assert "difficulty" in response.get_json()["fields"]


def test_toggle_and_uncomplete(client):
    habit = _create_habit(client)
    url = f"/habits/{habit['id']}"

    first = client.post(f"{url}/toggle", json={"completed": True}, headers=HEADERS).get_json()
    again = client.post(f"{url}/toggle", json={"completed": True}, headers=HEADERS).get_json()
    assert first["streak"] == again["streak"] == 1

    removed = client.post(f"{url}/uncomplete", json={}, headers=HEADERS).get_json()
    assert removed["removed_log"] is not None
    assert removed["habit"]["streak"] == 0

    nothing = client.post(f"{url}/uncomplete", json={"on": "2024-01-31"}, headers=HEADERS).get_json()
    assert nothing["removed_log"] is None


def test_analytics_endpoints(habits_app, client):
    habit = _create_habit(client)
    _backdate(habits_app, habit["id"], datetime(2024, 1, 1, 6))
    url = f"/habits/{habit['id']}"
    for stamp, difficulty in (("2024-01-01T08:00", 2), ("2024-01-02T08:00", 4), ("2024-01-05T08:00", None)):
        payload = {"completed_at": stamp}
        if difficulty is not None:
            payload["difficulty"] = difficulty
        client.post(f"{url}/complete", json=payload, headers=HEADERS)

    stats = client.get(f"{url}/analytics?start=2024-01-01&end=2024-01-10", headers=HEADERS).get_json()
    assert stats["completion_rate"] == pytest.approx(0.3)
    assert stats["average_difficulty"] == pytest.approx(3.0)
    assert stats["longest_streak"] == 2

    weeks = client.get(f"{url}/completions?group_by=week", headers=HEADERS).get_json()
    assert [(bucket["date"], bucket["count"]) for bucket in weeks] == [("2024-01-01", 3)]

    streaks = client.get(
        f"{url}/streak-summaries?start=2024-01-05&end=2024-01-05", headers=HEADERS
    ).get_json()
    assert streaks == [{"date": "2024-01-05T08:00:00", "streak": 1, "was_streak_broken": True}]


def test_invalid_range_query(client):
    habit = _create_habit(client)
    response = client.get(
        f"/habits/{habit['id']}/analytics?start=2024-02-01&end=2024-01-01", headers=HEADERS
    )
    assert response.status_code == 400

    bad_group = client.get(f"/habits/{habit['id']}/completions?group_by=year", headers=HEADERS)
    assert bad_group.status_code == 400


def test_patch_log(client):
    habit = _create_habit(client)
    created = client.post(f"/habits/{habit['id']}/complete", json={}, headers=HEADERS).get_json()
    log_id = created["log"]["id"]

    response = client.patch(
        f"/habits/logs/{log_id}", json={"notes": "evening session", "value": 20}, headers=HEADERS
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["notes"] == "evening session"
    assert body["value"] == 20

    missing = client.patch("/habits/logs/999", json={"notes": "x"}, headers=HEADERS)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "log_not_found"


def test_delete_log_rescores_streak(habits_app, client):
    habit = _create_habit(client)
    _backdate(habits_app, habit["id"], datetime(2024, 1, 1, 6))
    url = f"/habits/{habit['id']}"
    log_ids = [
        client.post(f"{url}/complete", json={"completed_at": f"2024-01-0{day}T08:00"}, headers=HEADERS)
        .get_json()["log"]["id"]
        for day in (1, 2, 3)
    ]

    response = client.delete(f"{url}/logs/{log_ids[1]}", headers=HEADERS)

    assert response.status_code == 200
    body = response.get_json()
    assert body["removed_log"]["id"] == log_ids[1]
    assert [(item["streak"], item["was_streak_broken"]) for item in body["history"]] == [
        (1, False),
        (1, True),
    ]
    assert body["habit"]["streak"] == 1
    assert body["habit"]["longest_streak"] == 3

    again = client.delete(f"{url}/logs/{log_ids[1]}", headers=HEADERS)
    assert again.status_code == 404
    assert again.get_json() == {"error": "log_not_found", "log_id": log_ids[1]}


def test_delete_log_of_other_habit_or_owner_is_not_found(client):
    first = _create_habit(client, name="Stretch")
    second = _create_habit(client, name="Journal")
    log_id = client.post(f"/habits/{first['id']}/complete", json={}, headers=HEADERS).get_json()["log"]["id"]

    wrong_habit = client.delete(f"/habits/{second['id']}/logs/{log_id}", headers=HEADERS)
    wrong_owner = client.delete(f"/habits/{first['id']}/logs/{log_id}", headers={"X-User-Id": "2"})

    assert wrong_habit.status_code == 404
    assert wrong_habit.get_json()["error"] == "log_not_found"
    assert wrong_owner.status_code == 404
    assert wrong_owner.get_json()["error"] == "habit_not_found"


def test_delete_habit(client):
    habit = _create_habit(client)
    url = f"/habits/{habit['id']}"
    client.post(f"{url}/complete", json={}, headers=HEADERS)

    foreign = client.delete(url, headers={"X-User-Id": "2"})
    assert foreign.status_code == 404
    assert client.get(url, headers=HEADERS).status_code == 200

    response = client.delete(url, headers=HEADERS)

    assert response.status_code == 200
    assert response.get_json() == {"deleted": True, "habit_id": habit["id"]}
    assert client.get(url, headers=HEADERS).status_code == 404
    assert client.get("/habits/", headers=HEADERS).get_json() == []

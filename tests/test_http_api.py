from datetime import datetime

import pytest

from taskboard.adapters.wire import decode_dt
from taskboard.ports.notifications import TaskEventType


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ala(signup):
    token, _ = signup()
    return auth(token)


def test_health_needs_no_token(http):
    r = http.get("health")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_tasks_require_token(http):
    r = http.get("tasks")

    assert r.status_code == 401
    assert r.json() == {"message": "No token, authorization denied"}


def test_unknown_token_is_rejected(http):
    r = http.get("tasks", headers=auth("deadbeef"))

    assert r.status_code == 401
    assert r.json()["message"] == "Token is not valid"


def test_auth_is_checked_before_body(http):
    # zły body i brak tokenu: wygrywa 401
    r = http.post("tasks", json={"title": ""})
    assert r.status_code == 401

    r = http.post("tasks", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 401


def test_register_login_me_logout(http, signup):
    # Arrange
    signup(email="Ala@Example.com")

    # Act
    login = http.post("auth/login", json={"email": "ala@example.com", "password": "secret123"})
    token = login.json()["token"]
    me = http.get("auth/me", headers=auth(token))
    out = http.post("auth/logout", headers=auth(token))
    after = http.get("auth/me", headers=auth(token))

    # Assert
    assert login.status_code == 200
    assert me.json()["user"] == {"id": login.json()["user"]["id"], "email": "ala@example.com", "name": "Ala"}
    assert "password" not in str(me.json())
    assert out.status_code == 200
    assert after.status_code == 401


def test_register_rejects_duplicate_and_bad_input(http, signup):
    signup()

    dup = http.post("auth/register", json={"name": "Ala", "email": "ala@example.com", "password": "secret123"})
    bad = http.post("auth/register", json={"name": "", "email": "nope", "password": "123"})
    wrong = http.post("auth/login", json={"email": "ala@example.com", "password": "nietoto"})

    assert dup.status_code == 409
    assert bad.status_code == 400
    assert [e["field"] for e in bad.json()["errors"]] == ["name", "email", "password"]
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid credentials"


def test_create_and_get_round_trip(http, ala):
    # Act
    r = http.post("tasks", headers=ala, json={
        "title": "  Raport  ",
        "description": "kwartalny",
        "priority": "high",
        "dueDate": "2025-01-10",
        "tags": ["praca", " ", "pilne "],
    })
    created = r.json()["task"]
    fetched = http.get(f"tasks/{created['id']}", headers=ala).json()["task"]

    # Assert
    assert r.status_code == 201
    assert r.json()["message"] == "Task created successfully"
    assert fetched == created
    assert created["title"] == "Raport"
    assert created["status"] == "todo"
    assert created["tags"] == ["praca", "pilne"]
    assert created["dueDate"] == "2025-01-10T00:00:00Z"
    assert created["isCompleted"] is False
    assert created["completedAt"] is None


def test_status_scenario_complete_then_reopen(http, ala, clock):
    # Arrange
    task = http.post("tasks", headers=ala, json={"title": "Write report"}).json()["task"]
    clock.advance(minutes=10)

    # Act
    done = http.patch(f"tasks/{task['id']}/status", headers=ala, json={"status": "completed"}).json()["task"]
    clock.advance(minutes=10)
    todo = http.patch(f"tasks/{task['id']}/status", headers=ala, json={"status": "todo"}).json()["task"]

    # Assert
    assert done["isCompleted"] is True
    assert decode_dt(done["completedAt"]) >= decode_dt(done["createdAt"])
    assert todo["isCompleted"] is False
    assert todo["completedAt"] is None
    assert decode_dt(todo["updatedAt"]) > decode_dt(done["updatedAt"])


def test_patch_status_requires_status(http, ala):
    task = http.post("tasks", headers=ala, json={"title": "A"}).json()["task"]

    r = http.patch(f"tasks/{task['id']}/status", headers=ala, json={})

    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "status", "message": "Invalid status"}]


def test_update_partial_keeps_other_fields(http, ala):
    task = http.post("tasks", headers=ala, json={"title": "A", "status": "completed", "tags": ["x"]}).json()["task"]

    r = http.put(f"tasks/{task['id']}", headers=ala, json={"description": "więcej"})
    updated = r.json()["task"]

    assert r.status_code == 200
    assert updated["description"] == "więcej"
    assert updated["tags"] == ["x"]
    assert updated["isCompleted"] is True
    assert updated["completedAt"] == task["completedAt"]


def test_validation_errors_list_fields(http, ala):
    r = http.post("tasks", headers=ala, json={"title": "", "priority": "urgent", "dueDate": "jutro"})

    assert r.status_code == 400
    assert r.json()["message"] == "Validation failed"
    assert {e["field"] for e in r.json()["errors"]} == {"title", "priority", "dueDate"}
    assert http.get("tasks", headers=ala).json()["count"] == 0


def test_malformed_body_and_id(http, ala):
    body = http.post("tasks", headers={**ala, "Content-Type": "application/json"}, content=b"{oops")
    bad_id = http.get("tasks/123", headers=ala)

    assert body.status_code == 400
    assert bad_id.status_code == 400
    assert bad_id.json() == {"message": "Invalid task ID"}


def test_invalid_list_filter(http, ala):
    r = http.get("tasks", headers=ala, params={"status": "archived"})

    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "status", "message": "Invalid status"}]


def test_other_owner_gets_same_404_as_missing(http, ala, signup):
    # Arrange
    task = http.post("tasks", headers=ala, json={"title": "Ala's"}).json()["task"]
    ola_token, _ = signup(email="ola@example.com", name="Ola")
    ola = auth(ola_token)
    missing_id = "00000000-0000-4000-8000-000000000000"

    # Act
    foreign = http.get(f"tasks/{task['id']}", headers=ola)
    missing = http.get(f"tasks/{missing_id}", headers=ola)
    put = http.put(f"tasks/{task['id']}", headers=ola, json={"title": "przejęte"})
    delete = http.delete(f"tasks/{task['id']}", headers=ola)

    # Assert
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"message": "Task not found"}
    assert put.status_code == delete.status_code == 404
    assert http.get("tasks", headers=ola).json() == {"tasks": [], "count": 0}
    assert http.get(f"tasks/{task['id']}", headers=ala).json()["task"]["title"] == "Ala's"


def test_list_sort_and_filter(http, ala, clock):
    for title, priority in (("b", "low"), ("a", "high"), ("c", "medium")):
        http.post("tasks", headers=ala, json={"title": title, "priority": priority})
        clock.advance(seconds=1)

    newest = http.get("tasks", headers=ala).json()
    by_title = http.get("tasks", headers=ala, params={"sort": "title", "order": "asc"}).json()
    high = http.get("tasks", headers=ala, params={"priority": "high"}).json()

    assert [t["title"] for t in newest["tasks"]] == ["c", "a", "b"]
    assert newest["count"] == 3
    assert [t["title"] for t in by_title["tasks"]] == ["a", "b", "c"]
    assert [t["title"] for t in high["tasks"]] == ["a"]


def test_stats(http, ala):
    assert http.get("tasks/stats", headers=ala).json()["stats"] == {
        "total": 0, "completed": 0, "inProgress": 0, "todo": 0,
        "highPriority": 0, "mediumPriority": 0, "lowPriority": 0,
    }

    http.post("tasks", headers=ala, json={"title": "A", "status": "completed", "priority": "high"})
    http.post("tasks", headers=ala, json={"title": "B", "status": "in-progress"})

    stats = http.get("tasks/stats", headers=ala).json()["stats"]
    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["inProgress"] == 1
    assert stats["highPriority"] == 1
    assert stats["mediumPriority"] == 1


def test_delete_returns_id_and_notifies_owner(http, services, signup):
    # Arrange
    token, user_id = signup()
    events = []
    services.hub.subscribe(user_id, events.append)
    task = http.post("tasks", headers=auth(token), json={"title": "A"}).json()["task"]

    # Act
    r = http.delete(f"tasks/{task['id']}", headers=auth(token))
    again = http.delete(f"tasks/{task['id']}", headers=auth(token))

    # Assert
    assert r.json() == {"message": "Task deleted successfully", "taskId": task["id"]}
    assert again.status_code == 404
    assert [e.event_type for e in events] == [TaskEventType.CREATED, TaskEventType.DELETED]
    assert events[-1].payload == {"taskId": task["id"]}


def test_timestamps_are_utc_iso(http, ala):
    task = http.post("tasks", headers=ala, json={"title": "A"}).json()["task"]

    assert task["createdAt"].endswith("Z")
    assert isinstance(decode_dt(task["createdAt"]), datetime)


def test_due_date_beyond_calendar_is_rejected(http, ala):
    r = http.post("tasks", headers=ala, json={"title": "A", "dueDate": "9999-12-31T23:00:00-05:00"})

    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "dueDate", "message": "Invalid date format"}]
    assert http.get("tasks", headers=ala).json()["count"] == 0

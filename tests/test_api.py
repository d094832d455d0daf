# ruff: noqa: INP001
"""End-to-end API flows against an in-memory store."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from doneday.core.config import Settings
from doneday.main import create_app
from doneday.services.notifications import InMemoryNotificationFacility

API = "/api/v1"


def _iso(value: datetime) -> str:
    return value.replace(tzinfo=None).isoformat()


def _in(**delta: float) -> str:
    return _iso(datetime.now(UTC) + timedelta(**delta))


@pytest.fixture
def facility() -> InMemoryNotificationFacility:
    return InMemoryNotificationFacility()


@pytest.fixture
def client(facility: InMemoryNotificationFacility) -> Iterator[TestClient]:
    app_settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        environment="test",
        database_url="sqlite+aiosqlite://",
    )
    with TestClient(create_app(app_settings, facility=facility)) as test_client:
        yield test_client


def _create(client: TestClient, path: str, **payload: Any) -> dict[str, Any]:
    resp = client.post(f"{API}{path}", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health_reports_memory_store(client: TestClient) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "persisted": False, "reminders_degraded": False}


def test_task_lifecycle(client: TestClient) -> None:
    task = _create(client, "/tasks", title="  Buy milk ", priority=2)
    assert task["title"] == "Buy milk"
    assert task["sort_order"] == 1
    task_url = f"{API}/tasks/{task['id']}"

    assert client.get(task_url).json()["priority"] == 2
    patched = client.patch(task_url, json={"notes": "oat"}).json()
    assert patched["notes"] == "oat"
    assert patched["title"] == "Buy milk"

    completed = client.post(f"{task_url}/complete").json()
    assert completed["is_completed"] is True
    assert completed["completed_at"] is not None
    listed = client.get(f"{API}/tasks", params={"filter": "completed"}).json()
    assert [row["id"] for row in listed] == [task["id"]]
    assert client.post(f"{task_url}/toggle").json()["completed_at"] is None

    assert client.delete(task_url).json()["is_deleted"] is True
    assert [row["id"] for row in client.get(f"{API}/tasks/deleted").json()] == [task["id"]]
    assert client.post(f"{task_url}/restore").json()["is_deleted"] is False

    assert client.delete(f"{task_url}/permanent").status_code == 204
    missing = client.get(task_url)
    assert missing.status_code == 404
    assert missing.json()["code"] == "task_not_found"


def test_task_validation_errors(client: TestClient) -> None:
    empty = client.post(f"{API}/tasks", json={"title": "   "})
    assert empty.status_code == 422
    assert empty.json()["code"] == "validation_failed"
    assert empty.json()["field"] == "title"

    priority = client.post(f"{API}/tasks", json={"title": "x", "priority": 9})
    assert priority.status_code == 422
    assert priority.json()["field"] == "priority"

    assert client.get(f"{API}/tasks/{uuid4()}").status_code == 404
    assert client.get(f"{API}/tasks", params={"filter": "someday"}).status_code == 422


def test_failed_actions_reach_the_error_channel(client: TestClient) -> None:
    assert client.get(f"{API}/errors/current").json() is None

    rejected = client.post(f"{API}/tasks", json={"title": "   "})
    assert rejected.status_code == 422

    current = client.get(f"{API}/errors/current").json()
    assert current["code"] == "validation_failed"
    assert current["field"] == "title"
    assert current["recovery_suggestion"]

    assert client.get(f"{API}/projects/{uuid4()}").status_code == 404
    assert client.get(f"{API}/errors/current").json()["code"] == "project_not_found"

    cleared = client.post(f"{API}/errors/acknowledge").json()
    assert cleared["code"] == "project_not_found"
    assert client.get(f"{API}/errors/current").json() is None
    assert client.post(f"{API}/errors/acknowledge").json() is None


def test_smart_lists(client: TestClient) -> None:
    _create(client, "/tasks", title="Later this week", due_date=_in(days=3))
    _create(client, "/tasks", title="Next month", due_date=_in(days=30))

    upcoming = client.get(f"{API}/tasks", params={"filter": "upcoming"}).json()
    assert [row["title"] for row in upcoming] == ["Later this week"]
    wider = client.get(f"{API}/tasks", params={"filter": "upcoming", "days": 31}).json()
    assert len(wider) == 2
    assert len(client.get(f"{API}/tasks", params={"filter": "inbox"}).json()) == 2


def test_project_flow(client: TestClient) -> None:
    project = _create(client, "/projects", name="Garden", notes="Plan")
    project_url = f"{API}/projects/{project['id']}"
    for priority in range(4):
        _create(
            client,
            "/tasks",
            title=f"task {priority}",
            priority=priority,
            project_id=project["id"],
            due_date=_iso(datetime(2000, 1, 1)) if priority == 1 else None,
        )
    first = client.get(f"{project_url}/tasks").json()[0]
    client.post(f"{API}/tasks/{first['id']}/complete")

    progress = client.get(f"{project_url}/progress").json()
    assert progress == {
        "total_tasks": 4,
        "completed_tasks": 1,
        "active_tasks": 3,
        "overdue_tasks": 1,
        "completion_percentage": 0.25,
        "average_priority": 1.5,
    }

    found = client.get(f"{API}/projects", params={"q": "gard"}).json()
    assert [row["id"] for row in found] == [project["id"]]
    overdue = client.get(f"{API}/projects", params={"filter": "with_overdue_tasks"}).json()
    assert [row["id"] for row in overdue] == [project["id"]]

    copy = client.post(f"{project_url}/duplicate")
    assert copy.status_code == 201
    assert copy.json()["name"] == "Garden Copy"

    done = client.post(f"{project_url}/complete", json={"option": "complete_all", "notes": "ok"})
    assert done.json()["is_completed"] is True
    assert done.json()["notes"] == "Plan\n\nCompleted: ok"
    assert client.get(f"{project_url}/tasks").json() == []


def test_project_delete_options(client: TestClient) -> None:
    source = _create(client, "/projects", name="Old")
    target = _create(client, "/projects", name="New")
    task = _create(client, "/tasks", title="carry", project_id=source["id"])
    source_url = f"{API}/projects/{source['id']}"

    no_target = client.delete(source_url, params={"option": "move_to_project"})
    assert no_target.status_code == 400
    assert no_target.json()["code"] == "project_deletion_failed"

    moved = client.delete(
        source_url,
        params={"option": "move_to_project", "target_id": target["id"]},
    )
    assert moved.status_code == 204
    assert client.get(source_url).status_code == 404
    assert client.get(f"{API}/tasks/{task['id']}").json()["project_id"] == target["id"]

    blank = client.post(f"{API}/projects", json={"name": ""})
    assert blank.status_code == 422
    assert blank.json()["code"] == "project_name_empty"


def test_areas_and_tags(client: TestClient) -> None:
    area = _create(client, "/areas", name="Home")
    project = _create(client, "/projects", name="Kitchen", area_id=area["id"])
    area_url = f"{API}/areas/{area['id']}"
    assert [row["id"] for row in client.get(f"{area_url}/projects").json()] == [project["id"]]

    tag = _create(client, "/tags", name="urgent")
    duplicate = client.post(f"{API}/tags", json={"name": "URGENT"})
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "tag_creation_failed"

    task = _create(client, "/tasks", title="Fix tap", area_id=area["id"])
    tagged = client.put(f"{API}/tasks/{task['id']}/tags", json={"tag_ids": [tag["id"]]})
    assert [row["name"] for row in tagged.json()] == ["urgent"]
    with_tag = client.get(f"{API}/tags/{tag['id']}/tasks").json()
    assert [row["id"] for row in with_tag] == [task["id"]]

    assert client.delete(area_url).status_code == 204
    assert client.get(f"{API}/projects/{project['id']}").json()["area_id"] is None
    assert client.get(f"{API}/tasks/{task['id']}").json()["area_id"] is None

    assert client.delete(f"{API}/tags/{tag['id']}").status_code == 204
    assert client.get(f"{API}/tasks/{task['id']}/tags").json() == []


def test_notifications_and_error_channel(
    client: TestClient,
    facility: InMemoryNotificationFacility,
) -> None:
    task = _create(
        client,
        "/tasks",
        title="Call mum",
        reminder_enabled=True,
        reminder_time=_in(hours=2),
    )

    report = client.post(f"{API}/notifications/sync").json()
    assert report["scheduled"] + report["unchanged"] == 1
    assert facility.pending[task["id"]].body == "Call mum"

    snoozed = client.post(
        f"{API}/notifications/response",
        json={"task_id": task["id"], "action": "snooze:20"},
    )
    assert snoozed.status_code == 200
    assert snoozed.json()["reminder_enabled"] is True

    bogus = client.post(
        f"{API}/notifications/response",
        json={"task_id": task["id"], "action": "bogus"},
    )
    assert bogus.status_code == 400
    assert bogus.json()["code"] == "invalid_data"

    assert client.get(f"{API}/errors/current").json()["code"] == "invalid_data"
    assert client.post(f"{API}/errors/acknowledge").json()["code"] == "invalid_data"

    assert client.get(f"{API}/errors/current").json() is None
    denied = client.post(f"{API}/notifications/authorization", json={"granted": False})
    assert denied.json() == {"ok": True}
    assert client.get("/health").json()["reminders_degraded"] is True
    assert client.get(f"{API}/errors/current").json()["code"] == "notification_permission_denied"

    cleared = client.post(f"{API}/errors/acknowledge").json()
    assert cleared["code"] == "notification_permission_denied"
    assert client.get(f"{API}/errors/current").json() is None


def test_snooze_uses_configured_default(client: TestClient) -> None:
    task = _create(client, "/tasks", title="Stretch")

    snoozed = client.post(f"{API}/tasks/{task['id']}/snooze", json={}).json()

    assert snoozed["reminder_enabled"] is True
    remind_at = datetime.fromisoformat(snoozed["reminder_time"])
    expected = datetime.now(UTC).replace(tzinfo=None) + timedelta(minutes=15)
    assert abs(remind_at - expected) < timedelta(minutes=1)

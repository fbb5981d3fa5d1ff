# tests/test_tasks.py

import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from models import Task


def create(client: TestClient, headers: dict, **fields) -> dict:
    res = client.post("/tasks", json=fields, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["data"]["task"]


def list_tasks(client: TestClient, headers: dict, **params) -> list:
    res = client.get("/tasks", params=params, headers=headers)
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["count"] == len(data["tasks"])
    return data["tasks"]


def test_create_applies_defaults(client: TestClient, alice: dict) -> None:
    task = create(client, alice, title="Buy milk")

    assert task["title"] == "Buy milk"
    assert task["priority"] == "medium"
    assert task["status"] == "todo"
    assert task["description"] is None
    assert task["dueDate"] is None
    assert task["createdAt"] and task["updatedAt"]
    assert [t["id"] for t in list_tasks(client, alice)] == [task["id"]]


def test_create_then_get_round_trips_supplied_fields(client: TestClient, alice: dict) -> None:
    created = create(
        client,
        alice,
        title="  Write report ",
        description="quarterly numbers",
        priority="high",
        status="inprogress",
        dueDate="2030-05-01T12:00:00Z",
    )

    res = client.get(f"/tasks/{created['id']}", headers=alice)

    assert res.status_code == 200
    fetched = res.json()["data"]["task"]
    assert fetched == created
    assert fetched["title"] == "Write report"
    assert fetched["priority"] == "high"
    assert fetched["status"] == "inprogress"
    assert fetched["dueDate"].startswith("2030-05-01T12:00:00")


def test_create_ignores_client_supplied_owner(client: TestClient, alice: dict, bob: dict) -> None:
    task = create(client, alice, title="Mine", userId="someone-else")

    assert task["userId"] != "someone-else"
    assert list_tasks(client, bob) == []


@pytest.mark.parametrize(
    "payload, message",
    [
        ({}, "Title is required"),
        ({"title": "   "}, "Title is required"),
        ({"title": "x" * 201}, "Title must be at most 200 characters"),
        ({"title": "ok", "description": "d" * 1001}, "Description must be at most 1000 characters"),
        ({"title": "ok", "priority": "urgent"}, "Priority must be one of: low, medium, high"),
        ({"title": "ok", "status": "blocked"}, "Status must be one of: todo, inprogress, done"),
    ],
)
def test_create_rejects_invalid_fields(client: TestClient, alice: dict, payload: dict, message: str) -> None:
    res = client.post("/tasks", json=payload, headers=alice)

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": message}


def test_create_accepts_boundary_lengths(client: TestClient, alice: dict) -> None:
    task = create(client, alice, title="x" * 200, description="d" * 1000)

    assert len(task["title"]) == 200


# -------------------------------
# Listing
# -------------------------------

def test_list_is_newest_first(client: TestClient, alice: dict, db) -> None:
    ids = [create(client, alice, title=f"task {i}")["id"] for i in range(3)]
    for day, task_id in enumerate(ids, start=1):
        db.get(Task, task_id).created_at = datetime(2024, 1, day)
    db.commit()

    assert [t["id"] for t in list_tasks(client, alice)] == list(reversed(ids))


@pytest.mark.parametrize("status", ["todo", "inprogress", "done"])
def test_list_filters_by_exact_status(client: TestClient, alice: dict, status: str) -> None:
    for s in ("todo", "inprogress", "done", status):
        create(client, alice, title=f"{s} task", status=s)

    tasks = list_tasks(client, alice, status=status)

    assert len(tasks) == 2
    assert {t["status"] for t in tasks} == {status}


def test_list_rejects_unknown_status(client: TestClient, alice: dict) -> None:
    res = client.get("/tasks", params={"status": "finished"}, headers=alice)

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Invalid status value"}


def test_search_matches_title_or_description_case_insensitively(client: TestClient, alice: dict) -> None:
    by_title = create(client, alice, title="Buy MILK")
    by_description = create(client, alice, title="Call mom", description="ask about the milkman")
    create(client, alice, title="Gym")

    found = {t["id"] for t in list_tasks(client, alice, search="mIlK")}

    assert found == {by_title["id"], by_description["id"]}


@pytest.mark.parametrize("term", ["über", "CAFÉ", "ÜBER CAFÉ"])
def test_search_folds_case_beyond_ascii(client: TestClient, alice: dict, term: str) -> None:
    task = create(client, alice, title="Über café")
    create(client, alice, title="Uber cafe")

    assert [t["id"] for t in list_tasks(client, alice, search=term)] == [task["id"]]


def test_search_keeps_surrounding_spaces(client: TestClient, alice: dict) -> None:
    spaced = create(client, alice, title="buy milk")
    create(client, alice, title="semi-milk")

    assert [t["id"] for t in list_tasks(client, alice, search=" milk")] == [spaced["id"]]
    assert len(list_tasks(client, alice, search="   ")) == 2


def test_search_without_match_is_empty_not_error(client: TestClient, alice: dict) -> None:
    create(client, alice, title="Buy milk")

    assert list_tasks(client, alice, search="zebra") == []


def test_search_treats_wildcards_literally(client: TestClient, alice: dict) -> None:
    literal = create(client, alice, title="100% done")
    create(client, alice, title="100 done")
    create(client, alice, title="snake_case")
    create(client, alice, title="snakeXcase")

    assert [t["id"] for t in list_tasks(client, alice, search="100%")] == [literal["id"]]
    assert [t["title"] for t in list_tasks(client, alice, search="e_c")] == ["snake_case"]


def test_search_combines_with_status(client: TestClient, alice: dict) -> None:
    done = create(client, alice, title="milk", status="done")
    create(client, alice, title="milk again")

    assert [t["id"] for t in list_tasks(client, alice, search="milk", status="done")] == [done["id"]]


def test_list_only_returns_callers_tasks(client: TestClient, alice: dict, bob: dict) -> None:
    create(client, alice, title="alice's")
    theirs = create(client, bob, title="bob's")

    assert [t["id"] for t in list_tasks(client, bob)] == [theirs["id"]]


# -------------------------------
# Ownership scoping and identifiers
# -------------------------------

def test_other_users_cannot_see_or_touch_a_task(client: TestClient, alice: dict, bob: dict) -> None:
    task = create(client, alice, title="private")
    url = f"/tasks/{task['id']}"

    for res in (
        client.get(url, headers=bob),
        client.put(url, json={"title": "hijacked"}, headers=bob),
        client.delete(url, headers=bob),
    ):
        assert res.status_code == 404
        assert res.json() == {"success": False, "error": "Task not found"}

    assert client.get(url, headers=alice).json()["data"]["task"]["title"] == "private"


def test_malformed_id_is_400_and_unknown_id_is_404(client: TestClient, alice: dict) -> None:
    malformed = client.get("/tasks/not-an-id", headers=alice)
    unknown = client.get(f"/tasks/{uuid.uuid4()}", headers=alice)

    assert malformed.status_code == 400
    assert malformed.json()["error"] == "Invalid task ID"
    assert unknown.status_code == 404
    assert client.delete("/tasks/not-an-id", headers=alice).status_code == 400
    assert client.put("/tasks/not-an-id", json={"title": "x"}, headers=alice).status_code == 400


# -------------------------------
# Updates and deletes
# -------------------------------

def test_partial_update_changes_only_supplied_fields(client: TestClient, alice: dict, db) -> None:
    task = create(client, alice, title="Draft", description="first pass", priority="low")
    db.get(Task, task["id"]).updated_at = datetime(2020, 1, 1)
    db.commit()

    res = client.put(f"/tasks/{task['id']}", json={"status": "done"}, headers=alice)

    assert res.status_code == 200
    updated = res.json()["data"]["task"]
    assert updated["status"] == "done"
    assert updated["updatedAt"] != "2020-01-01T00:00:00+00:00"
    for field in ("id", "title", "description", "priority", "dueDate", "userId", "createdAt"):
        assert updated[field] == task[field]


def test_update_with_explicit_null_clears_optional_fields(client: TestClient, alice: dict) -> None:
    task = create(client, alice, title="Trip", description="pack bags", dueDate="2030-01-01T00:00:00Z")

    res = client.put(f"/tasks/{task['id']}", json={"description": None, "dueDate": None}, headers=alice)

    updated = res.json()["data"]["task"]
    assert updated["description"] is None
    assert updated["dueDate"] is None
    assert updated["title"] == "Trip"


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"title": None}, "Title cannot be empty"),
        ({"title": ""}, "Title cannot be empty"),
        ({"status": None}, "Status must be one of: todo, inprogress, done"),
        ({"priority": "HIGH"}, "Priority must be one of: low, medium, high"),
    ],
)
def test_update_rejects_invalid_fields(client: TestClient, alice: dict, payload: dict, message: str) -> None:
    task = create(client, alice, title="Keep me")

    res = client.put(f"/tasks/{task['id']}", json=payload, headers=alice)

    assert res.status_code == 400
    assert res.json()["error"] == message
    assert client.get(f"/tasks/{task['id']}", headers=alice).json()["data"]["task"]["title"] == "Keep me"


def test_status_transitions_are_unrestricted(client: TestClient, alice: dict) -> None:
    task = create(client, alice, title="Loop")
    url = f"/tasks/{task['id']}"

    for status in ("done", "todo", "inprogress", "done", "todo"):
        res = client.put(url, json={"status": status}, headers=alice)
        assert res.json()["data"]["task"]["status"] == status


def test_delete_removes_and_returns_task(client: TestClient, alice: dict) -> None:
    task = create(client, alice, title="Temporary")

    res = client.delete(f"/tasks/{task['id']}", headers=alice)

    assert res.status_code == 200
    assert res.json()["data"]["task"]["id"] == task["id"]
    assert client.get(f"/tasks/{task['id']}", headers=alice).status_code == 404
    assert client.delete(f"/tasks/{task['id']}", headers=alice).status_code == 404

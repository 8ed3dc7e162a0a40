# tests/test_tasks_api.py
# PURPOSE: verify task CRUD, auth gating, validation, pagination and search.

import math
from typing import Dict

from conftest import login_headers, signin, signup, task_payload

from taskflow.db_models import TaskDB


def _create_task(client, headers, name: str = "T1", **extra) -> Dict:
    """Helper: create a task and return the task JSON."""
    r = client.post("/dashboard/task", json=task_payload(name, **extra), headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["task"]


def test_example_scenario(client):
    assert signup(client, "alice", "alice@example.com", "Secret1!").status_code == 201
    token = signin(client, "alice@example.com", "Secret1!").json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    r = client.post("/dashboard/task", json=task_payload("T1"), headers=headers)
    assert r.status_code == 200
    created = r.json()["task"]
    assert created["id"]

    r2 = client.get("/dashboard/tasks", headers=headers)
    assert r2.status_code == 200
    body = r2.json()
    assert body["total"] == 1
    assert [t["task"] for t in body["tasks"]] == ["T1"]


def test_create_applies_defaults(client, auth_headers):
    task = _create_task(client, auth_headers, "Defaults")
    assert task["status"] == "Todo"
    assert task["priority"] == "Medium"
    assert task["color"] == "#000000"
    assert task["desc"] is None
    assert task["finished_at"] is None
    assert task["subtasks"] == []


def test_routes_require_bearer_token(client):
    assert client.get("/dashboard/tasks").status_code == 403
    assert client.get("/dashboard/tasks", headers={"Authorization": "Token abc"}).status_code == 403
    assert client.get("/dashboard/tasks", headers={"Authorization": "Bearer"}).status_code == 403
    r = client.get("/dashboard/tasks", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 403
    assert r.json()["error"] == "Invalid token"


def test_missing_token_rejected_before_validation(client, db):
    r = client.post("/dashboard/task", json={"task": ""})
    assert r.status_code == 403
    assert db.query(TaskDB).count() == 0


def test_finish_before_start_rejected(client, auth_headers, db):
    r = client.post(
        "/dashboard/task",
        json=task_payload("Backwards", days=-1),
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert "finish must be later than start" in r.json()["error"]
    assert db.query(TaskDB).count() == 0


def test_invalid_enums_and_missing_fields_rejected(client, auth_headers, db):
    r = client.post("/dashboard/task", json=task_payload(priority="Urgent"), headers=auth_headers)
    assert r.status_code == 400
    assert "priority" in r.json()["error"]

    r = client.post("/dashboard/task", json=task_payload(status="Later"), headers=auth_headers)
    assert r.status_code == 400
    assert "status" in r.json()["error"]

    payload = task_payload()
    payload.pop("start")
    r = client.post("/dashboard/task", json=payload, headers=auth_headers)
    assert r.status_code == 400
    assert "start" in r.json()["error"]
    assert db.query(TaskDB).count() == 0


def test_list_orders_by_priority_then_newest(client, auth_headers):
    _create_task(client, auth_headers, "low", priority="Low")
    _create_task(client, auth_headers, "high-old", priority="High")
    _create_task(client, auth_headers, "medium", priority="Medium")
    _create_task(client, auth_headers, "high-new", priority="High")

    r = client.get("/dashboard/tasks", headers=auth_headers)
    names = [t["task"] for t in r.json()["tasks"]]
    assert names == ["high-new", "high-old", "medium", "low"]


def test_pagination_partitions_all_tasks(client, auth_headers):
    created = {_create_task(client, auth_headers, f"T{i}")["id"] for i in range(7)}
    limit = 3

    seen = []
    first = client.get(f"/dashboard/tasks?page=1&limit={limit}", headers=auth_headers).json()
    assert first["total"] == 7
    assert first["totalPages"] == math.ceil(7 / limit) == 3
    for page in range(1, first["totalPages"] + 1):
        body = client.get(
            f"/dashboard/tasks?page={page}&limit={limit}", headers=auth_headers
        ).json()
        assert body["page"] == page
        seen.extend(t["id"] for t in body["tasks"])

    assert len(seen) == len(set(seen)) == 7
    assert set(seen) == created


def test_pagination_params_fall_back_to_defaults(client, auth_headers):
    _create_task(client, auth_headers)
    body = client.get("/dashboard/tasks?page=abc&limit=-5", headers=auth_headers).json()
    assert body["page"] == 1
    assert body["limit"] == 10
    assert body["totalPages"] == 1

    empty = client.get("/dashboard/tasks?page=3", headers=auth_headers).json()
    assert empty["tasks"] == []
    assert empty["total"] == 1


def test_pagination_params_out_of_range_are_bounded(client, auth_headers):
    _create_task(client, auth_headers)

    r = client.get("/dashboard/tasks?page=99999999999999999999", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["page"] == 1
    assert len(r.json()["tasks"]) == 1

    r = client.get("/dashboard/tasks?limit=99999999999999999999", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["limit"] == 100
    assert r.json()["totalPages"] == 1

    # largest accepted page still stays within SQL integer range
    r = client.get(f"/dashboard/tasks?page={(2**63 - 1) // 100}&limit=100", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["tasks"] == []


def test_update_merges_fields(client, auth_headers):
    task = _create_task(client, auth_headers, "Patch me", priority="High", desc="keep")

    r = client.put(f"/dashboard/task/{task['id']}", json={"status": "In Progress"}, headers=auth_headers)
    assert r.status_code == 200
    updated = r.json()["task"]
    assert updated["status"] == "In Progress"
    assert updated["task"] == "Patch me"
    assert updated["priority"] == "High"
    assert updated["desc"] == "keep"


def test_update_sets_and_clears_finished_at(client, auth_headers):
    task = _create_task(client, auth_headers)
    done = client.put(f"/dashboard/task/{task['id']}", json={"status": "Done"}, headers=auth_headers)
    assert done.json()["task"]["finished_at"] is not None

    reopened = client.put(f"/dashboard/task/{task['id']}", json={"status": "Todo"}, headers=auth_headers)
    assert reopened.json()["task"]["finished_at"] is None


def test_update_rechecks_dates_against_stored_values(client, auth_headers):
    task = _create_task(client, auth_headers)
    r = client.put(
        f"/dashboard/task/{task['id']}",
        json={"finish": "2024-01-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Finish date must be later than start date"


def test_update_rejects_finish_equal_to_stored_start(client, auth_headers, db):
    task = _create_task(client, auth_headers)
    r = client.put(
        f"/dashboard/task/{task['id']}",
        json={"finish": task["start"]},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Finish date must be later than start date"
    db.expire_all()
    stored = db.query(TaskDB).filter(TaskDB.id == task["id"]).one()
    assert stored.finish > stored.start


def test_other_users_tasks_are_not_found(client, auth_headers):
    task = _create_task(client, auth_headers)
    bob = login_headers(client, "bob")

    assert client.put(f"/dashboard/task/{task['id']}", json={"task": "x"}, headers=bob).status_code == 404
    assert client.delete(f"/dashboard/task/{task['id']}", headers=bob).status_code == 404
    assert client.get("/dashboard/tasks", headers=bob).json()["total"] == 0

    still_there = client.get("/dashboard/tasks", headers=auth_headers).json()
    assert still_there["tasks"][0]["task"] == "T1"


def test_delete_task(client, auth_headers):
    task = _create_task(client, auth_headers, "To remove")

    r = client.delete(f"/dashboard/task/{task['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["task"]["id"] == task["id"]

    again = client.delete(f"/dashboard/task/{task['id']}", headers=auth_headers)
    assert again.status_code == 404
    assert again.json()["error"] == "Task not found or unauthorized"


def test_search_filters_combine(client, auth_headers):
    _create_task(client, auth_headers, "Write report", priority="High")
    _create_task(client, auth_headers, "Review REPORT draft", priority="Low", status="Done")
    _create_task(client, auth_headers, "Buy milk", priority="High", offset_days=10)

    def names(query: str):
        r = client.get(f"/dashboard/search{query}", headers=auth_headers)
        assert r.status_code == 200
        return sorted(t["task"] for t in r.json()["tasks"])

    assert names("?keyword=report") == ["Review REPORT draft", "Write report"]
    assert names("?keyword=report&priority=High") == ["Write report"]
    assert names("?status=Done") == ["Review REPORT draft"]
    assert names("?startDate=2025-01-10T00:00:00Z") == ["Buy milk"]
    assert names("?endDate=2025-01-08T00:00:00Z") == ["Review REPORT draft", "Write report"]
    assert names("") == ["Buy milk", "Review REPORT draft", "Write report"]


def test_search_keyword_is_literal(client, auth_headers):
    _create_task(client, auth_headers, "100% done")
    _create_task(client, auth_headers, "1000 things")
    _create_task(client, auth_headers, "a_b")
    _create_task(client, auth_headers, "axb")

    def names(keyword: str):
        r = client.get("/dashboard/search", params={"keyword": keyword}, headers=auth_headers)
        return sorted(t["task"] for t in r.json()["tasks"])

    assert names("0%") == ["100% done"]
    assert names("a_b") == ["a_b"]
    assert names("(.*") == []


def test_search_rejects_unknown_enum(client, auth_headers):
    r = client.get("/dashboard/search?status=Someday", headers=auth_headers)
    assert r.status_code == 400
    assert "status must be one of" in r.json()["error"]


def test_search_scoped_to_owner(client, auth_headers):
    _create_task(client, auth_headers, "mine")
    bob = login_headers(client, "bob")
    r = client.get("/dashboard/search?keyword=mine", headers=bob)
    assert r.json()["tasks"] == []

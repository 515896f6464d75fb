import uuid
from datetime import datetime, timedelta

import pytest

from todo_api.models.task import Task


def _create(client, headers, **body):
    body.setdefault("title", "Test Task")
    r = client.post("/api/tasks", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["task"]


class TestCreate:
    def test_defaults(self, client, user):
        task = _create(client, user["headers"], title="  Mi primera tarea  ")
        assert task["title"] == "Mi primera tarea"
        assert task["description"] == ""
        assert task["status"] == "todo"
        assert task["dueDate"] is None
        assert task["owner"] == user["user"]["id"]
        assert uuid.UUID(task["id"])
        assert task["createdAt"].endswith("Z")

    def test_round_trip_all_fields(self, client, user):
        created = _create(
            client,
            user["headers"],
            title="Write report",
            description="Quarterly numbers",
            status="in-progress",
            dueDate="2025-09-24T12:00:00Z",
        )
        r = client.get(f"/api/tasks/{created['id']}", headers=user["headers"])
        assert r.status_code == 200
        fetched = r.json()["task"]
        assert fetched == created
        assert fetched["title"] == "Write report"
        assert fetched["description"] == "Quarterly numbers"
        assert fetched["status"] == "in-progress"
        assert fetched["dueDate"] == "2025-09-24T12:00:00Z"

    def test_due_date_offset_is_normalized_to_utc(self, client, user):
        task = _create(client, user["headers"], dueDate="2025-09-24T14:00:00+02:00")
        assert task["dueDate"] == "2025-09-24T12:00:00Z"

    @pytest.mark.parametrize(
        "body, path",
        [
            ({}, "title"),
            ({"title": ""}, "title"),
            ({"title": "   "}, "title"),
            ({"title": "x" * 201}, "title"),
            ({"title": "ok", "description": "d" * 5001}, "description"),
            ({"title": "ok", "status": "archived"}, "status"),
            ({"title": "ok", "dueDate": "next tuesday"}, "dueDate"),
            ({"title": "ok", "dueDate": 1700000000}, "dueDate"),
            ({"title": "ok", "dueDate": "2025-09-24"}, "dueDate"),
        ],
    )
    def test_validation(self, client, user, body, path):
        r = client.post("/api/tasks", json=body, headers=user["headers"])
        assert r.status_code == 400
        data = r.json()
        assert data["message"] == "Validation failed"
        assert path in [e["path"] for e in data["errors"]]

    def test_requires_token(self, client):
        r = client.post("/api/tasks", json={"title": "Test Task"})
        assert r.status_code == 401

        r = client.post("/api/tasks", json={"title": "Test Task"}, headers={"Authorization": "Bearer invalid"})
        assert r.status_code == 401
        assert r.json() == {"message": "Invalid token"}

    def test_missing_token_is_checked_before_body(self, client):
        r = client.post("/api/tasks", json={})
        assert r.status_code == 401


class TestList:
    def test_pagination(self, client, user):
        for i in range(15):
            _create(client, user["headers"], title=f"Task {i}")

        r = client.get("/api/tasks", params={"page": 1, "limit": 10}, headers=user["headers"])
        assert r.status_code == 200
        first = r.json()
        assert len(first["items"]) == 10
        assert first["page"] == 1
        assert first["limit"] == 10
        assert first["total"] == 15
        assert first["pages"] == 2

        r = client.get("/api/tasks", params={"page": 2, "limit": 10}, headers=user["headers"])
        second = r.json()
        assert len(second["items"]) == 5
        assert second["total"] == 15
        ids = {t["id"] for t in first["items"]} | {t["id"] for t in second["items"]}
        assert len(ids) == 15

    def test_defaults_and_empty(self, client, user):
        r = client.get("/api/tasks", headers=user["headers"])
        assert r.status_code == 200
        assert r.json() == {"items": [], "page": 1, "limit": 10, "total": 0, "pages": 0}

    def test_page_past_the_end_is_empty(self, client, user):
        _create(client, user["headers"])
        r = client.get("/api/tasks", params={"page": 5}, headers=user["headers"])
        assert r.json()["items"] == []
        assert r.json()["total"] == 1

    def test_newest_first(self, client, app, user):
        ids = [_create(client, user["headers"], title=f"Task {i}")["id"] for i in range(3)]
        base = datetime(2025, 1, 1)
        session = app.state.db.SessionLocal()
        try:
            for offset, task_id in enumerate(ids):
                session.query(Task).filter(Task.id == task_id).update({"created_at": base + timedelta(hours=offset)})
            session.commit()
        finally:
            session.close()

        r = client.get("/api/tasks", headers=user["headers"])
        assert [t["id"] for t in r.json()["items"]] == list(reversed(ids))

    def test_status_filter(self, client, user):
        _create(client, user["headers"], title="a")
        _create(client, user["headers"], title="b", status="done")
        _create(client, user["headers"], title="c", status="done")

        r = client.get("/api/tasks", params={"status": "done"}, headers=user["headers"])
        data = r.json()
        assert data["total"] == 2
        assert {t["title"] for t in data["items"]} == {"b", "c"}

    def test_search_is_case_insensitive_substring(self, client, user):
        _create(client, user["headers"], title="Buy MILK")
        _create(client, user["headers"], title="buy bread")
        _create(client, user["headers"], title="Call mom")

        r = client.get("/api/tasks", params={"search": "milk"}, headers=user["headers"])
        assert [t["title"] for t in r.json()["items"]] == ["Buy MILK"]

        r = client.get("/api/tasks", params={"search": "BUY"}, headers=user["headers"])
        assert r.json()["total"] == 2

    def test_search_wildcards_are_literal(self, client, user):
        _create(client, user["headers"], title="100% done")
        _create(client, user["headers"], title="1000 things")

        r = client.get("/api/tasks", params={"search": "0%"}, headers=user["headers"])
        assert [t["title"] for t in r.json()["items"]] == ["100% done"]

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"page": "x"}, {"status": "nope"}])
    def test_invalid_query(self, client, user, params):
        r = client.get("/api/tasks", params=params, headers=user["headers"])
        assert r.status_code == 400
        assert r.json()["message"] == "Validation failed"

    def test_only_own_tasks(self, client, user, other_user):
        _create(client, user["headers"], title="mine")
        r = client.get("/api/tasks", headers=other_user["headers"])
        assert r.json()["total"] == 0


class TestGetUpdateDelete:
    def test_invalid_id(self, client, user):
        for method in ("get", "patch", "delete"):
            kwargs = {"json": {"title": "x"}} if method == "patch" else {}
            r = getattr(client, method)("/api/tasks/not-an-id", headers=user["headers"], **kwargs)
            assert r.status_code == 400
            assert r.json() == {"message": "invalid id"}

    def test_unknown_id(self, client, user):
        r = client.get(f"/api/tasks/{uuid.uuid4()}", headers=user["headers"])
        assert r.status_code == 404
        assert r.json() == {"message": "not found"}

    def test_other_users_task_is_not_found(self, client, user, other_user):
        task = _create(client, user["headers"], title="private")
        url = f"/api/tasks/{task['id']}"

        assert client.get(url, headers=other_user["headers"]).status_code == 404
        r = client.patch(url, json={"title": "hijacked"}, headers=other_user["headers"])
        assert r.status_code == 404
        assert r.json() == {"message": "not found"}
        assert client.delete(url, headers=other_user["headers"]).status_code == 404

        # still intact for the owner
        r = client.get(url, headers=user["headers"])
        assert r.json()["task"]["title"] == "private"

    def test_partial_update_status_only(self, client, user):
        task = _create(client, user["headers"], title="t", description="d", dueDate="2030-01-01T00:00:00Z")
        r = client.patch(f"/api/tasks/{task['id']}", json={"status": "done"}, headers=user["headers"])
        assert r.status_code == 200
        updated = r.json()["task"]
        assert updated["status"] == "done"
        assert updated["title"] == "t"
        assert updated["description"] == "d"
        assert updated["dueDate"] == "2030-01-01T00:00:00Z"

    def test_due_date_null_clears_and_string_sets(self, client, user):
        task = _create(client, user["headers"], dueDate="2030-01-01T00:00:00Z")
        url = f"/api/tasks/{task['id']}"

        r = client.patch(url, json={"dueDate": None}, headers=user["headers"])
        assert r.json()["task"]["dueDate"] is None

        r = client.patch(url, json={"dueDate": "2031-06-15T08:30:00Z"}, headers=user["headers"])
        assert r.json()["task"]["dueDate"] == "2031-06-15T08:30:00Z"

        # omitting it leaves it alone
        r = client.patch(url, json={"title": "renamed"}, headers=user["headers"])
        assert r.json()["task"]["dueDate"] == "2031-06-15T08:30:00Z"

    def test_any_status_transition(self, client, user):
        task = _create(client, user["headers"], status="done")
        url = f"/api/tasks/{task['id']}"
        for status in ("todo", "in-progress", "done", "todo"):
            r = client.patch(url, json={"status": status}, headers=user["headers"])
            assert r.json()["task"]["status"] == status

    @pytest.mark.parametrize(
        "body",
        [
            {"title": None},
            {"title": ""},
            {"status": None},
            {"description": None},
            {"dueDate": 1700000000},
            {"dueDate": "2025-09-24"},
        ],
    )
    def test_update_rejects_invalid_fields(self, client, user, body):
        task = _create(client, user["headers"])
        r = client.patch(f"/api/tasks/{task['id']}", json=body, headers=user["headers"])
        assert r.status_code == 400

    def test_empty_patch_is_a_noop(self, client, user):
        task = _create(client, user["headers"], title="same")
        r = client.patch(f"/api/tasks/{task['id']}", json={}, headers=user["headers"])
        assert r.status_code == 200
        assert r.json()["task"]["title"] == "same"

    def test_patch_without_body_is_a_noop(self, client, user):
        task = _create(client, user["headers"], title="same", status="in-progress")
        r = client.patch(f"/api/tasks/{task['id']}", headers=user["headers"])
        assert r.status_code == 200
        assert r.json()["task"]["title"] == "same"
        assert r.json()["task"]["status"] == "in-progress"

    def test_delete_twice(self, client, user):
        task = _create(client, user["headers"])
        url = f"/api/tasks/{task['id']}"

        r = client.delete(url, headers=user["headers"])
        assert r.status_code == 200
        assert r.json() == {"ok": True}

        assert client.delete(url, headers=user["headers"]).status_code == 404
        assert client.delete(url, headers=user["headers"]).status_code == 404
        assert client.get(url, headers=user["headers"]).status_code == 404

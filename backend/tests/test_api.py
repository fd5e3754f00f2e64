"""
HTTP-level tests: routing, status codes, error bodies and the derived
fields returned with each task.
"""

import uuid

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import EDITOR, OWNER, STRANGER, VIEWER, as_user


async def create(client, **body):
    body.setdefault("title", "Buy milk")
    response = await client.post("/tasks/", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestTaskEndpoints:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_create_and_read(self, client):
        task = await create(client, tags=["dairy", "dairy"])

        assert task["owner_id"] == OWNER
        assert task["tags"] == ["dairy"]
        assert task["completion_percentage"] == 0
        assert task["is_overdue"] is False

        response = await client.get(f"/tasks/{task['id']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Buy milk"

    @pytest.mark.asyncio
    async def test_title_validation(self, client):
        response = await client.post("/tasks/", json={"title": "ab"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"][0]["loc"] == ["body", "title"]

    @pytest.mark.asyncio
    async def test_not_found_body(self, client):
        response = await client.get(f"/tasks/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_forbidden_for_stranger(self, client):
        task = await create(client)

        response = await client.get(f"/tasks/{task['id']}", headers=as_user(STRANGER))

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_update_complete_and_activity(self, client):
        task = await create(client)
        task_id = task["id"]

        response = await client.patch(f"/tasks/{task_id}", json={"title": "Buy oat milk"})
        assert response.status_code == 200
        assert response.json()["title"] == "Buy oat milk"

        response = await client.patch(f"/tasks/{task_id}/complete")
        assert response.json()["completed"] is True
        assert response.json()["completed_at"] is not None

        response = await client.get(f"/tasks/{task_id}/activity")
        actions = [entry["action"] for entry in response.json()]
        assert actions == ["created", "updated", "completed"]
        assert response.json()[1]["changes"] == {"title": {"old": "Buy milk", "new": "Buy oat milk"}}

    @pytest.mark.asyncio
    async def test_null_title_rejected(self, client):
        task = await create(client)
        response = await client.patch(f"/tasks/{task['id']}", json={"title": None})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_time_tracking(self, client):
        task = await create(client)
        url = f"/tasks/{task['id']}/time-tracking"

        response = await client.post(url, json={"minutes": 0})
        assert response.status_code == 422
        assert response.json()["details"][0]["loc"] == ["body", "minutes"]

        await client.post(url, json={"minutes": 30})
        response = await client.post(url, json={"minutes": 45})
        assert response.json()["actual_time"] == 75

    @pytest.mark.asyncio
    async def test_soft_delete(self, client):
        task = await create(client)

        response = await client.delete(f"/tasks/{task['id']}")
        assert response.status_code == 204

        listed = await client.get("/tasks/")
        assert listed.json() == []
        fetched = await client.get(f"/tasks/{task['id']}")
        assert fetched.json()["is_deleted"] is True

    @pytest.mark.asyncio
    async def test_duplicate(self, client):
        task = await create(client)
        response = await client.post(f"/tasks/{task['id']}/duplicate")

        assert response.status_code == 201
        assert response.json()["title"] == "Buy milk (Copy)"


class TestListingEndpoints:

    @pytest.mark.asyncio
    async def test_static_paths_are_not_task_ids(self, client):
        await create(client, tags=["home"], priority="urgent")

        for path in ["stats", "overdue", "today", "archived", "tags"]:
            response = await client.get(f"/tasks/{path}")
            assert response.status_code == 200, path

        assert (await client.get("/tasks/tags")).json() == ["home"]
        assert (await client.get("/tasks/stats")).json()["urgent"] == 1
        assert len((await client.get("/tasks/tag/home")).json()) == 1
        assert len((await client.get("/tasks/priority/urgent")).json()) == 1
        assert len((await client.get("/tasks/status/todo")).json()) == 1
        assert len((await client.get("/tasks/search/milk")).json()) == 1

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, client):
        response = await client.get("/tasks/status/finished")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_short_search(self, client):
        response = await client.get("/tasks/search/m")
        assert response.status_code == 422


class TestBulkEndpoints:

    @pytest.mark.asyncio
    async def test_bulk_update_and_delete(self, client):
        ids = [(await create(client, title=f"Task {i}"))["id"] for i in range(3)]

        response = await client.patch(
            "/tasks/bulk/update",
            json={"task_ids": ids, "updates": {"priority": "high"}},
        )
        assert response.json() == {"modified_count": 3}

        response = await client.post("/tasks/bulk/delete", json={"task_ids": ids[:2]})
        assert response.json() == {"deleted_count": 2}

    @pytest.mark.asyncio
    async def test_bulk_with_foreign_task(self, client):
        mine = await create(client, title="Mine")
        theirs = (await client.post("/tasks/", json={"title": "Theirs"}, headers=as_user(EDITOR))).json()

        response = await client.patch(
            "/tasks/bulk/update",
            json={"task_ids": [mine["id"], theirs["id"]], "updates": {"priority": "high"}},
        )

        assert response.status_code == 403
        assert (await client.get(f"/tasks/{mine['id']}")).json()["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_bulk_requires_updates(self, client):
        mine = await create(client)
        response = await client.patch("/tasks/bulk/update", json={"task_ids": [mine["id"]], "updates": {}})
        assert response.status_code == 422


class TestNestedEndpoints:

    @pytest.mark.asyncio
    async def test_subtasks(self, client):
        task = await create(client)
        base = f"/tasks/{task['id']}/subtasks"

        response = await client.post(f"{base}/", json={"title": "Pick brand"})
        assert response.status_code == 201
        parent_id = response.json()["subtasks"][0]["id"]

        response = await client.post(f"{base}/", json={"title": "Check price", "parent_id": parent_id})
        child = response.json()["subtasks"][0]["subtasks"][0]

        response = await client.patch(f"{base}/{child['id']}", json={"completed": True})
        body = response.json()
        assert body["checklist_progress"] == {"total": 2, "completed": 1}
        assert body["completion_percentage"] == 50

        response = await client.delete(f"{base}/{parent_id}")
        assert response.json()["total_subtasks"] == 0

        response = await client.delete(f"{base}/{parent_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_sharing_flow(self, client):
        """
        Scenario: bob is shared the task at view, tries to edit, gets edit, edits
        Expected: 403 then 200
        """
        await client.get("/tasks/", headers=as_user(EDITOR))  # registers bob
        task = await create(client)
        task_id = task["id"]

        response = await client.post(f"/tasks/{task_id}/share", json={"user_id": EDITOR})
        assert response.status_code == 200

        response = await client.patch(f"/tasks/{task_id}", json={"title": "Buy bread"}, headers=as_user(EDITOR))
        assert response.status_code == 403

        await client.delete(f"/tasks/{task_id}/share/{EDITOR}")
        await client.post(f"/tasks/{task_id}/share", json={"user_id": EDITOR, "permission": "edit"})

        response = await client.patch(f"/tasks/{task_id}", json={"title": "Buy bread"}, headers=as_user(EDITOR))
        assert response.status_code == 200

        response = await client.post(f"/tasks/{task_id}/share", json={"user_id": EDITOR})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_share_with_unknown_user(self, client):
        task = await create(client)
        response = await client.post(f"/tasks/{task['id']}/share", json={"user_id": "ghost"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_comments_watchers_and_assignment(self, client, notifier):
        await client.get("/tasks/", headers=as_user(VIEWER))  # registers carol
        task = await create(client)
        task_id = task["id"]

        response = await client.post(f"/tasks/{task_id}/watchers", json={"watcher_id": VIEWER})
        assert response.json()["watchers"] == [VIEWER]

        response = await client.post(
            f"/tasks/{task_id}/comments",
            json={"text": "Ask carol", "mentions": [VIEWER]},
        )
        assert response.status_code == 201
        comment_id = response.json()["comments"][0]["id"]

        response = await client.patch(f"/tasks/{task_id}/comments/{comment_id}", json={"text": "Asked"})
        assert response.json()["comments"][0]["text"] == "Asked"

        response = await client.patch(f"/tasks/{task_id}/assign", json={"assignee_id": VIEWER})
        assert response.json()["assignee_id"] == VIEWER

        response = await client.patch(f"/tasks/{task_id}/unassign")
        assert response.json()["assignee_id"] is None

        await notifier.settle()
        kinds = sorted(e.kind.value for e in notifier.events)
        assert kinds == ["assigned", "mentioned"]

    @pytest.mark.asyncio
    async def test_attachments(self, client):
        task = await create(client)
        response = await client.post(
            f"/tasks/{task['id']}/attachments",
            json={"url": "https://files.example/list.txt", "file_name": "list.txt", "file_size": 12},
        )
        assert response.status_code == 201
        attachment_id = response.json()["attachments"][0]["id"]

        response = await client.delete(f"/tasks/{task['id']}/attachments/{attachment_id}")
        assert response.json()["attachments"] == []

    @pytest.mark.asyncio
    async def test_failed_commit_sends_no_notification(self, client, notifier, monkeypatch):
        """
        Scenario: assigning bob, but the request's commit fails
        Expected: the error surfaces, bob is not notified, the task stays unassigned
        """
        await client.get("/tasks/", headers=as_user(EDITOR))  # registers bob
        task = await create(client)

        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("disk full"))

        with monkeypatch.context() as patched:
            patched.setattr(AsyncSession, "commit", failing_commit)
            with pytest.raises(OperationalError):
                await client.patch(f"/tasks/{task['id']}/assign", json={"assignee_id": EDITOR})

        await notifier.settle()
        assert notifier.of_kind("assigned") == []
        assert (await client.get(f"/tasks/{task['id']}")).json()["assignee_id"] is None


class TestListingArchived:

    @pytest.mark.asyncio
    async def test_include_archived_flag(self, client):
        kept = await create(client, title="Kept")
        shelved = await create(client, title="Shelved")
        await client.patch(f"/tasks/{shelved['id']}/archive")

        default = await client.get("/tasks/")
        everything = await client.get("/tasks/", params={"include_archived": "true"})

        assert [t["id"] for t in default.json()] == [kept["id"]]
        assert sorted(t["title"] for t in everything.json()) == ["Kept", "Shelved"]

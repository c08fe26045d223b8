"""Tests for the Supabase task repository."""

import json

import httpx
import pytest
from conftest import USER_ID, Recorder, jwt_for

from projectflow.adapters.supabase_tasks import SupabaseTaskRepository
from projectflow.ports.task_repository import TaskCreate, TaskRepositoryError, TaskUpdate

ROW = {
    "id": "7f1c",
    "name": "Buy milk",
    "description": "",
    "priority": "medium",
    "status": "todo",
    "completed": False,
    "project_id": "proj-1",
    "due_date": None,
    "created_at": "2026-10-19T09:00:00+00:00",
    "updated_at": "2026-10-19T09:00:00+00:00",
}


def make_repo(recorder: Recorder, **kwargs) -> SupabaseTaskRepository:
    return SupabaseTaskRepository(
        url="https://example.supabase.co/",
        anon_key="anon-key",
        access_token=kwargs.pop("access_token", None),
        retry_initial_wait=0.01,
        transport=httpx.MockTransport(recorder),
        **kwargs,
    )


class TestCreateTask:
    async def test_maps_title_to_name(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_ACCESS_TOKEN", raising=False)
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder)

        record = await repo.create_task(
            TaskCreate(title="Buy milk", project_id="proj-1", user_id="current-user")
        )

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/tasks"
        body = json.loads(request.content)
        assert body["name"] == "Buy milk"
        assert body["completed"] is False
        assert "title" not in body
        assert "user_id" not in body
        assert record.id == "7f1c"
        assert record.title == "Buy milk"
        await repo.close()

    async def test_sends_uuid_user_id(self):
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder)

        await repo.create_task(TaskCreate(title="Buy milk", project_id="proj-1", user_id=USER_ID))

        assert json.loads(recorder.requests[0].content)["user_id"] == USER_ID
        await repo.close()

    async def test_user_id_from_access_token(self):
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder, access_token=jwt_for(USER_ID))

        await repo.create_task(TaskCreate(title="Buy milk", user_id="current-user"))

        assert json.loads(recorder.requests[0].content)["user_id"] == USER_ID
        await repo.close()

    async def test_headers(self):
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder, access_token="user-jwt")

        await repo.create_task(TaskCreate(title="Buy milk"))

        headers = recorder.requests[0].headers
        assert headers["apikey"] == "anon-key"
        assert headers["authorization"] == "Bearer user-jwt"
        assert headers["prefer"] == "return=representation"
        await repo.close()

    async def test_anon_key_used_as_bearer_by_default(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_ACCESS_TOKEN", raising=False)
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder)

        await repo.create_task(TaskCreate(title="Buy milk"))

        assert recorder.requests[0].headers["authorization"] == "Bearer anon-key"
        await repo.close()

    async def test_retries_server_errors(self):
        recorder = Recorder(
            httpx.Response(503, text="unavailable"),
            httpx.ConnectError("connection reset"),
            httpx.Response(201, json=[ROW]),
        )
        repo = make_repo(recorder)

        record = await repo.create_task(TaskCreate(title="Buy milk"))

        assert record.title == "Buy milk"
        assert len(recorder.requests) == 3
        await repo.close()

    async def test_gives_up_after_max_attempts(self):
        recorder = Recorder(*(httpx.Response(500, text="boom") for _ in range(2)))
        repo = make_repo(recorder, max_attempts=2)

        with pytest.raises(TaskRepositoryError) as exc_info:
            await repo.create_task(TaskCreate(title="Buy milk"))

        assert exc_info.value.status_code == 500
        assert len(recorder.requests) == 2
        await repo.close()

    async def test_client_error_not_retried(self):
        recorder = Recorder(httpx.Response(401, json={"message": "JWT expired"}))
        repo = make_repo(recorder)

        with pytest.raises(TaskRepositoryError) as exc_info:
            await repo.create_task(TaskCreate(title="Buy milk"))

        assert exc_info.value.status_code == 401
        assert len(recorder.requests) == 1
        await repo.close()

    async def test_rejected_insert_not_retried(self):
        recorder = Recorder(
            httpx.Response(400, json={"message": "invalid input syntax for type uuid"}),
            httpx.Response(201, json=[ROW]),
        )
        repo = make_repo(recorder)

        with pytest.raises(TaskRepositoryError, match="rejected request \\(400\\)"):
            await repo.create_task(TaskCreate(title="Buy milk"))

        assert len(recorder.requests) == 1
        assert len(recorder.responses) == 1
        await repo.close()

    async def test_empty_response(self):
        recorder = Recorder(httpx.Response(201, json=[]))
        repo = make_repo(recorder)

        with pytest.raises(TaskRepositoryError, match="no row"):
            await repo.create_task(TaskCreate(title="Buy milk"))
        await repo.close()


class TestListAndUpdate:
    async def test_list_filters_by_project(self):
        recorder = Recorder(httpx.Response(200, json=[ROW, {**ROW, "id": "8a2d", "name": "Call mom"}]))
        repo = make_repo(recorder)

        tasks = await repo.list_tasks("proj-1")

        params = recorder.requests[0].url.params
        assert params["project_id"] == "eq.proj-1"
        assert params["order"] == "created_at.desc"
        assert [t.title for t in tasks] == ["Buy milk", "Call mom"]
        await repo.close()

    async def test_update(self):
        recorder = Recorder(httpx.Response(200, json=[{**ROW, "status": "completed", "completed": True}]))
        repo = make_repo(recorder)

        record = await repo.update_task("7f1c", TaskUpdate(status="completed", completed=True))

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.7f1c"
        body = json.loads(request.content)
        assert body["status"] == "completed"
        assert "updated_at" in body
        assert record.completed is True
        await repo.close()

    async def test_update_missing_task(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        repo = make_repo(recorder)

        with pytest.raises(TaskRepositoryError) as exc_info:
            await repo.update_task("missing", TaskUpdate(status="completed"))

        assert exc_info.value.status_code == 404
        await repo.close()

    async def test_malformed_row(self):
        recorder = Recorder(httpx.Response(200, json=[{"name": "no id"}]))
        repo = make_repo(recorder)

        with pytest.raises(TaskRepositoryError, match="Malformed"):
            await repo.list_tasks()
        await repo.close()


def test_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)

    with pytest.raises(ValueError, match="SUPABASE_URL"):
        SupabaseTaskRepository()

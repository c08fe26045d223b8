"""Tests for the Supabase project repository."""

import json

import httpx
import pytest
from conftest import USER_ID, Recorder, jwt_for

from projectflow.adapters.supabase_projects import SupabaseProjectRepository
from projectflow.ports.project_repository import (
    ProjectCreate,
    ProjectRepositoryError,
    ProjectUpdate,
)

ROW = {
    "id": "9e4b",
    "name": "Website Relaunch",
    "description": "",
    "status": "planning",
    "progress": 0,
    "tags": None,
    "user_id": USER_ID,
    "created_at": "2026-10-19T09:00:00+00:00",
    "updated_at": "2026-10-19T09:00:00+00:00",
}


def make_repo(recorder: Recorder, access_token: str | None = "anon-key") -> SupabaseProjectRepository:
    return SupabaseProjectRepository(
        url="https://example.supabase.co",
        anon_key="anon-key",
        access_token=access_token,
        retry_initial_wait=0.01,
        transport=httpx.MockTransport(recorder),
    )


class TestCreateProject:
    async def test_insert(self):
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder, access_token=jwt_for(USER_ID))

        record = await repo.create_project(ProjectCreate(name="Website Relaunch", user_id="current-user"))

        request = recorder.requests[0]
        assert request.url.path == "/rest/v1/projects"
        body = json.loads(request.content)
        assert body == {
            "name": "Website Relaunch",
            "description": None,
            "status": "planning",
            "progress": 0,
            "user_id": USER_ID,
        }
        assert record.id == "9e4b"
        await repo.close()

    async def test_placeholder_user_left_out(self):
        recorder = Recorder(httpx.Response(201, json=[ROW]))
        repo = make_repo(recorder)

        await repo.create_project(ProjectCreate(name="Website Relaunch", user_id="current-user"))

        assert "user_id" not in json.loads(recorder.requests[0].content)
        await repo.close()

    async def test_rejected(self):
        recorder = Recorder(httpx.Response(403, json={"message": "row-level security"}))
        repo = make_repo(recorder)

        with pytest.raises(ProjectRepositoryError) as exc_info:
            await repo.create_project(ProjectCreate(name="Website Relaunch"))

        assert exc_info.value.status_code == 403
        assert len(recorder.requests) == 1
        await repo.close()


class TestReadAndUpdate:
    async def test_get(self):
        recorder = Recorder(httpx.Response(200, json=[ROW]))
        repo = make_repo(recorder)

        project = await repo.get_project("9e4b")

        assert recorder.requests[0].url.params["id"] == "eq.9e4b"
        assert project.name == "Website Relaunch"
        await repo.close()

    async def test_get_missing(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        repo = make_repo(recorder)

        assert await repo.get_project("nope") is None
        await repo.close()

    async def test_list(self):
        recorder = Recorder(httpx.Response(200, json=[ROW, {**ROW, "id": "1a2b", "name": "Mobile App"}]))
        repo = make_repo(recorder)

        projects = await repo.list_projects()

        assert recorder.requests[0].url.params["order"] == "created_at.desc"
        assert [p.name for p in projects] == ["Website Relaunch", "Mobile App"]
        await repo.close()

    async def test_update_progress(self):
        recorder = Recorder(httpx.Response(200, json=[{**ROW, "progress": 75}]))
        repo = make_repo(recorder)

        project = await repo.update_project("9e4b", ProjectUpdate(progress=75))

        request = recorder.requests[0]
        assert request.method == "PATCH"
        body = json.loads(request.content)
        assert body["progress"] == 75
        assert "status" not in body
        assert project.progress == 75
        await repo.close()

    async def test_update_missing(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        repo = make_repo(recorder)

        with pytest.raises(ProjectRepositoryError) as exc_info:
            await repo.update_project("nope", ProjectUpdate(progress=10))

        assert exc_info.value.status_code == 404
        await repo.close()

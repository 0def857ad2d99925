"""Tests for the REST repository adapters."""

from __future__ import annotations

import json

import httpx
import pytest

from optix_flow.adapters.rest_api import (
    RestApiProjectRepository,
    RestApiSubtaskRepository,
    RestApiTaskRepository,
)
from optix_flow.models import Project, Subtask, Task
from optix_flow.models.exceptions import RowDecodeError
from optix_flow.services.api.client import APIClient


class Recorder:
    """MockTransport handler that records requests and replays canned bodies."""

    def __init__(self, *bodies, status: int = 200):
        self.bodies = list(bodies)
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.bodies.pop(0) if self.bodies else None
        if body is None:
            return httpx.Response(204)
        return httpx.Response(self.status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def _client(tmp_config, recorder) -> APIClient:
    return APIClient(tmp_config, transport=httpx.MockTransport(recorder))


TASK_ROW = {
    "id": "srv-1",
    "title": "Write",
    "importance": 2,
    "is_urgent": False,
    "estimated_time": 30,
    "is_completed": False,
    "completed_at": None,
    "project_id": None,
    "created_at": "2025-03-14T09:30:00+00:00",
}


@pytest.mark.asyncio
async def test_task_insert_lets_backend_assign_id(tmp_config):
    recorder = Recorder([TASK_ROW])
    async with _client(tmp_config, recorder) as client:
        task = await RestApiTaskRepository(client).add(Task(id="tmp-1", title="Write"), "user-1")

    assert task.id == "srv-1"
    sent = recorder.last_json()
    assert "id" not in sent[0]
    assert sent[0]["user_id"] == "user-1"
    assert recorder.last.headers["prefer"] == "return=representation"


@pytest.mark.asyncio
async def test_task_insert_without_returned_row_is_decode_error(tmp_config):
    recorder = Recorder([])
    async with _client(tmp_config, recorder) as client:
        with pytest.raises(RowDecodeError):
            await RestApiTaskRepository(client).add(Task(id="tmp-1", title="Write"), "user-1")


@pytest.mark.asyncio
async def test_task_list_decodes_joined_rows(tmp_config):
    row = dict(TASK_ROW, subtasks=[{"id": "s1", "title": "a", "is_completed": False}])
    recorder = Recorder([row])
    async with _client(tmp_config, recorder) as client:
        tasks = await RestApiTaskRepository(client).list_all("user-1")

    assert [t.id for t in tasks] == ["srv-1"]
    assert tasks[0].subtasks[0].id == "s1"


@pytest.mark.asyncio
async def test_clear_project_nulls_project_on_matching_tasks(tmp_config):
    recorder = Recorder([])
    async with _client(tmp_config, recorder) as client:
        await RestApiTaskRepository(client).clear_project("p1")

    assert recorder.last.method == "PATCH"
    assert recorder.last.url.params["project_id"] == "eq.p1"
    assert recorder.last_json() == {"project_id": None}


@pytest.mark.asyncio
async def test_upsert_many_sends_full_rows(tmp_config):
    recorder = Recorder([])
    async with _client(tmp_config, recorder) as client:
        count = await RestApiTaskRepository(client).upsert_many(
            [Task(id="t1", title="a"), Task(id="t2", title="b")], "user-1"
        )

    assert count == 2
    assert [row["id"] for row in recorder.last_json()] == ["t1", "t2"]


@pytest.mark.asyncio
async def test_upsert_many_with_nothing_makes_no_call(tmp_config):
    recorder = Recorder()
    async with _client(tmp_config, recorder) as client:
        assert await RestApiProjectRepository(client).upsert_many([], "user-1") == 0
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_subtask_bulk_update_filters_by_id_list(tmp_config):
    recorder = Recorder([])
    async with _client(tmp_config, recorder) as client:
        await RestApiSubtaskRepository(client).bulk_update(
            ["s1", "s2"], {"is_completed": True}
        )

    assert recorder.last.url.params["id"] == 'in.("s1","s2")'


@pytest.mark.asyncio
async def test_subtask_upsert_keeps_every_field(tmp_config):
    recorder = Recorder([])
    subtask = Subtask(id="s1", title="a", estimated_time=25, is_urgent=True)
    async with _client(tmp_config, recorder) as client:
        await RestApiSubtaskRepository(client).upsert_many([("t1", subtask)])

    row = recorder.last_json()[0]
    assert row["task_id"] == "t1"
    assert row["estimated_time"] == 25
    assert row["is_urgent"] is True


@pytest.mark.asyncio
async def test_project_update_returns_stored_row(tmp_config):
    recorder = Recorder([{"id": "p1", "name": "Work", "color": "#000"}])
    async with _client(tmp_config, recorder) as client:
        project = await RestApiProjectRepository(client).update("p1", {"name": "Work"})

    assert project == Project(id="p1", name="Work", color="#000")


@pytest.mark.asyncio
async def test_project_update_without_row_returns_none(tmp_config):
    recorder = Recorder([])
    async with _client(tmp_config, recorder) as client:
        assert await RestApiProjectRepository(client).update("p1", {"name": "x"}) is None


@pytest.mark.asyncio
async def test_project_delete(tmp_config):
    recorder = Recorder()
    async with _client(tmp_config, recorder) as client:
        await RestApiProjectRepository(client).delete("p1")

    assert recorder.last.method == "DELETE"
    assert recorder.last.url.params["id"] == "eq.p1"

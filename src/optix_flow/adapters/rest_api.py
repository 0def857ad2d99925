"""REST API adapters - repository implementations using the backend data API.

These adapters wrap the table endpoints and translate rows with the row
mapper.
"""

from __future__ import annotations

from typing import Any

from optix_flow.adapters import row_mapper
from optix_flow.models import Project, Subtask, Task
from optix_flow.models.exceptions import RowDecodeError
from optix_flow.repositories.repository import (
    ProjectRepository,
    SubtaskRepository,
    TaskRepository,
)
from optix_flow.services.api.client import APIClient
from optix_flow.services.api.tables import (
    ProjectsAPI,
    SubtasksAPI,
    TasksAPI,
    eq,
    in_,
)


def _single(entity: str, rows: Any) -> dict:
    """Return the one row an insert/update is expected to send back."""
    if isinstance(rows, list) and len(rows) == 1:
        return rows[0]
    raise RowDecodeError(entity, rows, "expected exactly one returned row")


class RestApiTaskRepository(TaskRepository):
    """Task repository implementation using the REST API."""

    def __init__(self, client: APIClient):
        self.tasks_api = TasksAPI(client)

    async def list_all(self, user_id: str) -> list[Task]:
        rows = await self.tasks_api.list_with_subtasks(user_id)
        return [row_mapper.task_from_row(row) for row in rows]

    async def add(self, task: Task, user_id: str) -> Task:
        row = row_mapper.task_to_row(task, user_id, include_id=False)
        rows = await self.tasks_api.insert([row])
        return row_mapper.task_from_row(_single("task", rows))

    async def update(self, task_id: str, values: dict[str, Any]) -> None:
        await self.tasks_api.update(values, {"id": eq(task_id)})

    async def clear_project(self, project_id: str) -> None:
        await self.tasks_api.update({"project_id": None}, {"project_id": eq(project_id)})

    async def upsert_many(self, tasks: list[Task], user_id: str) -> int:
        if not tasks:
            return 0
        rows = [row_mapper.task_to_row(task, user_id) for task in tasks]
        await self.tasks_api.upsert(rows)
        return len(rows)


class RestApiSubtaskRepository(SubtaskRepository):
    """Subtask repository implementation using the REST API."""

    def __init__(self, client: APIClient):
        self.subtasks_api = SubtasksAPI(client)

    async def add(self, task_id: str, subtask: Subtask) -> Subtask:
        row = row_mapper.subtask_to_row(subtask, task_id, include_id=False)
        rows = await self.subtasks_api.insert([row])
        return row_mapper.subtask_from_row(_single("subtask", rows))

    async def update(self, subtask_id: str, values: dict[str, Any]) -> None:
        await self.subtasks_api.update(values, {"id": eq(subtask_id)})

    async def bulk_update(self, subtask_ids: list[str], values: dict[str, Any]) -> None:
        if not subtask_ids:
            return
        await self.subtasks_api.update(values, {"id": in_(subtask_ids)})

    async def upsert_many(self, subtasks: list[tuple[str, Subtask]]) -> int:
        if not subtasks:
            return 0
        rows = [row_mapper.subtask_to_row(sub, task_id) for task_id, sub in subtasks]
        await self.subtasks_api.upsert(rows)
        return len(rows)


class RestApiProjectRepository(ProjectRepository):
    """Project repository implementation using the REST API."""

    def __init__(self, client: APIClient):
        self.projects_api = ProjectsAPI(client)

    async def list_all(self, user_id: str) -> list[Project]:
        rows = await self.projects_api.select({"user_id": eq(user_id)})
        return [row_mapper.project_from_row(row) for row in rows]

    async def add(self, project: Project, user_id: str) -> Project:
        rows = await self.projects_api.insert([row_mapper.project_to_row(project, user_id)])
        return row_mapper.project_from_row(_single("project", rows))

    async def update(self, project_id: str, values: dict[str, Any]) -> Project | None:
        rows = await self.projects_api.update(values, {"id": eq(project_id)})
        if not rows:
            return None
        return row_mapper.project_from_row(rows[0])

    async def delete(self, project_id: str) -> None:
        await self.projects_api.delete({"id": eq(project_id)})

    async def upsert_many(self, projects: list[Project], user_id: str) -> int:
        if not projects:
            return 0
        rows = [row_mapper.project_to_row(project, user_id) for project in projects]
        await self.projects_api.upsert(rows)
        return len(rows)

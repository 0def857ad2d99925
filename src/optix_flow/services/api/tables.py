"""Row endpoints of the backend data API (PostgREST conventions)."""

from __future__ import annotations

from typing import Any

from optix_flow.services.api.client import APIClient

RETURN_ROWS = {"Prefer": "return=representation"}
UPSERT_ROWS = {"Prefer": "resolution=merge-duplicates,return=representation"}


def eq(value: Any) -> str:
    """Equality filter value."""
    return f"eq.{value}"


def in_(values: list[str]) -> str:
    """Membership filter value."""
    quoted = ",".join(f'"{value}"' for value in values)
    return f"in.({quoted})"


class TableAPI:
    """CRUD endpoints for one backend table."""

    table: str = ""

    def __init__(self, client: APIClient):
        self.client = client

    @property
    def path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def select(
        self, filters: dict[str, str] | None = None, *, columns: str = "*"
    ) -> list[dict]:
        """Fetch rows matching the filters."""
        params = {"select": columns}
        params.update(filters or {})
        response = await self.client.get(self.path, params=params)
        return response.json()

    async def insert(self, rows: list[dict]) -> list[dict]:
        """Insert rows and return the canonical rows."""
        response = await self.client.post(self.path, json=rows, headers=RETURN_ROWS)
        return response.json()

    async def upsert(self, rows: list[dict], *, on_conflict: str = "id") -> list[dict]:
        """Insert rows or replace existing rows with the same key."""
        response = await self.client.post(
            self.path,
            json=rows,
            params={"on_conflict": on_conflict},
            headers=UPSERT_ROWS,
        )
        return response.json()

    async def update(self, values: dict, filters: dict[str, str]) -> list[dict]:
        """Update rows matching the filters and return them."""
        response = await self.client.patch(
            self.path, json=values, params=filters, headers=RETURN_ROWS
        )
        return response.json()

    async def delete(self, filters: dict[str, str]) -> None:
        """Delete rows matching the filters."""
        await self.client.delete(self.path, params=filters)


class TasksAPI(TableAPI):
    """``tasks`` table."""

    table = "tasks"

    async def list_with_subtasks(self, user_id: str) -> list[dict]:
        """Fetch a user's tasks joined with their subtasks."""
        return await self.select({"user_id": eq(user_id)}, columns="*,subtasks(*)")


class SubtasksAPI(TableAPI):
    """``subtasks`` table."""

    table = "subtasks"


class ProjectsAPI(TableAPI):
    """``projects`` table."""

    table = "projects"

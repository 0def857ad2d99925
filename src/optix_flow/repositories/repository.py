"""Repository abstraction layer for Optix Flow.

Abstract base classes (ports) for the backend collections. The
synchronization core talks to these interfaces only; the REST adapters in
``optix_flow.adapters.rest_api`` implement them against the hosted backend.

All methods raise ``BackendError`` on failure and ``RowDecodeError`` when
the backend returns rows of an unexpected shape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from optix_flow.models import Project, Subtask, Task


class TaskRepository(ABC):
    """Abstract base class for task persistence operations."""

    @abstractmethod
    async def list_all(self, user_id: str) -> list[Task]:
        """List a user's tasks with their subtasks.

        Args:
            user_id: Owning identity

        Returns:
            List of Task objects
        """
        raise NotImplementedError(
            "TaskRepository.list_all() must be implemented by adapter"
        )

    @abstractmethod
    async def add(self, task: Task, user_id: str) -> Task:
        """Insert a task; the backend assigns the identifier.

        Args:
            task: Task to insert (its id is a local placeholder)
            user_id: Owning identity

        Returns:
            The canonical task as stored by the backend
        """
        raise NotImplementedError("TaskRepository.add() must be implemented by adapter")

    @abstractmethod
    async def update(self, task_id: str, values: dict[str, Any]) -> None:
        """Update columns of one task.

        Args:
            task_id: Task identifier
            values: Backend column values, already mapped
        """
        raise NotImplementedError(
            "TaskRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def clear_project(self, project_id: str) -> None:
        """Set project_id to NULL on every task of a project."""
        raise NotImplementedError(
            "TaskRepository.clear_project() must be implemented by adapter"
        )

    @abstractmethod
    async def upsert_many(self, tasks: list[Task], user_id: str) -> int:
        """Insert or replace tasks by identifier (subtasks excluded).

        Returns:
            Number of rows written
        """
        raise NotImplementedError(
            "TaskRepository.upsert_many() must be implemented by adapter"
        )


class SubtaskRepository(ABC):
    """Abstract base class for subtask persistence operations."""

    @abstractmethod
    async def add(self, task_id: str, subtask: Subtask) -> Subtask:
        """Insert a subtask under a task; the backend assigns the identifier.

        Returns:
            The canonical subtask as stored by the backend
        """
        raise NotImplementedError(
            "SubtaskRepository.add() must be implemented by adapter"
        )

    @abstractmethod
    async def update(self, subtask_id: str, values: dict[str, Any]) -> None:
        """Update columns of one subtask."""
        raise NotImplementedError(
            "SubtaskRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def bulk_update(self, subtask_ids: list[str], values: dict[str, Any]) -> None:
        """Apply the same column values to several subtasks in one call."""
        raise NotImplementedError(
            "SubtaskRepository.bulk_update() must be implemented by adapter"
        )

    @abstractmethod
    async def upsert_many(self, subtasks: list[tuple[str, Subtask]]) -> int:
        """Insert or replace subtasks by identifier.

        Args:
            subtasks: (parent task id, subtask) pairs

        Returns:
            Number of rows written
        """
        raise NotImplementedError(
            "SubtaskRepository.upsert_many() must be implemented by adapter"
        )


class ProjectRepository(ABC):
    """Abstract base class for project persistence operations."""

    @abstractmethod
    async def list_all(self, user_id: str) -> list[Project]:
        """List a user's projects."""
        raise NotImplementedError(
            "ProjectRepository.list_all() must be implemented by adapter"
        )

    @abstractmethod
    async def add(self, project: Project, user_id: str) -> Project:
        """Insert a project and return the canonical row."""
        raise NotImplementedError(
            "ProjectRepository.add() must be implemented by adapter"
        )

    @abstractmethod
    async def update(self, project_id: str, values: dict[str, Any]) -> Project | None:
        """Update a project and return the stored row, if the backend sent one."""
        raise NotImplementedError(
            "ProjectRepository.update() must be implemented by adapter"
        )

    @abstractmethod
    async def delete(self, project_id: str) -> None:
        """Delete a project. Tasks are not deleted."""
        raise NotImplementedError(
            "ProjectRepository.delete() must be implemented by adapter"
        )

    @abstractmethod
    async def upsert_many(self, projects: list[Project], user_id: str) -> int:
        """Insert or replace projects by identifier."""
        raise NotImplementedError(
            "ProjectRepository.upsert_many() must be implemented by adapter"
        )

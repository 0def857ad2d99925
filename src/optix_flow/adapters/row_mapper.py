"""Translation between entity models and backend rows.

Backend rows use snake_case column names that partly differ from the entity
attributes (``importance`` vs ``importance_level`` on tasks). Each entity has
one decoder that validates the row shape and raises ``RowDecodeError`` on
anything unexpected, and encoders for full rows and sparse updates.

Subtasks live in their own ``subtasks`` table keyed by ``task_id``; they are
never written through the task row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from optix_flow.models import (
    MIN_ESTIMATED_TIME,
    ImportanceLevel,
    Project,
    Subtask,
    Task,
)
from optix_flow.models.exceptions import RowDecodeError

# entity attribute -> backend column
TASK_FIELD_MAP = {
    "title": "title",
    "importance_level": "importance",
    "is_urgent": "is_urgent",
    "estimated_time": "estimated_time",
    "is_completed": "is_completed",
    "project_id": "project_id",
    "completed_at": "completed_at",
}

SUBTASK_FIELD_MAP = {
    "title": "title",
    "is_completed": "is_completed",
    "completed_at": "completed_at",
    "estimated_time": "estimated_time",
    "importance_level": "importance_level",
    "is_urgent": "is_urgent",
}

PROJECT_FIELD_MAP = {
    "name": "name",
    "color": "color",
}


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SubtaskRow(_Row):
    """Shape of a ``subtasks`` row."""

    id: str
    title: str
    is_completed: bool
    task_id: str | None = None
    completed_at: datetime | None = None
    # nullable columns: rows created before these were added carry NULL
    estimated_time: int | None = None
    importance_level: ImportanceLevel | None = None
    is_urgent: bool | None = None


class TaskRow(_Row):
    """Shape of a ``tasks`` row, optionally joined with its subtasks."""

    id: str
    title: str
    importance: ImportanceLevel
    is_urgent: bool
    estimated_time: int
    is_completed: bool
    completed_at: datetime | None = None
    project_id: str | None = None
    created_at: datetime | None = None
    user_id: str | None = None
    subtasks: list[SubtaskRow] | None = None


class ProjectRow(_Row):
    """Shape of a ``projects`` row."""

    id: str
    name: str
    color: str | None = None
    user_id: str | None = None


def _decode(model: type[_Row], entity: str, row: Any):
    if not isinstance(row, dict):
        raise RowDecodeError(entity, row, f"expected an object, got {type(row).__name__}")
    try:
        return model.model_validate(row)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in e.errors()
        )
        raise RowDecodeError(entity, row, f"invalid fields: {fields}") from e


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ImportanceLevel):
        return int(value)
    return value


def _subtask_from_model(row: SubtaskRow) -> Subtask:
    return Subtask(
        id=row.id,
        title=row.title,
        is_completed=row.is_completed,
        completed_at=row.completed_at,
        estimated_time=(
            row.estimated_time if row.estimated_time is not None else MIN_ESTIMATED_TIME
        ),
        importance_level=row.importance_level or ImportanceLevel.MID,
        is_urgent=bool(row.is_urgent),
    )


def subtask_from_row(row: Any) -> Subtask:
    """Decode a ``subtasks`` row.

    Raises:
        RowDecodeError: If the row does not have the subtask shape
    """
    return _subtask_from_model(_decode(SubtaskRow, "subtask", row))


def task_from_row(row: Any) -> Task:
    """Decode a ``tasks`` row, including joined subtasks.

    Raises:
        RowDecodeError: If the row does not have the task shape
    """
    decoded: TaskRow = _decode(TaskRow, "task", row)
    return Task(
        id=decoded.id,
        title=decoded.title,
        created_at=decoded.created_at,
        importance_level=decoded.importance,
        is_urgent=decoded.is_urgent,
        estimated_time=decoded.estimated_time,
        is_completed=decoded.is_completed,
        completed_at=decoded.completed_at,
        project_id=decoded.project_id,
        subtasks=[_subtask_from_model(sub) for sub in decoded.subtasks or []],
    )


def project_from_row(row: Any) -> Project:
    """Decode a ``projects`` row.

    Raises:
        RowDecodeError: If the row does not have the project shape
    """
    decoded: ProjectRow = _decode(ProjectRow, "project", row)
    return Project(id=decoded.id, name=decoded.name, color=decoded.color or "")


def task_to_row(
    task: Task, user_id: str | None = None, *, include_id: bool = True
) -> dict[str, Any]:
    """Encode a task as a full ``tasks`` row (subtasks excluded)."""
    row: dict[str, Any] = {}
    if include_id:
        row["id"] = task.id
    for attr, column in TASK_FIELD_MAP.items():
        row[column] = _encode_value(getattr(task, attr))
    if user_id is not None:
        row["user_id"] = user_id
    return row


def subtask_to_row(
    subtask: Subtask, task_id: str, *, include_id: bool = True
) -> dict[str, Any]:
    """Encode a subtask as a ``subtasks`` row tagged with its parent."""
    row: dict[str, Any] = {}
    if include_id:
        row["id"] = subtask.id
    row["task_id"] = task_id
    for attr, column in SUBTASK_FIELD_MAP.items():
        row[column] = _encode_value(getattr(subtask, attr))
    return row


def project_to_row(project: Project, user_id: str | None = None) -> dict[str, Any]:
    """Encode a project as a ``projects`` row."""
    row: dict[str, Any] = {"id": project.id}
    for attr, column in PROJECT_FIELD_MAP.items():
        row[column] = _encode_value(getattr(project, attr))
    if user_id is not None:
        row["user_id"] = user_id
    return row


def _partial(changes: dict[str, Any], field_map: dict[str, str]) -> dict[str, Any]:
    return {
        field_map[attr]: _encode_value(value)
        for attr, value in changes.items()
        if attr in field_map
    }


def task_update_to_row(changes: dict[str, Any]) -> dict[str, Any]:
    """Encode a sparse task change set.

    Only mapped fields are emitted; ``subtasks``, ``id`` and ``created_at``
    are dropped. An empty result means there is nothing to send.
    """
    return _partial(changes, TASK_FIELD_MAP)


def project_update_to_row(changes: dict[str, Any]) -> dict[str, Any]:
    """Encode a sparse project change set."""
    return _partial(changes, PROJECT_FIELD_MAP)


def completion_to_row(is_completed: bool, completed_at: datetime | None) -> dict[str, Any]:
    """Encode a completion change (flag and timestamp always travel together)."""
    return {
        "is_completed": is_completed,
        "completed_at": _encode_value(completed_at) if is_completed else None,
    }

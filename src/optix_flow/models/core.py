"""Task, subtask and project data models."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

MIN_ESTIMATED_TIME = 5


class ImportanceLevel(IntEnum):
    """Importance axis of the importance/urgency matrix."""

    LOW = 1
    MID = 2
    HIGH = 3


def clamp_estimated_time(minutes: int) -> int:
    """Clamp a duration to the minimum callers are expected to enforce."""
    return max(MIN_ESTIMATED_TIME, int(minutes))


class _Entity(BaseModel):
    """Base for models stored in the guest record.

    Guest records use the camelCase keys of the browser build, Python code
    uses snake_case attributes.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Subtask(_Entity):
    """Subtask model.

    Attributes:
        id: Identifier, unique within the parent task
        title: Subtask title
        is_completed: Completion status
        completed_at: Completion timestamp, present iff completed
        estimated_time: Estimated duration in minutes
        importance_level: Importance, inherited from the parent at creation
        is_urgent: Urgency flag, inherited from the parent at creation
    """

    id: str
    title: str
    is_completed: bool = False
    completed_at: datetime | None = None
    estimated_time: int = MIN_ESTIMATED_TIME
    importance_level: ImportanceLevel = ImportanceLevel.MID
    is_urgent: bool = False


class Task(_Entity):
    """Task model.

    A task with one or more subtasks is a container task: its effective
    duration is derived from the subtasks, its own estimated_time is kept
    but ignored.

    Attributes:
        id: Identifier, unique across all tasks
        title: Task title
        created_at: Creation timestamp
        importance_level: Importance level
        is_urgent: Urgency flag
        estimated_time: Estimated duration in minutes
        is_completed: Completion status
        completed_at: Completion timestamp, present iff completed
        project_id: Owning project, None when unassigned
        subtasks: Ordered subtasks
    """

    id: str
    title: str
    created_at: datetime | None = None
    importance_level: ImportanceLevel = ImportanceLevel.MID
    is_urgent: bool = False
    estimated_time: int = MIN_ESTIMATED_TIME
    is_completed: bool = False
    completed_at: datetime | None = None
    project_id: str | None = None
    subtasks: list[Subtask] = Field(default_factory=list)

    @property
    def is_container(self) -> bool:
        return len(self.subtasks) > 0

    def find_subtask(self, subtask_id: str) -> Subtask | None:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None


class Project(_Entity):
    """Project model. Color is a display attribute passed through untouched."""

    id: str
    name: str
    color: str = ""


def effective_duration(task: Task) -> int:
    """Return the duration a task contributes, in minutes.

    Containers use the sum of their subtask durations, other tasks their own
    estimated time.
    """
    if task.subtasks:
        return sum(subtask.estimated_time for subtask in task.subtasks)
    return task.estimated_time


class TaskCreate(BaseModel):
    """Draft for a new task.

    Leaving project_id unset assigns the active project filter; passing
    project_id=None explicitly creates an unassigned task.
    """

    id: str | None = None
    title: str = Field(min_length=1)
    importance_level: ImportanceLevel = ImportanceLevel.MID
    is_urgent: bool = False
    estimated_time: int = Field(default=30, ge=MIN_ESTIMATED_TIME)
    is_completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
    project_id: str | None = None


_UPDATE_CONFIG = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class TaskUpdate(BaseModel):
    """Partial task update. Only explicitly set fields are applied.

    Keys may use attribute names or the camelCase record keys; unknown keys
    are rejected.
    """

    model_config = _UPDATE_CONFIG

    title: str | None = None
    importance_level: ImportanceLevel | None = None
    is_urgent: bool | None = None
    estimated_time: int | None = None
    is_completed: bool | None = None
    completed_at: datetime | None = None
    project_id: str | None = None
    subtasks: list[Subtask] | None = None

    def changes(self) -> dict:
        """Return the explicitly set fields as a dict."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class SubtaskCreate(BaseModel):
    """Draft for a new subtask."""

    title: str = Field(min_length=1)
    is_completed: bool = False
    completed_at: datetime | None = None
    estimated_time: int = Field(default=15, ge=MIN_ESTIMATED_TIME)
    importance_level: ImportanceLevel = ImportanceLevel.MID
    is_urgent: bool = False


class ProjectCreate(BaseModel):
    """Draft for a new project."""

    id: str | None = None
    name: str = Field(min_length=1)
    color: str = "#6366f1"


class ProjectUpdate(BaseModel):
    """Partial project update."""

    model_config = _UPDATE_CONFIG

    name: str | None = None
    color: str | None = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class User(BaseModel):
    """Authenticated identity."""

    id: str
    email: EmailStr | None = None


class GuestSnapshot(BaseModel):
    """The guest record: full snapshot of both collections."""

    tasks: list[Task] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tasks and not self.projects

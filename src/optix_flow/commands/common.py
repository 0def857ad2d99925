"""Helpers shared by the command modules."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from optix_flow.models import ImportanceLevel, MutationResult, Project, SyncStatus, Task
from optix_flow.services.app_context import AppContext
from optix_flow.utils.ui.formatters import format_info, format_success, format_warning

from .decorators import AppError


class Importance(str, Enum):
    """Importance choices accepted on the command line."""

    low = "low"
    mid = "mid"
    high = "high"

    def to_level(self) -> ImportanceLevel:
        return ImportanceLevel[self.name.upper()]


@asynccontextmanager
async def open_app() -> AsyncIterator[AppContext]:
    """Start the application for one command and close it afterwards."""
    app = AppContext()
    try:
        await app.start()
        yield app
    finally:
        await app.close()


def task_view(app: AppContext, task: Task) -> dict:
    data = task.model_dump(mode="json")
    status = app.store.status_of(task.id)
    data["sync"] = status.value if status else None
    return data


def project_view(project: Project) -> dict:
    return project.model_dump(mode="json")


def report_result(result: MutationResult, message: str, kind: str = "Task") -> None:
    """Print the outcome of a core operation.

    Raises:
        AppError: If the operation did not apply
    """
    if not result.applied:
        if result.error:
            raise AppError(f"{kind} could not be saved: {result.error}")
        raise AppError(f"{kind} not found: {result.entity_id}")

    if result.status is SyncStatus.FAILED:
        format_warning(f"{message} locally, but it was not saved: {result.error}")
    elif result.status is SyncStatus.SKIPPED:
        format_info(f"{message} (nothing to save)")
    else:
        where = "on this device" if result.status is SyncStatus.LOCAL else "to your account"
        format_success(f"{message} and saved {where}: {result.entity_id}")

"""Shared client state with subscribe/notify.

The store holds the task and project collections, the session identity, the
active project filter and a per-entity sync status. It is constructed once
and passed to whatever needs it. Listeners are called synchronously after
every change, so they observe optimistic mutations before any backend call
completes.

Only the synchronization core and the session tracker write the
collections; consumers read them and may change the active project filter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from optix_flow.models import Project, SyncStatus, Task, User

logger = logging.getLogger(__name__)

Listener = Callable[["AppStore"], None]


class AppStore:
    """Observable container for client state."""

    def __init__(self):
        self._tasks: list[Task] = []
        self._projects: list[Project] = []
        self._user: User | None = None
        self._active_project_id: str | None = None
        self._sync_status: dict[str, SyncStatus] = {}
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._dirty = False
        self.version = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def active_project_id(self) -> str | None:
        return self._active_project_id

    @property
    def sync_status(self) -> dict[str, SyncStatus]:
        return dict(self._sync_status)

    def get_task(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get_project(self, project_id: str) -> Project | None:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def status_of(self, entity_id: str) -> SyncStatus | None:
        return self._sync_status.get(entity_id)

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        """Call every listener, or defer until the current batch ends."""
        if self._batch_depth > 0:
            self._dirty = True
            return
        self.version += 1
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Store listener %r failed", listener)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group several changes into one notification."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self.notify()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_tasks(self, tasks: list[Task]) -> None:
        self._tasks = list(tasks)
        self.notify()

    def set_projects(self, projects: list[Project]) -> None:
        self._projects = list(projects)
        self.notify()

    def replace_task(self, task_id: str, task: Task) -> bool:
        """Swap the task with the given id for a new version."""
        for index, current in enumerate(self._tasks):
            if current.id == task_id:
                self._tasks[index] = task
                self.notify()
                return True
        return False

    def replace_project(self, project_id: str, project: Project) -> bool:
        for index, current in enumerate(self._projects):
            if current.id == project_id:
                self._projects[index] = project
                self.notify()
                return True
        return False

    def set_user(self, user: User | None) -> None:
        self._user = user
        self.notify()

    def set_active_project(self, project_id: str | None) -> None:
        """Select the project filter used by views and by new tasks."""
        if project_id == self._active_project_id:
            return
        self._active_project_id = project_id
        self.notify()

    def set_status(self, entity_id: str, status: SyncStatus) -> None:
        self._sync_status[entity_id] = status
        self.notify()

    def move_status(self, old_id: str, new_id: str, status: SyncStatus) -> None:
        """Re-key a status after a placeholder id was replaced."""
        self._sync_status.pop(old_id, None)
        self._sync_status[new_id] = status
        self.notify()

    def drop_status(self, entity_id: str) -> None:
        if self._sync_status.pop(entity_id, None) is not None:
            self.notify()

    def reset(
        self,
        tasks: list[Task],
        projects: list[Project],
        status: SyncStatus | None = None,
    ) -> None:
        """Replace both collections at once, e.g. after a reload."""
        self._tasks = list(tasks)
        self._projects = list(projects)
        self._sync_status = {}
        if status is not None:
            for task in self._tasks:
                self._sync_status[task.id] = status
            for project in self._projects:
                self._sync_status[project.id] = status
        self.notify()

"""Sync service - the synchronization core.

Every operation mutates the shared store first, so listeners see the change
immediately, and then persists it through the storage strategy of the
current session:

- guest session: the whole snapshot is written to the guest record
- authenticated session: the matching backend call is made inside a writer
  slot of the session barrier, and its result is reconciled into the store

Backend failures are logged and reported through the returned
``MutationResult``; they never propagate to the caller. Apart from a failed
subtask insert, which is rolled back, optimistic changes stay in memory when
the backend rejects them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from optix_flow.adapters.row_mapper import (
    completion_to_row,
    project_update_to_row,
    task_update_to_row,
)
from optix_flow.models import (
    MutationResult,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Subtask,
    SubtaskCreate,
    SyncStatus,
    Task,
    TaskCreate,
    TaskUpdate,
    User,
)
from optix_flow.models.exceptions import OptixFlowError
from optix_flow.models.storage_strategy import (
    GuestStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategyContext,
)
from optix_flow.services.notification_service import NotificationCenter
from optix_flow.services.session_barrier import SessionBarrier
from optix_flow.services.store import AppStore
from optix_flow.utils.errors import log_backend_error

logger = logging.getLogger(__name__)

TASK_COMPLETED = "Task completed."
TASK_AND_SUBTASKS_COMPLETED = "Task and subtasks completed."
SUBTASK_COMPLETED = "Subtask completed."

RemoteStep = tuple[str, Callable[[RemoteStorageStrategy], Awaitable[Any]]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


class SyncService:
    """Applies task and project operations to memory and storage."""

    def __init__(
        self,
        store: AppStore,
        strategy_context: StorageStrategyContext,
        barrier: SessionBarrier,
        notifications: NotificationCenter,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        """Initialize the sync service.

        Args:
            store: Shared client state
            strategy_context: Storage strategy of the current session
            barrier: Barrier shared with the session tracker
            notifications: Where undoable completions are published
            clock: Source of completion and creation timestamps
            id_factory: Source of placeholder identifiers
        """
        self.store = store
        self.context = strategy_context
        self.barrier = barrier
        self.notifications = notifications
        self.clock = clock
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Persistence plumbing
    # ------------------------------------------------------------------

    def _token(self) -> int | None:
        """Epoch the current mutation belongs to, None during a transition."""
        if self.barrier.transitioning:
            return None
        return self.barrier.epoch

    def _save_guest(self, strategy: GuestStorageStrategy, entity_id: str | None) -> MutationResult:
        guest_store = strategy.guest_store
        if guest_store.save(self.store.tasks, self.store.projects):
            status = SyncStatus.LOCAL
        else:
            status = SyncStatus.FAILED
        if entity_id is not None:
            self.store.set_status(entity_id, status)
        return MutationResult(
            applied=True,
            status=status,
            entity_id=entity_id,
            error=guest_store.last_error if status is SyncStatus.FAILED else None,
        )

    async def _persist(
        self,
        token: int | None,
        entity_id: str | None,
        steps: list[RemoteStep],
        on_success: Callable[[list[Any]], str | None] | None = None,
        on_failure: Callable[[], None] | None = None,
    ) -> MutationResult:
        """Persist the mutation just applied to the store.

        Remote steps all run, in order, even when an earlier one fails. The
        callbacks run inside the writer slot so a session transition cannot
        interleave with reconciliation. on_success may return the canonical
        entity id.
        """
        if token is None:
            logger.info("Mutation of %s made during a session change, not persisted", entity_id)
            return MutationResult(applied=True, status=SyncStatus.SKIPPED, entity_id=entity_id)

        strategy = self.context.strategy
        if isinstance(strategy, GuestStorageStrategy):
            return self._save_guest(strategy, entity_id)

        if not steps:
            return MutationResult(applied=True, status=SyncStatus.SKIPPED, entity_id=entity_id)

        if entity_id is not None:
            self.store.set_status(entity_id, SyncStatus.PENDING)

        async with self.barrier.write() as epoch:
            if epoch != token:
                logger.info("Mutation of %s superseded by a session change", entity_id)
                if entity_id is not None:
                    self.store.drop_status(entity_id)
                return MutationResult(applied=True, status=SyncStatus.SKIPPED, entity_id=entity_id)

            strategy = self.context.strategy
            values: list[Any] = []
            first_error: OptixFlowError | None = None
            for context, step in steps:
                try:
                    values.append(await step(strategy))
                except OptixFlowError as e:
                    log_backend_error(logger, context, e)
                    values.append(None)
                    if first_error is None:
                        first_error = e

            if first_error is not None:
                if on_failure is not None:
                    on_failure()
                elif entity_id is not None:
                    self.store.set_status(entity_id, SyncStatus.FAILED)
                return MutationResult(
                    applied=on_failure is None,
                    status=SyncStatus.FAILED,
                    entity_id=entity_id,
                    error=str(first_error),
                )

            if on_success is not None:
                entity_id = on_success(values) or entity_id
            if entity_id is not None:
                self.store.set_status(entity_id, SyncStatus.CONFIRMED)
            return MutationResult(applied=True, status=SyncStatus.CONFIRMED, entity_id=entity_id)

    def _rejected(
        self, operation: str, entity_id: str, error: ValidationError
    ) -> MutationResult:
        logger.warning("%s: rejected update for %s: %s", operation, entity_id, error)
        result = MutationResult.not_applied(entity_id)
        fields = ", ".join(str(err["loc"][0]) for err in error.errors() if err["loc"])
        result.error = f"Invalid update fields: {fields}"
        return result

    def _replace_subtask(
        self, task_id: str, subtask_id: str, subtask: Subtask | None
    ) -> bool:
        """Swap (or, with None, remove) one subtask of a task in the store."""
        task = self.store.get_task(task_id)
        if task is None or task.find_subtask(subtask_id) is None:
            return False
        if subtask is None:
            subtasks = [s for s in task.subtasks if s.id != subtask_id]
        else:
            subtasks = [subtask if s.id == subtask_id else s for s in task.subtasks]
        return self.store.replace_task(task_id, task.model_copy(update={"subtasks": subtasks}))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_guest(self) -> None:
        """Replace the collections with the guest record (empty if absent)."""
        strategy = self.context.strategy
        if not isinstance(strategy, GuestStorageStrategy):
            raise RuntimeError("load_guest() requires the guest storage strategy")
        tasks, projects = strategy.guest_store.load()
        self.store.reset(tasks, projects, SyncStatus.LOCAL)
        logger.info("Loaded guest record: %d tasks, %d projects", len(tasks), len(projects))

    async def load_remote(
        self,
        user: User,
        fallback: tuple[list[Task], list[Project]] | None = None,
    ) -> bool:
        """Fetch both collections for an identity.

        A collection whose fetch fails keeps its current contents, or takes
        the matching fallback collection when one is given. Only fetched
        entities are marked confirmed; kept ones keep their sync status.

        Returns:
            True if both collections were fetched
        """
        strategy = self.context.strategy
        if not isinstance(strategy, RemoteStorageStrategy):
            raise RuntimeError("load_remote() requires the remote storage strategy")

        tasks_result, projects_result = await asyncio.gather(
            strategy.task_repository.list_all(user.id),
            strategy.project_repository.list_all(user.id),
            return_exceptions=True,
        )

        if fallback is not None:
            tasks, projects = fallback
        else:
            tasks, projects = self.store.tasks, self.store.projects
        previous_status = self.store.sync_status
        ok = True
        fetched = (("Fetch tasks", tasks_result), ("Fetch projects", projects_result))
        for context, result in fetched:
            if isinstance(result, OptixFlowError):
                log_backend_error(logger, context, result)
                ok = False
            elif isinstance(result, BaseException):
                raise result

        tasks_fetched = not isinstance(tasks_result, BaseException)
        projects_fetched = not isinstance(projects_result, BaseException)
        if tasks_fetched:
            tasks = tasks_result
        if projects_fetched:
            projects = projects_result

        with self.store.batch():
            self.store.reset(tasks, projects)
            for entities, fetched in ((tasks, tasks_fetched), (projects, projects_fetched)):
                for entity in entities:
                    status = SyncStatus.CONFIRMED if fetched else previous_status.get(entity.id)
                    if status is not None:
                        self.store.set_status(entity.id, status)
        logger.info("Loaded remote data: %d tasks, %d projects", len(tasks), len(projects))
        return ok

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def add_task(self, draft: TaskCreate) -> MutationResult:
        """Create a task and prepend it to the collection.

        An unset project_id takes the active project filter. In an
        authenticated session the backend assigns the canonical id, which
        replaces the placeholder once the insert succeeds.
        """
        token = self._token()
        if "project_id" in draft.model_fields_set:
            project_id = draft.project_id
        else:
            project_id = self.store.active_project_id

        completed_at = None
        if draft.is_completed:
            completed_at = draft.completed_at or self.clock()

        task = Task(
            id=draft.id or self.id_factory(),
            title=draft.title,
            created_at=draft.created_at or self.clock(),
            importance_level=draft.importance_level,
            is_urgent=draft.is_urgent,
            estimated_time=draft.estimated_time,
            is_completed=draft.is_completed,
            completed_at=completed_at,
            project_id=project_id,
        )
        placeholder = task.id
        self.store.set_tasks([task, *self.store.tasks])

        async def insert(strategy: RemoteStorageStrategy) -> Task:
            return await strategy.task_repository.add(task, strategy.user.id)

        def reconcile(values: list[Any]) -> str:
            canonical: Task = values[0]
            current = self.store.get_task(placeholder)
            if current is None:
                return canonical.id
            # Server-assigned fields only; local edits made meanwhile survive
            merged = current.model_copy(
                update={
                    "id": canonical.id,
                    "created_at": canonical.created_at or current.created_at,
                }
            )
            with self.store.batch():
                self.store.replace_task(placeholder, merged)
                self.store.move_status(placeholder, canonical.id, SyncStatus.PENDING)
            return canonical.id

        return await self._persist(
            token, placeholder, [("Create task", insert)], on_success=reconcile
        )

    async def update_task(self, task_id: str, updates: TaskUpdate | dict) -> MutationResult:
        """Shallow-merge explicitly set fields into a task.

        No bounds are enforced here; callers validate durations. Setting
        is_completed without completed_at keeps the timestamp consistent with
        the flag. A dict with unknown keys is rejected without applying
        anything.
        """
        if isinstance(updates, dict):
            try:
                updates = TaskUpdate.model_validate(updates)
            except ValidationError as e:
                return self._rejected("update_task", task_id, e)
        changes = updates.changes()

        token = self._token()
        task = self.store.get_task(task_id)
        if task is None:
            logger.warning("update_task: no task %s", task_id)
            return MutationResult.not_applied(task_id)

        if "is_completed" in changes and "completed_at" not in changes:
            if changes["is_completed"]:
                changes["completed_at"] = task.completed_at or self.clock()
            else:
                changes["completed_at"] = None

        self.store.replace_task(task_id, task.model_copy(update=changes))

        values = task_update_to_row(changes)
        steps: list[RemoteStep] = []
        if values:

            async def update(strategy: RemoteStorageStrategy) -> None:
                await strategy.task_repository.update(task_id, values)

            steps.append(("Update task", update))

        return await self._persist(token, task_id, steps)

    async def add_subtask(self, task_id: str, draft: SubtaskCreate) -> MutationResult:
        """Append a subtask to a task.

        The subtask gets a temporary id. In an authenticated session the
        canonical row replaces it on success, keeping the importance, urgency,
        duration and completion timestamp the caller supplied; on failure the
        subtask is removed again.
        """
        token = self._token()
        task = self.store.get_task(task_id)
        if task is None:
            logger.warning("add_subtask: no task %s", task_id)
            return MutationResult.not_applied(task_id)

        completed_at = None
        if draft.is_completed:
            completed_at = draft.completed_at or self.clock()

        subtask = Subtask(
            id=self.id_factory(),
            title=draft.title,
            is_completed=draft.is_completed,
            completed_at=completed_at,
            estimated_time=draft.estimated_time,
            importance_level=draft.importance_level,
            is_urgent=draft.is_urgent,
        )
        temp_id = subtask.id
        self.store.replace_task(
            task_id, task.model_copy(update={"subtasks": [*task.subtasks, subtask]})
        )

        async def insert(strategy: RemoteStorageStrategy) -> Subtask:
            return await strategy.subtask_repository.add(task_id, subtask)

        def reconcile(values: list[Any]) -> str:
            canonical: Subtask = values[0].model_copy(
                update={
                    "importance_level": subtask.importance_level,
                    "is_urgent": subtask.is_urgent,
                    "estimated_time": subtask.estimated_time,
                    "completed_at": subtask.completed_at,
                }
            )
            with self.store.batch():
                self._replace_subtask(task_id, temp_id, canonical)
                self.store.move_status(temp_id, canonical.id, SyncStatus.PENDING)
            return canonical.id

        def rollback() -> None:
            with self.store.batch():
                self._replace_subtask(task_id, temp_id, None)
                self.store.drop_status(temp_id)

        return await self._persist(
            token,
            temp_id,
            [("Create subtask", insert)],
            on_success=reconcile,
            on_failure=rollback,
        )

    async def toggle_task_completion(self, task_id: str, cascade: bool = False) -> MutationResult:
        """Flip a task's completion state.

        Completing publishes an undoable notification. With cascade, the
        subtasks that were still open are completed with the same timestamp,
        and only those are reopened by undo. Reopening never touches
        subtasks and publishes nothing.
        """
        token = self._token()
        task = self.store.get_task(task_id)
        if task is None:
            logger.warning("toggle_task_completion: no task %s", task_id)
            return MutationResult.not_applied(task_id)

        if task.is_completed:
            self.store.replace_task(
                task_id, task.model_copy(update={"is_completed": False, "completed_at": None})
            )
            return await self._persist(
                token, task_id, self._completion_steps(task_id, False, None, [])
            )

        now = self.clock()
        cascaded: list[str] = []
        subtasks = task.subtasks
        if cascade:
            cascaded = [s.id for s in task.subtasks if not s.is_completed]
            subtasks = [
                s.model_copy(update={"is_completed": True, "completed_at": now})
                if s.id in cascaded
                else s
                for s in task.subtasks
            ]

        self.store.replace_task(
            task_id,
            task.model_copy(
                update={"is_completed": True, "completed_at": now, "subtasks": subtasks}
            ),
        )

        async def undo() -> MutationResult:
            return await self._reopen_task(task_id, cascaded)

        message = TASK_AND_SUBTASKS_COMPLETED if cascaded else TASK_COMPLETED
        notification = self.notifications.publish(message, undo)

        result = await self._persist(
            token, task_id, self._completion_steps(task_id, True, now, cascaded)
        )
        result.cascaded_subtask_ids = cascaded
        result.notification = notification
        return result

    def _completion_steps(
        self,
        task_id: str,
        is_completed: bool,
        completed_at: datetime | None,
        subtask_ids: list[str],
    ) -> list[RemoteStep]:
        values = completion_to_row(is_completed, completed_at)
        steps: list[RemoteStep] = []
        if subtask_ids:

            async def update_subtasks(strategy: RemoteStorageStrategy) -> None:
                await strategy.subtask_repository.bulk_update(subtask_ids, values)

            steps.append(("Update subtask completion", update_subtasks))

        async def update_task(strategy: RemoteStorageStrategy) -> None:
            await strategy.task_repository.update(task_id, values)

        steps.append(("Update task completion", update_task))
        return steps

    async def _reopen_task(self, task_id: str, cascaded: list[str]) -> MutationResult:
        """Undo a completion: reopen the task and the subtasks it completed."""
        token = self._token()
        task = self.store.get_task(task_id)
        if task is None:
            return MutationResult.not_applied(task_id)

        subtasks = [
            s.model_copy(update={"is_completed": False, "completed_at": None})
            if s.id in cascaded
            else s
            for s in task.subtasks
        ]
        self.store.replace_task(
            task_id,
            task.model_copy(
                update={"is_completed": False, "completed_at": None, "subtasks": subtasks}
            ),
        )
        return await self._persist(
            token, task_id, self._completion_steps(task_id, False, None, cascaded)
        )

    async def toggle_subtask_completion(
        self, task_id: str, subtask_id: str, with_toast: bool = True
    ) -> MutationResult:
        """Flip one subtask's completion state.

        The parent's own completion flag is left alone. Completing with
        with_toast publishes an undoable notification.
        """
        token = self._token()
        task = self.store.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if subtask is None:
            logger.warning("toggle_subtask_completion: no subtask %s/%s", task_id, subtask_id)
            return MutationResult.not_applied(subtask_id)

        is_completed = not subtask.is_completed
        completed_at = self.clock() if is_completed else None
        self._replace_subtask(
            task_id,
            subtask_id,
            subtask.model_copy(
                update={"is_completed": is_completed, "completed_at": completed_at}
            ),
        )

        notification = None
        if is_completed and with_toast:

            async def undo() -> MutationResult:
                return await self._reopen_subtask(task_id, subtask_id)

            notification = self.notifications.publish(SUBTASK_COMPLETED, undo)

        steps = self._subtask_completion_steps(subtask_id, is_completed, completed_at)
        result = await self._persist(token, subtask_id, steps)
        result.notification = notification
        return result

    def _subtask_completion_steps(
        self, subtask_id: str, is_completed: bool, completed_at: datetime | None
    ) -> list[RemoteStep]:
        values = completion_to_row(is_completed, completed_at)

        async def update(strategy: RemoteStorageStrategy) -> None:
            await strategy.subtask_repository.update(subtask_id, values)

        return [("Update subtask completion", update)]

    async def _reopen_subtask(self, task_id: str, subtask_id: str) -> MutationResult:
        token = self._token()
        task = self.store.get_task(task_id)
        subtask = task.find_subtask(subtask_id) if task else None
        if subtask is None:
            return MutationResult.not_applied(subtask_id)

        self._replace_subtask(
            task_id,
            subtask_id,
            subtask.model_copy(update={"is_completed": False, "completed_at": None}),
        )
        return await self._persist(
            token, subtask_id, self._subtask_completion_steps(subtask_id, False, None)
        )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def add_project(self, draft: ProjectCreate) -> MutationResult:
        """Create a project and append it to the collection."""
        token = self._token()
        project = Project(id=draft.id or self.id_factory(), name=draft.name, color=draft.color)
        placeholder = project.id
        self.store.set_projects([*self.store.projects, project])

        async def insert(strategy: RemoteStorageStrategy) -> Project:
            return await strategy.project_repository.add(project, strategy.user.id)

        def reconcile(values: list[Any]) -> str:
            canonical: Project = values[0]
            with self.store.batch():
                self.store.replace_project(placeholder, canonical)
                if canonical.id != placeholder:
                    self._reassign_project(placeholder, canonical.id)
                    self.store.move_status(placeholder, canonical.id, SyncStatus.PENDING)
            return canonical.id

        return await self._persist(
            token, placeholder, [("Create project", insert)], on_success=reconcile
        )

    def _reassign_project(self, old_id: str, new_id: str | None) -> None:
        """Point every task of one project at another (or at none)."""
        tasks = self.store.tasks
        if any(t.project_id == old_id for t in tasks):
            self.store.set_tasks(
                [
                    t.model_copy(update={"project_id": new_id}) if t.project_id == old_id else t
                    for t in tasks
                ]
            )
        if self.store.active_project_id == old_id:
            self.store.set_active_project(new_id)

    async def update_project(
        self, project_id: str, updates: ProjectUpdate | dict
    ) -> MutationResult:
        """Merge fields into a project, then merge back what the backend stored."""
        if isinstance(updates, dict):
            try:
                updates = ProjectUpdate.model_validate(updates)
            except ValidationError as e:
                return self._rejected("update_project", project_id, e)
        changes = updates.changes()

        token = self._token()
        project = self.store.get_project(project_id)
        if project is None:
            logger.warning("update_project: no project %s", project_id)
            return MutationResult.not_applied(project_id)

        self.store.replace_project(project_id, project.model_copy(update=changes))

        values = project_update_to_row(changes)
        steps: list[RemoteStep] = []
        if values:

            async def update(strategy: RemoteStorageStrategy) -> Project | None:
                return await strategy.project_repository.update(project_id, values)

            steps.append(("Update project", update))

        def merge(values: list[Any]) -> None:
            stored: Project | None = values[0]
            current = self.store.get_project(project_id)
            if stored is None or current is None:
                return
            self.store.replace_project(
                project_id,
                current.model_copy(update={"name": stored.name, "color": stored.color}),
            )

        return await self._persist(token, project_id, steps, on_success=merge)

    async def delete_project(self, project_id: str) -> MutationResult:
        """Delete a project. Its tasks are kept and become unassigned.

        The active filter is cleared when it pointed at the project.
        """
        token = self._token()
        project = self.store.get_project(project_id)
        referenced = any(t.project_id == project_id for t in self.store.tasks)
        if project is None and not referenced:
            logger.warning("delete_project: no project %s", project_id)
            return MutationResult.not_applied(project_id)

        with self.store.batch():
            self.store.set_projects([p for p in self.store.projects if p.id != project_id])
            self._reassign_project(project_id, None)
            self.store.drop_status(project_id)

        async def clear_tasks(strategy: RemoteStorageStrategy) -> None:
            await strategy.task_repository.clear_project(project_id)

        async def delete(strategy: RemoteStorageStrategy) -> None:
            await strategy.project_repository.delete(project_id)

        result = await self._persist(
            token,
            None,
            [("Unassign project tasks", clear_tasks), ("Delete project", delete)],
        )
        result.entity_id = project_id
        return result

"""Guest-to-account migration.

When a guest signs in, whatever they created locally is uploaded to their
account: projects first, then tasks, then subtasks (subtasks reference their
task). Uploads are idempotent upserts keyed by id, so re-running a migration
against the same record does not duplicate anything.
"""

from __future__ import annotations

import logging

from optix_flow.adapters.guest_storage import GuestStore
from optix_flow.models import MigrationResult, Subtask, User
from optix_flow.models.exceptions import OptixFlowError
from optix_flow.models.storage_strategy import RemoteStorageStrategy
from optix_flow.utils.errors import log_backend_error

logger = logging.getLogger(__name__)


class GuestMigrationService:
    """Uploads the guest record to a newly authenticated account."""

    def __init__(self, guest_store: GuestStore, clear_on_partial_failure: bool = True):
        """Initialize the migration service.

        Args:
            guest_store: Guest record to migrate
            clear_on_partial_failure: Remove the guest record even when some
                uploads failed. With False the record is kept so the next
                sign-in retries the migration.
        """
        self.guest_store = guest_store
        self.clear_on_partial_failure = clear_on_partial_failure

    async def migrate(self, user: User, strategy: RemoteStorageStrategy) -> MigrationResult:
        """Upload the guest record for an identity.

        Each step is attempted and logged on its own. Subtasks are skipped
        when the task upload failed, their parents would be missing.
        """
        result = MigrationResult()
        if not self.guest_store.exists():
            return result

        snapshot = self.guest_store.load_snapshot()
        if snapshot.is_empty:
            logger.debug("Guest record is empty, nothing to migrate")
            return result

        result.attempted = True
        logger.info(
            "Migrating guest data for %s: %d projects, %d tasks",
            user.id,
            len(snapshot.projects),
            len(snapshot.tasks),
        )

        if snapshot.projects:
            try:
                result.projects_uploaded = await strategy.project_repository.upsert_many(
                    snapshot.projects, user.id
                )
            except OptixFlowError as e:
                log_backend_error(logger, "Migrate projects", e)
                result.errors.append(f"projects: {e}")

        tasks_ok = True
        if snapshot.tasks:
            try:
                result.tasks_uploaded = await strategy.task_repository.upsert_many(
                    snapshot.tasks, user.id
                )
            except OptixFlowError as e:
                tasks_ok = False
                log_backend_error(logger, "Migrate tasks", e)
                result.errors.append(f"tasks: {e}")

        pairs: list[tuple[str, Subtask]] = [
            (task.id, subtask) for task in snapshot.tasks for subtask in task.subtasks
        ]
        if pairs and not tasks_ok:
            logger.warning("Skipping %d subtasks, their tasks were not uploaded", len(pairs))
            result.errors.append("subtasks: skipped after task upload failure")
        elif pairs:
            try:
                result.subtasks_uploaded = await strategy.subtask_repository.upsert_many(pairs)
            except OptixFlowError as e:
                log_backend_error(logger, "Migrate subtasks", e)
                result.errors.append(f"subtasks: {e}")

        if not result.errors or self.clear_on_partial_failure:
            self.guest_store.clear()
            result.guest_record_cleared = True
        else:
            logger.warning("Guest record kept for a later retry: %s", "; ".join(result.errors))

        logger.info(
            "Migration finished: %d projects, %d tasks, %d subtasks uploaded, %d errors",
            result.projects_uploaded,
            result.tasks_uploaded,
            result.subtasks_uploaded,
            len(result.errors),
        )
        return result

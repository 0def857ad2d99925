"""Result and status models returned by the synchronization core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from optix_flow.services.notification_service import Notification


class SyncStatus(str, Enum):
    """Persistence state of one entity or of one operation."""

    LOCAL = "local"  # written to the guest record
    PENDING = "pending"  # remote write in flight
    CONFIRMED = "confirmed"  # backend acknowledged the write
    FAILED = "failed"  # persistence failed, memory may differ from storage
    SKIPPED = "skipped"  # not persisted: no-op or superseded by a session change


@dataclass
class MutationResult:
    """Outcome of a core operation.

    Attributes:
        applied: Whether the in-memory mutation happened
        status: Persistence outcome
        entity_id: Id of the affected entity (canonical id after reconcile)
        error: Error text when status is FAILED
        cascaded_subtask_ids: Subtasks completed by a cascade
        notification: Undoable notification emitted by the operation
    """

    applied: bool
    status: SyncStatus
    entity_id: str | None = None
    error: str | None = None
    cascaded_subtask_ids: list[str] = field(default_factory=list)
    notification: Notification | None = None

    @property
    def persisted(self) -> bool:
        """True when the change reached its storage (guest record or backend)."""
        return self.status in (SyncStatus.CONFIRMED, SyncStatus.LOCAL)

    @classmethod
    def not_applied(cls, entity_id: str | None = None) -> MutationResult:
        return cls(applied=False, status=SyncStatus.SKIPPED, entity_id=entity_id)


@dataclass
class MigrationResult:
    """Outcome of a guest-to-account migration."""

    attempted: bool = False
    projects_uploaded: int = 0
    tasks_uploaded: int = 0
    subtasks_uploaded: int = 0
    errors: list[str] = field(default_factory=list)
    guest_record_cleared: bool = False

    @property
    def success(self) -> bool:
        return self.attempted and not self.errors

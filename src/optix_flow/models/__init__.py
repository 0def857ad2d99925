"""Optix Flow domain models.

Pydantic models for the entities held by the client state (tasks, subtasks,
projects), their drafts and partial updates, the authenticated identity and
the application configuration.
"""

from .config_models import AppConfig, BackendConfig, MigrationConfig, StorageConfig
from .core import (
    MIN_ESTIMATED_TIME,
    GuestSnapshot,
    ImportanceLevel,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Subtask,
    SubtaskCreate,
    Task,
    TaskCreate,
    TaskUpdate,
    User,
    clamp_estimated_time,
    effective_duration,
)
from .sync import MigrationResult, MutationResult, SyncStatus

__all__ = [
    # Entities
    "Task",
    "Subtask",
    "Project",
    "ImportanceLevel",
    "effective_duration",
    "clamp_estimated_time",
    "MIN_ESTIMATED_TIME",
    # Drafts and updates
    "TaskCreate",
    "TaskUpdate",
    "SubtaskCreate",
    "ProjectCreate",
    "ProjectUpdate",
    # Identity and storage
    "User",
    "GuestSnapshot",
    # Results
    "MutationResult",
    "MigrationResult",
    "SyncStatus",
    # Config
    "AppConfig",
    "BackendConfig",
    "StorageConfig",
    "MigrationConfig",
]

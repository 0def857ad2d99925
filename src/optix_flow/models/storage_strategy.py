"""
Strategy Pattern: Storage Strategy Container

A guest session persists to the local guest record; an authenticated session
persists to the hosted backend. The session tracker swaps the strategy held
by the StorageStrategyContext when the identity changes, and the
synchronization core asks the context where to write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from optix_flow.adapters.guest_storage import GuestStore
from optix_flow.models.core import User
from optix_flow.repositories import (
    ProjectRepository,
    SubtaskRepository,
    TaskRepository,
)


class StorageStrategy(ABC):
    """
    Abstract base class for storage strategies.

    A strategy bundles everything needed to persist client state for one
    session kind.
    """

    @property
    @abstractmethod
    def storage_type(self) -> str:
        """Get storage type identifier (for logging/debugging)."""

    @property
    def is_remote(self) -> bool:
        return False

    @property
    def user(self) -> User | None:
        return None


class GuestStorageStrategy(StorageStrategy):
    """
    Guest storage strategy.

    Every mutation overwrites the guest record with a full snapshot.
    """

    def __init__(self, guest_store: GuestStore):
        self.guest_store = guest_store

    @property
    def storage_type(self) -> str:
        return "guest"


class RemoteStorageStrategy(StorageStrategy):
    """
    Remote storage strategy.

    All writes go to the hosted backend on behalf of one identity.
    """

    def __init__(
        self,
        user: User,
        task_repository: TaskRepository,
        subtask_repository: SubtaskRepository,
        project_repository: ProjectRepository,
    ):
        self._user = user
        self.task_repository = task_repository
        self.subtask_repository = subtask_repository
        self.project_repository = project_repository

    @property
    def storage_type(self) -> str:
        return "remote"

    @property
    def is_remote(self) -> bool:
        return True

    @property
    def user(self) -> User:
        return self._user


class StorageStrategyContext:
    """
    Strategy context holding the strategy of the current session.

    Usage:
        context = StorageStrategyContext(GuestStorageStrategy(guest_store))

        # On sign-in
        context.switch_strategy(RemoteStorageStrategy(user, tasks, subtasks, projects))
    """

    def __init__(self, strategy: StorageStrategy):
        """
        Initialize strategy context.

        Args:
            strategy: Storage strategy (guest or remote)
        """
        self._strategy = strategy

    def switch_strategy(self, new_strategy: StorageStrategy):
        """Switch to a new storage strategy at runtime."""
        self._strategy = new_strategy

    @property
    def strategy(self) -> StorageStrategy:
        """Get underlying strategy."""
        return self._strategy

    @property
    def storage_type(self) -> str:
        """Get storage type (for logging/debugging only)."""
        return self._strategy.storage_type

    @property
    def is_remote(self) -> bool:
        return self._strategy.is_remote

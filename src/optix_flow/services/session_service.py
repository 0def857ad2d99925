"""Session tracking.

Follows the identity reported by the auth service and moves the application
between guest and authenticated mode. Each move runs as an exclusive
transition of the session barrier:

- to authenticated: switch to the remote strategy, migrate the guest record
  (if any), then load the account's data
- to guest: switch to the guest strategy, reset the project filter and load
  the guest record

Transitions are serialized. A transition that was requested but superseded
by a newer request before it could start is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from optix_flow.adapters.guest_storage import GuestStore
from optix_flow.models import MigrationResult, User
from optix_flow.models.storage_strategy import (
    GuestStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategyContext,
)
from optix_flow.services.auth_service import AuthEvent, AuthService
from optix_flow.services.migration_service import GuestMigrationService
from optix_flow.services.session_barrier import SessionBarrier
from optix_flow.services.store import AppStore
from optix_flow.services.sync_service import SyncService

logger = logging.getLogger(__name__)

RemoteStrategyFactory = Callable[[User], RemoteStorageStrategy]


class SessionState(str, Enum):
    """Session mode of the application."""

    GUEST = "guest"
    AUTHENTICATED = "authenticated"


class SessionTracker:
    """Keeps storage strategy and client state in line with the identity."""

    def __init__(
        self,
        store: AppStore,
        auth_service: AuthService,
        strategy_context: StorageStrategyContext,
        sync_service: SyncService,
        migration_service: GuestMigrationService,
        barrier: SessionBarrier,
        guest_store: GuestStore,
        remote_strategy_factory: RemoteStrategyFactory,
    ):
        self.store = store
        self.auth = auth_service
        self.context = strategy_context
        self.sync = sync_service
        self.migration = migration_service
        self.barrier = barrier
        self.guest_store = guest_store
        self.remote_strategy_factory = remote_strategy_factory
        self.last_migration: MigrationResult | None = None
        self._requested = 0
        self._started = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> SessionState:
        if self.store.is_authenticated:
            return SessionState.AUTHENTICATED
        return SessionState.GUEST

    async def start(self) -> SessionState:
        """Resolve the initial session and load its data."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_change(self.handle_auth_event)
        user = await self.auth.get_session()
        await self.handle_auth_event(AuthEvent.INITIAL_SESSION, user)
        return self.state

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_auth_event(self, event: AuthEvent, user: User | None) -> None:
        """React to an identity change reported by the auth service."""
        current = self.store.user
        if (
            self._started
            and event is not AuthEvent.INITIAL_SESSION
            and (current.id if current else None) == (user.id if user else None)
        ):
            # Same identity, e.g. a plain token refresh
            if user is not None:
                self.store.set_user(user)
            logger.debug("Auth event %s without identity change", event.value)
            return
        await self.transition_to(user)

    async def transition_to(self, user: User | None) -> bool:
        """Switch the session to an identity, or to guest mode with None.

        Returns:
            False if a newer request superseded this one before it ran
        """
        self._requested += 1
        request = self._requested

        async with self.barrier.transition() as epoch:
            if request != self._requested:
                logger.info("Session transition %d superseded, skipping", request)
                return False

            self._started = True
            if user is None:
                logger.info("Session epoch %d: guest", epoch)
                self.context.switch_strategy(GuestStorageStrategy(self.guest_store))
                with self.store.batch():
                    self.store.set_user(None)
                    self.store.set_active_project(None)
                    self.sync.load_guest()
                return True

            logger.info("Session epoch %d: authenticated as %s", epoch, user.id)
            strategy = self.remote_strategy_factory(user)
            self.context.switch_strategy(strategy)
            # Guest data is being uploaded; it stands in for any collection
            # the account fetch fails to load. Another account's data never does.
            previous: tuple[list, list] = ([], [])
            if self.store.user is None:
                previous = (self.store.tasks, self.store.projects)
            with self.store.batch():
                self.store.set_user(user)
                self.store.set_active_project(None)
                # Guest data must not linger while the account loads
                self.store.reset([], [])

            self.last_migration = await self.migration.migrate(user, strategy)
            await self.sync.load_remote(user, fallback=previous)
            return True

    async def reload(self) -> bool:
        """Reload the current session's data without changing identity.

        Returns:
            True if everything was loaded
        """
        user = self.store.user
        if user is None:
            self.sync.load_guest()
            return True
        async with self.barrier.write():
            return await self.sync.load_remote(user)

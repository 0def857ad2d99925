"""Application bootstrap.

Wires the store, storage strategies, synchronization core, session tracker
and analytics together. Presentation code creates one AppContext, starts it,
and works through its services.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from optix_flow.adapters.guest_storage import GuestStore
from optix_flow.adapters.rest_api import (
    RestApiProjectRepository,
    RestApiSubtaskRepository,
    RestApiTaskRepository,
)
from optix_flow.models import User
from optix_flow.models.storage_strategy import (
    GuestStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategyContext,
)
from optix_flow.services.analytics_service import AnalyticsService
from optix_flow.services.api.client import APIClient
from optix_flow.services.auth_service import AuthService
from optix_flow.services.config_service import ConfigService, get_config_service
from optix_flow.services.migration_service import GuestMigrationService
from optix_flow.services.notification_service import NotificationCenter
from optix_flow.services.session_barrier import SessionBarrier
from optix_flow.services.session_service import SessionState, SessionTracker
from optix_flow.services.store import AppStore
from optix_flow.services.sync_service import SyncService


class AppContext:
    """Owns every long-lived component of one application run.

    Usage:
        async with AppContext() as app:
            await app.sync.add_task(TaskCreate(title="Write report"))
    """

    def __init__(
        self,
        config_service: ConfigService | None = None,
        client: APIClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config_service = config_service or get_config_service()
        self.client = client or APIClient(self.config_service)
        config = self.config_service.config

        self.store = AppStore()
        self.barrier = SessionBarrier()
        self.notifications = NotificationCenter()
        self.guest_store = GuestStore(self.config_service.guest_dir)
        self.strategy_context = StorageStrategyContext(GuestStorageStrategy(self.guest_store))

        sync_kwargs = {"clock": clock} if clock is not None else {}
        self.sync = SyncService(
            self.store,
            self.strategy_context,
            self.barrier,
            self.notifications,
            **sync_kwargs,
        )
        self.auth = AuthService(self.client, self.config_service)
        self.migration = GuestMigrationService(
            self.guest_store,
            clear_on_partial_failure=config.migration.clear_on_partial_failure,
        )
        self.session = SessionTracker(
            self.store,
            self.auth,
            self.strategy_context,
            self.sync,
            self.migration,
            self.barrier,
            self.guest_store,
            self.remote_strategy,
        )
        self.analytics = AnalyticsService(self.store)

    def remote_strategy(self, user: User) -> RemoteStorageStrategy:
        """Build the remote strategy for an identity."""
        return RemoteStorageStrategy(
            user,
            RestApiTaskRepository(self.client),
            RestApiSubtaskRepository(self.client),
            RestApiProjectRepository(self.client),
        )

    async def start(self) -> SessionState:
        """Resolve the session and load its data."""
        return await self.session.start()

    async def close(self) -> None:
        self.session.stop()
        await self.client.close()

    async def __aenter__(self) -> AppContext:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem/API state.
"""

from __future__ import annotations

import itertools
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from optix_flow.adapters.guest_storage import GuestStore
from optix_flow.models import User
from optix_flow.models.storage_strategy import (
    GuestStorageStrategy,
    RemoteStorageStrategy,
    StorageStrategyContext,
)
from optix_flow.services.notification_service import NotificationCenter
from optix_flow.services.session_barrier import SessionBarrier
from optix_flow.services.store import AppStore
from optix_flow.services.sync_service import SyncService

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Filesystem isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def isolated_log_dir(tmp_path_factory):
    """Keep the rotating log file out of the real user log directory."""
    log_dir = str(tmp_path_factory.mktemp("logs"))
    with patch("optix_flow.utils.logger.user_log_dir", return_value=log_dir):
        yield log_dir


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from optix_flow.services.config_service import ConfigService, get_config_service

    get_config_service.cache_clear()
    with patch(
        "optix_flow.services.config_service.user_config_dir",
        return_value=str(tmp_path / "config"),
    ):
        with patch(
            "optix_flow.services.config_service.user_data_dir",
            return_value=str(tmp_path / "data"),
        ):
            svc = ConfigService()
            svc.load_config()
            yield svc
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Core wiring
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock():
    return MagicMock(return_value=FIXED_NOW)


@pytest.fixture()
def id_factory():
    counter = itertools.count(1)
    return lambda: f"tmp-{next(counter)}"


@pytest.fixture()
def user():
    return User(id="user-1", email="ada@example.com")


@pytest.fixture()
def guest_store(tmp_path):
    return GuestStore(tmp_path / "guest")


@pytest.fixture()
def store():
    return AppStore()


@pytest.fixture()
def barrier():
    return SessionBarrier()


@pytest.fixture()
def notifications():
    return NotificationCenter()


@pytest.fixture()
def task_repo():
    repo = MagicMock()
    repo.list_all = AsyncMock(return_value=[])
    repo.add = AsyncMock()
    repo.update = AsyncMock(return_value=None)
    repo.clear_project = AsyncMock(return_value=None)
    repo.upsert_many = AsyncMock(return_value=0)
    return repo


@pytest.fixture()
def subtask_repo():
    repo = MagicMock()
    repo.add = AsyncMock()
    repo.update = AsyncMock(return_value=None)
    repo.bulk_update = AsyncMock(return_value=None)
    repo.upsert_many = AsyncMock(return_value=0)
    return repo


@pytest.fixture()
def project_repo():
    repo = MagicMock()
    repo.list_all = AsyncMock(return_value=[])
    repo.add = AsyncMock()
    repo.update = AsyncMock(return_value=None)
    repo.delete = AsyncMock(return_value=None)
    repo.upsert_many = AsyncMock(return_value=0)
    return repo


@pytest.fixture()
def remote_strategy(user, task_repo, subtask_repo, project_repo):
    return RemoteStorageStrategy(user, task_repo, subtask_repo, project_repo)


@pytest.fixture()
def guest_sync(store, guest_store, barrier, notifications, clock, id_factory):
    """SyncService in a guest session."""
    context = StorageStrategyContext(GuestStorageStrategy(guest_store))
    return SyncService(store, context, barrier, notifications, clock=clock, id_factory=id_factory)


@pytest.fixture()
def remote_sync(store, remote_strategy, user, barrier, notifications, clock, id_factory):
    """SyncService in an authenticated session."""
    store.set_user(user)
    context = StorageStrategyContext(remote_strategy)
    return SyncService(store, context, barrier, notifications, clock=clock, id_factory=id_factory)

"""Services module for Optix Flow - state, synchronization and session logic."""

from .analytics_service import AnalyticsService
from .auth_service import AuthEvent, AuthService
from .migration_service import GuestMigrationService
from .notification_service import Notification, NotificationCenter
from .session_barrier import SessionBarrier
from .session_service import SessionState, SessionTracker
from .store import AppStore
from .sync_service import SyncService

__all__ = [
    "AppStore",
    "SyncService",
    "SessionTracker",
    "SessionState",
    "SessionBarrier",
    "GuestMigrationService",
    "AuthService",
    "AuthEvent",
    "AnalyticsService",
    "NotificationCenter",
    "Notification",
]

"""Auth service - identity management against the hosted backend.

Wraps the backend auth endpoints, keeps the session tokens in the
credentials file and tells listeners when the identity changes. The session
tracker is the main listener: it moves the application between guest and
authenticated mode.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from pydantic import ValidationError

from optix_flow.models import User
from optix_flow.models.exceptions import AuthError, BackendError
from optix_flow.services.api.auth import AuthAPI
from optix_flow.services.api.client import APIClient
from optix_flow.services.config_service import ConfigService
from optix_flow.utils.errors import log_backend_error

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Identity change notifications."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthListener = Callable[[AuthEvent, User | None], Awaitable[None]]


def user_from_payload(data: Any) -> User:
    """Build a User from an auth API user object.

    Raises:
        AuthError: If the payload carries no usable identity
    """
    if not isinstance(data, dict) or not data.get("id"):
        raise AuthError("Auth response did not contain a user")
    try:
        return User(id=str(data["id"]), email=data.get("email") or None)
    except ValidationError as e:
        raise AuthError(f"Invalid user in auth response: {e}") from e


class AuthService:
    """Service for sign-in, sign-up, sign-out and session lookup."""

    def __init__(self, client: APIClient, config_service: ConfigService):
        """Initialize the auth service.

        Args:
            client: Backend API client
            config_service: Where session credentials are stored
        """
        self.client = client
        self.config_service = config_service
        self.api = AuthAPI(client)
        self._listeners: list[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener for identity changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent, user: User | None) -> None:
        logger.info("Auth event %s (user=%s)", event.value, user.id if user else None)
        for listener in list(self._listeners):
            await listener(event, user)

    def _store_session(self, data: dict) -> User:
        user = user_from_payload(data.get("user"))
        self.config_service.save_credentials(
            data["access_token"],
            data.get("refresh_token"),
            user_id=user.id,
            email=str(user.email) if user.email else None,
        )
        return user

    async def get_session(self) -> User | None:
        """Return the identity of the stored session, if any.

        An expired access token is refreshed by the API client. A rejected
        session clears the stored credentials. When the backend cannot be
        reached the identity cached with the credentials is used.
        """
        credentials = self.config_service.load_credentials()
        if not credentials:
            return None

        try:
            data = await self.api.get_user()
        except BackendError as e:
            if e.status in (401, 403):
                logger.info("Stored session rejected, signing out locally")
                self.config_service.clear_credentials()
                return None
            log_backend_error(logger, "Session lookup", e)
            user_id = credentials.get("user_id")
            if not user_id:
                return None
            return User(id=user_id, email=credentials.get("email") or None)

        return user_from_payload(data)

    async def sign_in(self, email: str, password: str) -> User:
        """Sign in with email and password.

        Raises:
            AuthError: If the credentials are rejected or the backend fails
        """
        try:
            data = await self.api.sign_in_with_password(email, password)
        except BackendError as e:
            raise AuthError(f"Sign-in failed: {e.message or e}") from e

        if not data.get("access_token"):
            raise AuthError("Sign-in response did not contain a session")

        user = self._store_session(data)
        await self._emit(AuthEvent.SIGNED_IN, user)
        return user

    async def sign_up(self, email: str, password: str) -> tuple[User, bool]:
        """Register a new account.

        Returns:
            (user, signed_in). signed_in is False when the backend requires
            email confirmation before the first sign-in.

        Raises:
            AuthError: If registration fails
        """
        try:
            data = await self.api.sign_up(email, password)
        except BackendError as e:
            raise AuthError(f"Sign-up failed: {e.message or e}") from e

        if data.get("access_token"):
            user = self._store_session(data)
            await self._emit(AuthEvent.SIGNED_IN, user)
            return user, True

        # Confirmation pending: the response is the bare user object
        return user_from_payload(data.get("user") or data), False

    async def refresh_session(self) -> User | None:
        """Exchange the stored refresh token for a new session.

        Returns:
            The refreshed identity, or None if the session is gone
        """
        credentials = self.config_service.load_credentials()
        refresh_token = credentials.get("refresh_token") if credentials else None
        if not refresh_token:
            return None

        try:
            data = await self.api.refresh(refresh_token)
        except BackendError as e:
            log_backend_error(logger, "Session refresh", e)
            if e.status in (400, 401, 403):
                self.config_service.clear_credentials()
                await self._emit(AuthEvent.SIGNED_OUT, None)
            return None

        user = self._store_session(data)
        await self._emit(AuthEvent.TOKEN_REFRESHED, user)
        return user

    async def sign_out(self) -> None:
        """Sign out. Local credentials are always cleared."""
        if self.config_service.load_credentials():
            try:
                await self.api.sign_out()
            except BackendError as e:
                log_backend_error(logger, "Remote sign-out", e)
        self.config_service.clear_credentials()
        await self._emit(AuthEvent.SIGNED_OUT, None)

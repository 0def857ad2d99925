"""Exceptions raised by Optix Flow components."""

from __future__ import annotations

from typing import Any


class OptixFlowError(Exception):
    """Base class for all application errors."""


class BackendError(OptixFlowError):
    """A call to the hosted backend failed.

    Attributes:
        message: Human readable message
        name: Error class name reported by the transport ("HTTPStatusError",
            "ConnectError", "AbortError", ...)
        code: Backend error code (e.g. "PGRST116", "23503"), if any
        status: HTTP status code, if a response was received
        details: Extra detail text from the backend
        transient: True when retrying the same call may succeed
    """

    def __init__(
        self,
        message: str,
        *,
        name: str = "BackendError",
        code: str | None = None,
        status: int | None = None,
        details: Any = None,
        transient: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.name = name
        self.code = code
        self.status = status
        self.details = details
        self.transient = transient

    def __str__(self) -> str:
        parts = [self.message or self.name]
        if self.code:
            parts.append(f"code={self.code}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        return " ".join(parts)


class AuthError(OptixFlowError):
    """Authentication with the backend failed."""


class RowDecodeError(OptixFlowError):
    """A backend row does not have the expected shape."""

    def __init__(self, entity: str, row: Any, reason: str):
        super().__init__(f"Cannot decode {entity} row: {reason}")
        self.entity = entity
        self.row = row
        self.reason = reason


class GuestStorageError(OptixFlowError):
    """The guest record could not be written."""

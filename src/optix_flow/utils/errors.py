"""Error policy for backend failures.

Backend errors never reach callers of the core operations; they are logged
here. Some failures are expected (a request aborted because a newer one
replaced it, a connection dropped during shutdown) and are filtered out to
keep the log readable.
"""

from __future__ import annotations

import logging

_BENIGN_NAMES = {"AbortError", "CancelledError"}
_BENIGN_CODES = {"PGRST000"}
_PLACEHOLDER_MESSAGES = {"", "[object Object]", "None"}


def is_benign_error(error: BaseException | None) -> bool:
    """Return True for errors that should not be logged."""
    if error is None:
        return True

    name = getattr(error, "name", None) or type(error).__name__
    if name in _BENIGN_NAMES:
        return True

    code = getattr(error, "code", None) or ""
    if code in _BENIGN_CODES:
        return True

    message = getattr(error, "message", None)
    if message is None:
        message = str(error)
    if message.strip() in _PLACEHOLDER_MESSAGES:
        return True
    return "aborted" in message.lower()


def log_backend_error(
    logger: logging.Logger, context: str, error: BaseException
) -> bool:
    """Log a backend error unless it is benign.

    Returns:
        True if the error was logged
    """
    if is_benign_error(error):
        logger.debug("%s: ignored benign error %r", context, error)
        return False
    logger.error("%s: %s", context, error)
    return True

"""Undoable notifications.

Completing a task or subtask emits a notification carrying an undo action.
The action runs at most once; later calls are ignored.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

UndoAction = Callable[[], Awaitable[object]]

_ids = itertools.count(1)


class Notification:
    """A transient message with an optional single-shot undo action."""

    def __init__(
        self,
        message: str,
        undo_action: UndoAction | None = None,
        action_label: str = "Undo",
    ):
        self.id = next(_ids)
        self.message = message
        self.action_label = action_label
        self._undo_action = undo_action
        self._used = False

    @property
    def can_undo(self) -> bool:
        return self._undo_action is not None and not self._used

    async def undo(self) -> bool:
        """Run the undo action once.

        Returns:
            True if the action ran, False if there was nothing to undo
        """
        if not self.can_undo:
            return False
        self._used = True
        await self._undo_action()
        return True

    def __repr__(self) -> str:
        return f"Notification(id={self.id}, message={self.message!r})"


class NotificationCenter:
    """Publishes notifications to subscribers (toast renderers, CLI output)."""

    def __init__(self, history_size: int = 20):
        self._listeners: list[Callable[[Notification], None]] = []
        self._history: list[Notification] = []
        self._history_size = history_size

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    @property
    def latest(self) -> Notification | None:
        return self._history[-1] if self._history else None

    def subscribe(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, message: str, undo_action: UndoAction | None = None) -> Notification:
        notification = Notification(message, undo_action)
        self._history.append(notification)
        del self._history[: -self._history_size]
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener %r failed", listener)
        return notification

    async def undo_latest(self) -> bool:
        """Undo the most recent notification that still can be undone."""
        for notification in reversed(self._history):
            if notification.can_undo:
                return await notification.undo()
        return False

"""Tests for undoable notifications."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from optix_flow.services.notification_service import NotificationCenter


@pytest.mark.asyncio
async def test_undo_runs_once():
    action = AsyncMock()
    notification = NotificationCenter().publish("Task completed.", action)

    assert notification.can_undo
    assert await notification.undo() is True
    assert await notification.undo() is False
    action.assert_awaited_once()
    assert not notification.can_undo


@pytest.mark.asyncio
async def test_notification_without_action_cannot_undo():
    notification = NotificationCenter().publish("Saved")
    assert await notification.undo() is False


def test_subscribers_receive_published_notifications():
    center = NotificationCenter()
    listener = MagicMock()
    center.subscribe(listener)

    notification = center.publish("Task completed.")

    listener.assert_called_once_with(notification)
    assert center.latest is notification


def test_history_is_bounded():
    center = NotificationCenter(history_size=2)
    for i in range(5):
        center.publish(f"n{i}")
    assert [n.message for n in center.history] == ["n3", "n4"]


@pytest.mark.asyncio
async def test_undo_latest_skips_used_notifications():
    center = NotificationCenter()
    first = AsyncMock()
    second = AsyncMock()
    center.publish("one", first)
    latest = center.publish("two", second)
    await latest.undo()

    assert await center.undo_latest() is True
    first.assert_awaited_once()
    assert await center.undo_latest() is False

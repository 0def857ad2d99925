"""Barrier between session transitions and core writes.

Core operations hold a writer slot while they talk to storage. A session
transition waits for the writers in flight to finish, bumps the epoch and
keeps new writers out until the new session is loaded. An operation that
mutated memory under an older epoch must not persist: its state was replaced
by the transition's reload.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class SessionBarrier:
    """Serializes session transitions against in-flight writes."""

    def __init__(self):
        self._condition = asyncio.Condition()
        self._writers = 0
        self._transitioning = False
        self._epoch = 0

    @property
    def epoch(self) -> int:
        """Counter incremented by every transition."""
        return self._epoch

    @property
    def writers(self) -> int:
        return self._writers

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    @asynccontextmanager
    async def write(self) -> AsyncIterator[int]:
        """Hold a writer slot; yields the epoch the write belongs to."""
        async with self._condition:
            await self._condition.wait_for(lambda: not self._transitioning)
            self._writers += 1
            epoch = self._epoch
        try:
            yield epoch
        finally:
            async with self._condition:
                self._writers -= 1
                self._condition.notify_all()

    @asynccontextmanager
    async def transition(self) -> AsyncIterator[int]:
        """Run a session transition exclusively; yields the new epoch."""
        async with self._condition:
            await self._condition.wait_for(lambda: not self._transitioning)
            self._transitioning = True
            await self._condition.wait_for(lambda: self._writers == 0)
            self._epoch += 1
            epoch = self._epoch
        try:
            yield epoch
        finally:
            async with self._condition:
                self._transitioning = False
                self._condition.notify_all()

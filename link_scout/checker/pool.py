# link_scout/checker/pool.py
"""
Fixed-capacity permit pool bounding the number of outbound requests in flight.

Too many simultaneous connections exhaust file handles, so every check holds
one permit for its whole duration.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from link_scout.logger import get_logger

__all__ = ("Permit", "ResourcePool")

logger = get_logger("pool")


class Permit:
    """Right to perform one outbound fetch. Issued and taken back by its pool."""

    __slots__ = ("_pool",)

    def __init__(self, pool: ResourcePool) -> None:
        self._pool = pool


class ResourcePool:
    """Counting-semaphore pool: ``acquire`` suspends while all permits are out."""

    def __init__(self, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._sem = asyncio.Semaphore(capacity)
        self._outstanding: Set[Permit] = set()
        self.peak = 0
        self.acquired = 0
        self.released = 0

    @property
    def in_use(self) -> int:
        return len(self._outstanding)

    @property
    def available(self) -> int:
        return self.capacity - self.in_use

    async def acquire(self) -> Permit:
        await self._sem.acquire()
        permit = Permit(self)
        self._outstanding.add(permit)
        self.acquired += 1
        self.peak = max(self.peak, self.in_use)
        logger.debug("Got permit, %d left", self.available)
        return permit

    def release(self, permit: Permit) -> None:
        if permit._pool is not self:
            raise RuntimeError("permit was issued by another pool")
        if permit not in self._outstanding:
            raise RuntimeError("permit already released")
        self._outstanding.remove(permit)
        self.released += 1
        self._sem.release()
        logger.debug("Released permit, %d left", self.available)

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[Permit]:
        """Hold one permit for the duration of the ``async with`` block."""
        permit = await self.acquire()
        try:
            yield permit
        finally:
            self.release(permit)

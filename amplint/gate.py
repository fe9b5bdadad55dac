"""Process-wide limit on concurrent outbound network calls."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Deque, TypeVar

from .config import DEFAULT_CONCURRENCY

T = TypeVar("T")


class NetworkGate:
    """A FIFO counting semaphore shared by every rule and every lint pass.

    Waiters are plain futures created on the running loop at acquire time,
    so the gate is not tied to a single event loop. A released permit is
    handed straight to the oldest waiter; ``in_flight`` only drops when
    nobody is queued.
    """

    def __init__(self, limit: int = DEFAULT_CONCURRENCY) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self._limit = limit
        self._in_flight = 0
        self._waiters: Deque["asyncio.Future[None]"] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    def set_limit(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self._limit = limit
        while self._in_flight < self._limit and self._wake_next():
            self._in_flight += 1

    async def acquire(self) -> None:
        if self._in_flight < self._limit and not self.waiting:
            self._in_flight += 1
            return
        waiter: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The permit was handed over before the cancellation landed.
                self.release()
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
            raise

    def release(self) -> None:
        if self._in_flight <= 0:
            raise RuntimeError("NetworkGate released more times than acquired")
        # Above a lowered limit the permit is retired instead of handed on.
        if self._in_flight <= self._limit and self._wake_next():
            return
        self._in_flight -= 1

    def _wake_next(self) -> bool:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return True
        return False

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    async def with_permit(self, operation: Callable[[], Awaitable[T]]) -> T:
        async with self.permit():
            return await operation()


NETWORK_GATE = NetworkGate(DEFAULT_CONCURRENCY)

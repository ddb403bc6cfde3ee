"""
Concurrency Limiter

Counting admission gate that bounds the number of probes in flight.
"""

import asyncio
import logging

from .errors import LimiterError

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """asyncio.Semaphore with in-flight accounting and an explicit shutdown.

    The same instance serves the TCP and the UDP phase; the phases never
    overlap, so ``permits`` is the bound for the whole scan.
    """

    def __init__(self, permits: int):
        if permits < 1:
            raise LimiterError(f"permits must be >= 1, got {permits}")
        self.permits = permits
        self._semaphore = asyncio.Semaphore(permits)
        self._closed = False
        self._waiting = 0
        self.in_flight = 0
        self.peak = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def acquire(self) -> None:
        """Wait for a free permit. Raises LimiterError once closed."""
        if self._closed:
            raise LimiterError("limiter is closed")
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1
        if self._closed:
            # pass the wakeup on to the next waiter
            self._semaphore.release()
            raise LimiterError("limiter closed while waiting for a permit")
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)

    def release(self) -> None:
        if self.in_flight <= 0:
            raise LimiterError("release() called without a matching acquire()")
        self.in_flight -= 1
        self._semaphore.release()

    def close(self) -> None:
        """Shut the gate. Pending and future acquire() calls fail."""
        if self._closed:
            return
        self._closed = True
        logger.debug(f"Limiter closed with {self.in_flight} in flight, {self._waiting} waiting")
        if self._waiting:
            self._semaphore.release()

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.release()

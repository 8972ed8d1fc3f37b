"""Concurrency gate bounding the number of in-flight requests.

Excess requests wait for a free slot instead of failing. The gate never
rejects and never times out on its own; callers that need a deadline wrap
``admit()`` in ``asyncio.timeout``/``asyncio.wait_for``, and a cancelled wait
never consumes a slot.

Usage:
    gate = ConcurrencyGate(100)
    app.middleware("http")(concurrency_middleware(gate))
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import Request, Response

from gatekeeper.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENT_NUM = 100


class ConcurrencyGate:
    """Process-wide counting gate with blocking admission.

    At most ``capacity`` holders at a time. Waiters are not ordered: whichever
    waiter the event loop wakes first takes the freed slot.
    """

    def __init__(self, capacity: int = DEFAULT_CONCURRENT_NUM) -> None:
        """Initialize the gate.

        Raises:
            ConfigurationError: If capacity is not a positive integer.
        """
        if capacity <= 0:
            raise ConfigurationError(
                code="invalid_concurrency_capacity",
                message="capacity must be >= 1",
                details={"setting": "concurrent_num", "actual_value": capacity},
            )
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_flight = 0
        self._waiting = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ConcurrencyGate(capacity={self._capacity}, in_flight={self._in_flight}, "
            f"waiting={self._waiting})"
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def waiting(self) -> int:
        return self._waiting

    async def admit(self) -> None:
        """Wait until a slot is free and take it.

        If the awaiting task is cancelled, CancelledError propagates and no
        slot is held, so ``release()`` must not be called.
        """

        if self._semaphore.locked():
            logger.debug(
                "gate.waiting",
                extra={"capacity": self._capacity, "waiting": self._waiting + 1},
            )
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1
        self._in_flight += 1

    def release(self) -> None:
        """Give back a slot taken by ``admit()``.

        Raises:
            RuntimeError: If no admission is outstanding.
        """

        if self._in_flight <= 0:
            raise RuntimeError("release() called without a matching admit()")
        self._in_flight -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator["ConcurrencyGate"]:
        """Hold a slot for the duration of the block, released on every exit path."""

        await self.admit()
        try:
            yield self
        finally:
            self.release()

    def stats(self) -> dict[str, int]:
        return {
            "capacity": self._capacity,
            "in_flight": self._in_flight,
            "waiting": self._waiting,
        }


def default_concurrency_gate() -> ConcurrencyGate:
    """Build a gate admitting 100 concurrent requests."""

    return ConcurrencyGate(DEFAULT_CONCURRENT_NUM)


CallNext = Callable[[Request], Awaitable[Response]]


def concurrency_middleware(gate: ConcurrencyGate) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Build an HTTP middleware that runs every request inside a gate slot.

    Usage:
        app.middleware("http")(concurrency_middleware(gate))
    """

    async def middleware(request: Request, call_next: CallNext) -> Response:
        async with gate.slot():
            return await call_next(request)

    return middleware

"""Two-key expiring window rate limiter.

Each caller gets two store entries sharing one TTL:

- ``<prefix><signature>``: attempt counter, created at 0.
- ``<prefix><signature>:timer``: UNIX time at which the window closes.

The timer entry's presence is what marks the window as open. If the counter
outlives its timer (clock or store skew), the counter is treated as stale,
deleted, and the window restarted instead of rejecting forever.

Store failures fail open: a limiter outage must not take the API down.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter, Allow, Decision, Reject
from gatekeeper.adapters.window_store.base import AbstractWindowStore
from gatekeeper.core.errors import ConfigurationError, StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_WINDOW_SECONDS = 60.0
TIMER_SUFFIX = ":timer"


def _invalid_setting(name: str, value: float, requirement: str = "positive") -> ConfigurationError:
    return ConfigurationError(
        code="invalid_rate_limit_config",
        message=f"{name} must be {requirement}",
        details={"setting": name, "actual_value": value},
    )


def _resolve_max_attempts(value: float | None) -> int:
    if not value:
        return DEFAULT_MAX_ATTEMPTS
    if value < 1 or value != int(value):
        raise _invalid_setting("max_attempts", value, "a positive integer")
    return int(value)


def _resolve_window_seconds(value: float | None) -> float:
    if not value:
        return DEFAULT_WINDOW_SECONDS
    if value < 0:
        raise _invalid_setting("window_seconds", value)
    return float(value)


class WindowThrottle(AbstractRateLimiter):
    """Per-caller attempt counter over an expiring window.

    Correctness under concurrent calls for the same caller relies on the
    store's atomic ``create_if_absent`` and ``increment``; the limiter itself
    holds no locks and never blocks on contention.
    """

    def __init__(
        self,
        store: AbstractWindowStore,
        *,
        max_attempts: int | None = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float | None = DEFAULT_WINDOW_SECONDS,
        key_prefix: str = "",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Window store holding counters and timers.
            max_attempts: Attempts allowed per window; 0/None means default.
            window_seconds: Window length in seconds; 0/None means default.
            key_prefix: Namespace prepended to every store key.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ConfigurationError: If a limit is negative, or max_attempts is not
                a whole number.
        """
        self._store = store
        self._max_attempts = _resolve_max_attempts(max_attempts)
        self._window_seconds = _resolve_window_seconds(window_seconds)
        self._key_prefix = key_prefix
        self._clock = clock

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def store(self) -> AbstractWindowStore:
        return self._store

    def now(self) -> float:
        return self._clock()

    async def admit(self, caller_key: str, now: float | None = None) -> Decision:
        """Count one attempt for ``caller_key`` and decide on it.

        Raises:
            ValueError: If caller_key is empty.
        """
        if not caller_key:
            raise ValueError("caller_key must be a non-empty string")

        if now is None:
            now = self._clock()

        try:
            return await self._admit(caller_key, now)
        except StoreUnavailableError as exc:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={"error_code": exc.code, "fail_open": True},
            )
            return Allow(limit=self._max_attempts, remaining=self._max_attempts)

    async def _open_window(self, count_key: str, timer_key: str, now: float) -> None:
        await self._store.create_if_absent(count_key, 0, self._window_seconds)
        await self._store.create_if_absent(timer_key, now + self._window_seconds, self._window_seconds)

    async def _admit(self, caller_key: str, now: float) -> Decision:
        count_key = f"{self._key_prefix}{caller_key}"
        timer_key = count_key + TIMER_SUFFIX

        # One retry at most: the second pass starts from a freshly opened window.
        for _ in range(2):
            if await self._store.read(count_key) is None:
                await self._open_window(count_key, timer_key, now)

            hits = await self._store.increment(count_key)
            if hits is None:
                # Counter expired between opening and incrementing.
                continue

            if hits <= self._max_attempts:
                return Allow(limit=self._max_attempts, remaining=max(0, self._max_attempts - hits))

            if await self._store.exists(timer_key):
                expires_at = await self._store.read(timer_key)
                retry_after = 0.0 if expires_at is None else max(0.0, float(expires_at) - now)
                return Reject(limit=self._max_attempts, retry_after=retry_after)

            logger.info("rate_limit.stale_counter_reset", extra={"hits": hits})
            await self._store.delete(count_key)

        return Allow(limit=self._max_attempts, remaining=max(0, self._max_attempts - 1))


def default_throttle(store: AbstractWindowStore) -> WindowThrottle:
    """Build a limiter with 60 attempts per minute."""

    return WindowThrottle(
        store,
        max_attempts=DEFAULT_MAX_ATTEMPTS,
        window_seconds=DEFAULT_WINDOW_SECONDS,
    )

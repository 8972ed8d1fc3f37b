"""In-memory TTL window store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every operation runs under a single lock, which is what makes
  ``create_if_absent`` and ``increment`` atomic.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from gatekeeper.adapters.window_store.base import AbstractWindowStore

logger = logging.getLogger(__name__)


@dataclass
class StoreItem:
    """Container for stored values with expiration metadata."""

    value: Any
    expires_at: float


class InMemoryWindowStore(AbstractWindowStore):
    """Thread-safe dict-backed store with lazy expiry.

    Expired entries are dropped when they are touched, and swept in bulk by
    ``create_if_absent`` at most once per ``sweep_interval_seconds``, so keys
    of callers that never come back don't pile up.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 1.0,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Minimum time between two expiry sweeps.
        """
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep_at = clock() + sweep_interval_seconds
        self._lock = threading.RLock()
        self._items: dict[str, StoreItem] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryWindowStore(size={len(self._items)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _live_item_locked(self, key: str) -> StoreItem | None:
        item = self._items.get(key)
        if item is None:
            return None
        if self._clock() >= item.expires_at:
            del self._items[key]
            logger.debug("window_store.expired", extra={"store_key": key[:16]})
            return None
        return item

    def _maybe_sweep_locked(self) -> None:
        now = self._clock()
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._sweep_interval
        removed = self._purge_expired_locked(now)
        if removed:
            logger.debug("window_store.swept", extra={"removed": removed, "size": len(self._items)})

    async def create_if_absent(self, key: str, value: Any, ttl_seconds: float) -> bool:
        with self._lock:
            self._maybe_sweep_locked()
            if self._live_item_locked(key) is not None:
                return False
            self._items[key] = StoreItem(value=value, expires_at=self._clock() + ttl_seconds)
            return True

    async def increment(self, key: str, delta: int = 1) -> int | None:
        with self._lock:
            item = self._live_item_locked(key)
            if item is None:
                return None
            item.value = int(item.value) + delta
            return item.value

    async def read(self, key: str) -> Any | None:
        with self._lock:
            item = self._live_item_locked(key)
            return None if item is None else item.value

    async def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_item_locked(key) is not None

    async def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            return self._purge_expired_locked(self._clock())

    def _purge_expired_locked(self, now: float) -> int:
        expired = [k for k, item in self._items.items() if item.expires_at <= now]
        for key in expired:
            del self._items[key]
        return len(expired)

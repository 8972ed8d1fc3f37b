"""Window store interface.

The rate limiter depends on this abstraction only, so the per-process
in-memory store can be replaced by a shared cache (e.g., Redis) without
touching the limiter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractWindowStore(ABC):
    """Key/value cache with per-key expiry.

    Implementations must make ``create_if_absent`` and ``increment`` atomic
    with respect to concurrent callers on the same key. TTLs are measured
    from the moment the entry is created.
    """

    @abstractmethod
    async def create_if_absent(self, key: str, value: Any, ttl_seconds: float) -> bool:
        """Store ``value`` under ``key`` only if the key does not exist.

        Returns:
            True if the entry was created, False if it already existed.

        Raises:
            StoreUnavailableError: If the backing cache cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str, delta: int = 1) -> int | None:
        """Atomically add ``delta`` to an existing integer entry.

        Never creates the key: an absent or expired key yields None, so an
        increment can't resurrect an entry without its TTL.

        Returns:
            The post-increment value, or None if the key does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    async def read(self, key: str) -> Any | None:
        """Return the stored value, or None if absent/expired."""
        raise NotImplementedError

    @abstractmethod
    async def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources (connections, pools)."""
        return None

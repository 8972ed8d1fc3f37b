"""Window store adapters.

The rate limiter keeps its counters in a key/value cache with per-key
expiry. This package provides the interface, a per-process in-memory
backend, and a Redis backend shared across server instances.
"""

from __future__ import annotations

from gatekeeper.adapters.window_store.base import AbstractWindowStore
from gatekeeper.adapters.window_store.in_memory import InMemoryWindowStore
from gatekeeper.adapters.window_store.redis_store import RedisWindowStore
from gatekeeper.core.config import AdmissionSettings
from gatekeeper.core.errors import ConfigurationError

__all__ = [
    "AbstractWindowStore",
    "InMemoryWindowStore",
    "RedisWindowStore",
    "create_window_store",
]


def create_window_store(config: AdmissionSettings) -> AbstractWindowStore:
    """Build the window store selected by ``config.store_backend``.

    Raises:
        ConfigurationError: If the backend name is unknown.
    """

    backend = config.store_backend.lower()
    if backend == "memory":
        return InMemoryWindowStore()
    if backend == "redis":
        return RedisWindowStore.from_url(config.redis_url)

    raise ConfigurationError(
        code="unknown_store_backend",
        message=f"Unsupported window store backend: {config.store_backend}",
        details={"setting": "store_backend", "actual_value": config.store_backend},
    )

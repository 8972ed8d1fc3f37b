"""Redis-backed window store.

Shared across workers and server instances, so every process enforces the
same per-caller limits. Values are JSON-encoded; counters stay plain
integers so INCRBY works on them.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from gatekeeper.adapters.window_store.base import AbstractWindowStore
from gatekeeper.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# INCRBY would create a missing key without a TTL; only touch live keys.
_INCREMENT_IF_EXISTS = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('INCRBY', KEYS[1], ARGV[1])
end
return false
"""


class RedisWindowStore(AbstractWindowStore):
    """Window store on top of ``redis.asyncio``."""

    def __init__(self, client: Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisWindowStore":
        client = Redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except RedisError as exc:
            logger.error(
                "window_store.redis_error",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise StoreUnavailableError(
                code="window_store_unavailable",
                message=f"Redis {operation} failed",
                details={"backend": "redis", "operation": operation},
            ) from exc

    async def create_if_absent(self, key: str, value: Any, ttl_seconds: float) -> bool:
        ttl_ms = max(1, int(ttl_seconds * 1000))
        created = await self._call(
            "create_if_absent",
            self._redis.set(key, json.dumps(value), nx=True, px=ttl_ms),
        )
        return bool(created)

    async def increment(self, key: str, delta: int = 1) -> int | None:
        result = await self._call(
            "increment",
            self._redis.eval(_INCREMENT_IF_EXISTS, 1, key, delta),
        )
        return None if result is None else int(result)

    async def read(self, key: str) -> Any | None:
        raw = await self._call("read", self._redis.get(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("window_store.corrupt_value", extra={"operation": "read"})
            raise StoreUnavailableError(
                code="window_store_corrupt_value",
                message="Redis value is not valid JSON",
                details={"backend": "redis", "operation": "read"},
            ) from exc

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", self._redis.exists(key)))

    async def delete(self, key: str) -> None:
        await self._call("delete", self._redis.delete(key))

    async def close(self) -> None:
        await self._redis.aclose()

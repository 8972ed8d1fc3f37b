"""Unit tests for the in-memory window store."""

import asyncio
import threading

import pytest

from gatekeeper.adapters.window_store import (
    InMemoryWindowStore,
    RedisWindowStore,
    create_window_store,
)
from gatekeeper.core.config import AdmissionSettings
from gatekeeper.core.errors import ConfigurationError


@pytest.mark.asyncio
async def test_create_if_absent_only_creates_once(store) -> None:
    assert await store.create_if_absent("k", 0, 60) is True
    assert await store.create_if_absent("k", 5, 60) is False
    assert await store.read("k") == 0


@pytest.mark.asyncio
async def test_entries_expire_after_ttl(store, clock) -> None:
    await store.create_if_absent("k", 0, 5)

    clock.advance(4.9)
    assert await store.exists("k") is True

    clock.advance(0.1)
    assert await store.exists("k") is False
    assert await store.read("k") is None
    assert await store.create_if_absent("k", 1, 5) is True


@pytest.mark.asyncio
async def test_increment_returns_new_value(store) -> None:
    await store.create_if_absent("k", 0, 60)

    assert await store.increment("k") == 1
    assert await store.increment("k", 3) == 4


@pytest.mark.asyncio
async def test_increment_does_not_create_missing_key(store, clock) -> None:
    assert await store.increment("missing") is None
    assert await store.exists("missing") is False

    await store.create_if_absent("k", 0, 1)
    clock.advance(1)
    assert await store.increment("k") is None


@pytest.mark.asyncio
async def test_increment_keeps_creation_ttl(store, clock) -> None:
    await store.create_if_absent("k", 0, 10)
    clock.advance(9)
    await store.increment("k")

    clock.advance(1)

    assert await store.exists("k") is False


@pytest.mark.asyncio
async def test_delete_removes_entry(store) -> None:
    await store.create_if_absent("k", 0, 60)
    await store.delete("k")
    await store.delete("never-stored")

    assert await store.exists("k") is False


def test_purge_expired_counts_removed_entries(store, clock) -> None:
    asyncio.run(store.create_if_absent("short", 0, 1))
    asyncio.run(store.create_if_absent("long", 0, 100))

    clock.advance(2)

    assert store.purge_expired() == 1
    assert len(store) == 1


def test_increment_is_atomic_across_threads(store) -> None:
    asyncio.run(store.create_if_absent("k", 0, 60))

    def _worker() -> None:
        for _ in range(100):
            asyncio.run(store.increment("k"))

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert asyncio.run(store.read("k")) == 800


def test_factory_selects_backend() -> None:
    assert isinstance(create_window_store(AdmissionSettings(store_backend="memory")), InMemoryWindowStore)
    assert isinstance(
        create_window_store(AdmissionSettings(store_backend="redis", redis_url="redis://localhost:6379/0")),
        RedisWindowStore,
    )


def test_factory_rejects_unknown_backend() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        create_window_store(AdmissionSettings(store_backend="memcached"))

    assert exc_info.value.code == "unknown_store_backend"


@pytest.mark.asyncio
async def test_expired_entries_of_departed_callers_are_swept(store, clock) -> None:
    for idx in range(1000):
        await store.create_if_absent(f"caller-{idx}", 0, 1)
    assert len(store) == 1000

    clock.advance(2)
    await store.create_if_absent("newcomer", 0, 1)

    assert len(store) == 1


@pytest.mark.asyncio
async def test_sweep_runs_at_most_once_per_interval(clock) -> None:
    store = InMemoryWindowStore(clock=clock, sweep_interval_seconds=10)
    await store.create_if_absent("short", 0, 1)

    clock.advance(2)
    await store.create_if_absent("other", 0, 60)
    assert len(store) == 2

    clock.advance(8)
    await store.create_if_absent("another", 0, 60)
    assert len(store) == 2
    assert await store.exists("short") is False

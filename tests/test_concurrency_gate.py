"""Unit tests for the concurrency gate."""

import asyncio

import pytest

from gatekeeper.core.concurrency import ConcurrencyGate, default_concurrency_gate
from gatekeeper.core.errors import ConfigurationError


@pytest.mark.asyncio
async def test_excess_callers_wait_until_release() -> None:
    gate = ConcurrencyGate(3)
    release = asyncio.Event()
    peak = 0

    async def _request() -> None:
        nonlocal peak
        async with gate.slot():
            peak = max(peak, gate.in_flight)
            await release.wait()

    tasks = [asyncio.create_task(_request()) for _ in range(5)]
    while gate.in_flight + gate.waiting < 5:
        await asyncio.sleep(0)

    assert gate.in_flight == 3
    assert gate.waiting == 2
    assert not any(t.done() for t in tasks)

    release.set()
    await asyncio.wait_for(asyncio.gather(*tasks), timeout=1)

    assert peak == 3
    assert gate.in_flight == 0
    assert gate.waiting == 0


@pytest.mark.asyncio
async def test_slot_is_released_when_handler_raises() -> None:
    gate = ConcurrencyGate(1)

    with pytest.raises(RuntimeError, match="boom"):
        async with gate.slot():
            raise RuntimeError("boom")

    assert gate.in_flight == 0
    await asyncio.wait_for(gate.admit(), timeout=1)
    gate.release()


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_leak_a_slot() -> None:
    gate = ConcurrencyGate(1)
    await gate.admit()

    waiter = asyncio.create_task(gate.admit())
    while gate.waiting == 0:
        await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert gate.in_flight == 1
    assert gate.waiting == 0

    gate.release()
    await asyncio.wait_for(gate.admit(), timeout=1)
    assert gate.in_flight == 1
    gate.release()


@pytest.mark.asyncio
async def test_admit_can_be_bounded_by_caller_timeout() -> None:
    gate = ConcurrencyGate(1)
    await gate.admit()

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(gate.admit(), timeout=0.01)

    assert gate.in_flight == 1
    gate.release()


@pytest.mark.asyncio
async def test_release_without_admit_is_an_error() -> None:
    gate = ConcurrencyGate(2)

    with pytest.raises(RuntimeError):
        gate.release()


@pytest.mark.parametrize("capacity", [0, -1])
def test_non_positive_capacity_is_rejected(capacity: int) -> None:
    with pytest.raises(ConfigurationError):
        ConcurrencyGate(capacity)


def test_default_gate_capacity() -> None:
    gate = default_concurrency_gate()

    assert gate.stats() == {"capacity": 100, "in_flight": 0, "waiting": 0}

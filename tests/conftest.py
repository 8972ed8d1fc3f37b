"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any import that might build settings.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("ADMISSION_STORE_BACKEND", "memory")
os.environ.setdefault("ADMISSION_MAX_ATTEMPTS", "5")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from gatekeeper.adapters.window_store import InMemoryWindowStore


class FakeTime:
    """Deterministic clock shared by a limiter and its store."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeTime:
    return FakeTime()


@pytest.fixture
def store(clock: FakeTime) -> InMemoryWindowStore:
    return InMemoryWindowStore(clock=clock)

"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the counting strategy and its storage can change independently.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Allow:
    """The request may proceed.

    Attributes:
        limit: Max attempts per window.
        remaining: Attempts left in the current window after this one.
    """

    limit: int
    remaining: int

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Reject:
    """The request must be answered with 429 Too Many Requests.

    Attributes:
        limit: Max attempts per window.
        retry_after: Seconds until the current window closes (never negative).
    """

    limit: int
    retry_after: float

    @property
    def allowed(self) -> bool:
        return False

    @property
    def remaining(self) -> int:
        return 0


Decision = Union[Allow, Reject]


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    def now(self) -> float:
        """Current UNIX time as seen by this limiter."""
        return time.time()

    @abstractmethod
    async def admit(self, caller_key: str, now: float | None = None) -> Decision:
        """Count one attempt for ``caller_key`` and decide on it.

        Every call counts, including the one that trips the limit, so callers
        must invoke this once per logical request.

        Args:
            caller_key: Opaque caller signature.
            now: UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            Allow or Reject.
        """
        raise NotImplementedError

"""Rate limiting adapters.

A small abstraction layer between the HTTP dependency and the counting
strategy; counters live in a window store (see ``adapters.window_store``).
"""

from __future__ import annotations

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter, Allow, Decision, Reject
from gatekeeper.adapters.rate_limit.headers import rate_limit_headers
from gatekeeper.adapters.rate_limit.window import WindowThrottle, default_throttle

__all__ = [
    "AbstractRateLimiter",
    "Allow",
    "Decision",
    "Reject",
    "WindowThrottle",
    "default_throttle",
    "rate_limit_headers",
]

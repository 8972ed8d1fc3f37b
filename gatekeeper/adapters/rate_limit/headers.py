"""Rate limit response headers."""

from __future__ import annotations

import math

from gatekeeper.adapters.rate_limit.base import Decision, Reject

LIMIT_HEADER = "X-RateLimit-Limit"
REMAINING_HEADER = "X-RateLimit-Remaining"
RETRY_AFTER_HEADER = "Retry-After"
RESET_HEADER = "X-RateLimit-Reset"


def rate_limit_headers(decision: Decision, now: float) -> dict[str, str]:
    """Build the headers for a limiter decision.

    Limit and remaining are sent on every decision. Rejections also carry
    ``Retry-After`` (whole seconds, rounded up) and ``X-RateLimit-Reset``
    (UNIX epoch seconds at which the window closes).

    Args:
        decision: Allow or Reject returned by the limiter.
        now: UNIX time the decision was taken at.
    """

    headers = {
        LIMIT_HEADER: str(decision.limit),
        REMAINING_HEADER: str(decision.remaining),
    }
    if isinstance(decision, Reject):
        headers[RETRY_AFTER_HEADER] = str(int(math.ceil(decision.retry_after)))
        headers[RESET_HEADER] = str(int(math.ceil(now + decision.retry_after)))
    return headers

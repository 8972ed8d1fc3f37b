"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Explicit injection: the limiter (and its window store) is built by the app
  factory and kept on ``app.state``; routes only see a dependency function.
- One count per request: ``admit`` is called exactly once per request, and
  the rejecting attempt is counted too.
- Limit headers on every response, not only on 429s.

Rate limiting strategy:
- Per-caller expiring window keyed by the signature of host + client IP.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status

from gatekeeper.adapters.rate_limit import AbstractRateLimiter, rate_limit_headers
from gatekeeper.core.signature import signature_for_request

logger = logging.getLogger(__name__)

TOO_MANY_ATTEMPTS = "Too Many Attempts."


def get_throttle(request: Request) -> AbstractRateLimiter | None:
    """Return the application's rate limiter, or None when rate limiting is off."""

    return getattr(request.app.state, "throttle", None)


async def enforce_rate_limit(
    request: Request,
    response: Response,
    throttle: Annotated[AbstractRateLimiter | None, Depends(get_throttle)],
) -> None:
    """FastAPI dependency enforcing per-caller rate limits.

    Counts one attempt for the caller. Allowed requests get
    ``X-RateLimit-Limit``/``X-RateLimit-Remaining`` on their response;
    rejected ones are answered with 429 plus ``Retry-After`` and
    ``X-RateLimit-Reset``.

    Args:
        request: FastAPI request.
        response: Response whose headers receive the limit headers.
        throttle: Limiter injected from app state.

    Raises:
        HTTPException: 429 Too Many Requests when the caller is over its limit.
    """

    if throttle is None:
        return

    signature = signature_for_request(request)
    key_hash = signature[:16]
    now = throttle.now()

    decision = await throttle.admit(signature, now)
    headers = rate_limit_headers(decision, now)

    if decision.allowed:
        response.headers.update(headers)
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
            },
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": decision.limit,
            "retry_after_s": round(decision.retry_after, 3),
            "request_path": request.url.path,
        },
    )

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=TOO_MANY_ATTEMPTS,
        headers=headers,
    )

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from gatekeeper.adapters.rate_limit import WindowThrottle
from gatekeeper.core.rate_limit import enforce_rate_limit, get_throttle

router = APIRouter(tags=["Admission"])


@router.get("/admission", dependencies=[Depends(enforce_rate_limit)])
async def admission_status(request: Request) -> dict:
    """Report the state of the admission layer.

    This route is itself rate limited, so its response carries the caller's
    current ``X-RateLimit-*`` headers.

    Returns:
        dict: Gate occupancy and limiter configuration (null when disabled).
    """

    gate = getattr(request.app.state, "gate", None)
    throttle = get_throttle(request)

    rate_limit = None
    if isinstance(throttle, WindowThrottle):
        rate_limit = {
            "max_attempts": throttle.max_attempts,
            "window_seconds": throttle.window_seconds,
        }

    return {
        "concurrency": gate.stats() if gate is not None else None,
        "rate_limit": rate_limit,
    }

"""Caller signature resolution.

A signature is an opaque key scoping rate-limit state per caller. It is a
SHA-256 digest of the requested host and the client address, so raw
addresses never reach the window store or the logs.

Distinct callers colliding on one digest is not detected; with a 256-bit
digest the risk is negligible.
"""

from __future__ import annotations

import hashlib

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def resolve_request_signature(host: str | None, client_address: str | None) -> str:
    """Derive the signature for a host/client pair.

    Args:
        host: Host the request was addressed to (case-insensitive).
        client_address: Caller IP address, without port.

    Returns:
        Hex-encoded SHA-256 digest.
    """

    material = f"{(host or '').lower()}|{client_address or UNKNOWN_CLIENT}"
    return hashlib.sha256(material.encode()).hexdigest()


def signature_for_request(request: Request) -> str:
    """Resolve the signature of the caller issuing ``request``.

    The client port is ignored so a caller keeps its signature across
    connections.
    """

    host = request.headers.get("host") or request.url.hostname
    client_address = request.client.host if request.client else None
    return resolve_request_signature(host, client_address)

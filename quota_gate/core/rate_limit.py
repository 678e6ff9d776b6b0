"""Rate limiting glue between FastAPI routes and the limiter.

The limiter instance is created once by the app factory and stored on
``app.state``; routes reach it through ``get_rate_limiter`` so tests can swap
it per app.

Quota is consumed explicitly by the route (``consume_quota``) after the
request body has been validated, so malformed requests never cost quota.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone

from fastapi import HTTPException, Request, Response, status

from quota_gate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AdmissionResult,
    Identity,
    StatusResult,
)
from quota_gate.core.auth import client_address

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """FastAPI dependency returning the app's shared limiter."""
    return request.app.state.rate_limiter


def format_reset_time(timestamp: float) -> str:
    """ISO-8601 UTC rendering of a window reset time, millisecond precision."""
    return (
        datetime.fromtimestamp(timestamp, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def rate_limit_headers(result: StatusResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": format_reset_time(result.window_reset_at),
    }


def describe_window(window_seconds: float) -> str:
    """Human wording for a window size.

    Examples:
        >>> describe_window(3600)
        'hour'
        >>> describe_window(7200)
        '2 hours'
        >>> describe_window(90)
        '90 seconds'
    """
    seconds = int(window_seconds)
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return unit if count == 1 else f"{count} {unit}s"
    return "second" if seconds == 1 else f"{seconds} seconds"


def denial_message(result: StatusResult, window_seconds: float) -> str:
    return (
        f"Too many requests. {result.tier.capitalize()} users can make "
        f"{result.limit} requests per {describe_window(window_seconds)}."
    )


def _hash_limiter_key(key: str) -> str:
    """Hash the tracking key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def consume_quota(
    request: Request,
    response: Response,
    identity: Identity | None,
    limiter: AbstractRateLimiter,
) -> AdmissionResult:
    """Consume one request from the caller's quota.

    Sets X-RateLimit-* headers on the response (when enabled) and records the
    remaining budget and headers on ``request.state`` so error handlers can
    repeat them when the request fails after admission.

    Raises:
        HTTPException: 429 Too Many Requests when the quota is exhausted.
    """
    origin = client_address(request)
    result = limiter.check_and_consume(identity, origin)
    include_headers = request.app.state.settings.rate_limit.include_headers
    headers = rate_limit_headers(result) if include_headers else {}
    request.state.rate_limit_remaining = result.remaining
    request.state.rate_limit_headers = headers

    log_extra = {
        "tier": result.tier,
        "key_hash": _hash_limiter_key(limiter.derive_key(identity, origin)),
        "limit": result.limit,
        "remaining": result.remaining,
    }

    if result.admitted:
        logger.info("rate_limit.allowed", extra=log_extra)
        response.headers.update(headers)
        return result

    logger.warning("rate_limit.exceeded", extra=log_extra)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "error": denial_message(result, limiter.window_seconds),
            "code": "rate_limit_exceeded",
            "remaining_requests": result.remaining,
            "reset_time": format_reset_time(result.window_reset_at),
            "user_type": result.tier,
        },
        headers=headers or None,
    )

from __future__ import annotations

import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter, Identity
from quota_gate.api.dependencies import get_rate_limiter
from quota_gate.core.auth import client_address, resolve_identity
from quota_gate.core.rate_limit import describe_window, format_reset_time
from quota_gate.schemas.status import (
    DebugRateLimitsResponse,
    LimitsResponse,
    StatusResponse,
    WindowInfo,
)

router = APIRouter(tags=["Status"])


def _window_size_label(window_seconds: float) -> str:
    label = describe_window(window_seconds)
    return f"1 {label}" if not label[0].isdigit() else label


@router.get("/status", response_model=StatusResponse)
def quota_status(
    request: Request,
    identity: Annotated[Identity | None, Depends(resolve_identity)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> StatusResponse:
    """Remaining requests for the caller. Does not consume quota."""
    result = limiter.peek_status(identity, client_address(request))
    return StatusResponse(
        remaining_requests=result.remaining,
        total_requests=result.limit,
        user_type=result.tier,
        reset_time=format_reset_time(result.window_reset_at),
        window_info=WindowInfo(
            size=_window_size_label(limiter.window_seconds),
            reset_in_ms=max(0, int((result.window_reset_at - time.time()) * 1000)),
        ),
    )


@router.get("/limits", response_model=LimitsResponse)
def tier_limits(
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> LimitsResponse:
    """Configured quota per tier and how callers are tracked."""
    return LimitsResponse(
        rate_limits=limiter.tier_limits,
        window_size=_window_size_label(limiter.window_seconds),
        tracking={
            "guests": "By IP address",
            "authenticated_users": "By user ID",
        },
    )


@router.get("/debug/rate-limits", response_model=DebugRateLimitsResponse)
def debug_rate_limits(
    request: Request,
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> DebugRateLimitsResponse:
    """Dump the limiter's tracked windows. Disabled in production."""
    cfg = request.app.state.settings
    if cfg.is_production or not cfg.app.debug_endpoints:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Debug endpoint not available in production",
        )

    return DebugRateLimitsResponse(
        message="Current rate limit data (debug mode)",
        data=limiter.debug_snapshot(),
        note="This endpoint is only available in development mode",
    )

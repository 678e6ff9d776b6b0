from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from quota_gate.schemas.status import HealthResponse, Uptime

router = APIRouter(tags=["Health"])


def format_uptime(seconds: int) -> str:
    """Render an uptime as ``<h>h <m>m <s>s``.

    Examples:
        >>> format_uptime(3725)
        '1h 2m 5s'
    """
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m {seconds % 60}s"


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    uptime = int(time.monotonic() - started_at)
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=Uptime(seconds=uptime, formatted=format_uptime(uptime)),
        environment=request.app.state.settings.app_env,
        version=request.app.version,
    )

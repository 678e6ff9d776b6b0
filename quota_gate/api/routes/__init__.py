from __future__ import annotations

from quota_gate.api.routes.auth import router as auth_router
from quota_gate.api.routes.chat import router as chat_router
from quota_gate.api.routes.health import router as health_router
from quota_gate.api.routes.status import router as status_router

__all__ = ["auth_router", "chat_router", "health_router", "status_router"]

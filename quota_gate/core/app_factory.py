"""Application factory for the FastAPI app.

Builds everything that lives for the process lifetime (rate limiter, cleanup
scheduler, user store, chat service) and hangs it on ``app.state``, so each
app instance, including the ones tests create, owns its own state.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from quota_gate import __version__
from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.adapters.llm.factory import create_llm_client
from quota_gate.adapters.rate_limit.base import AbstractRateLimiter
from quota_gate.adapters.rate_limit.cleanup import CleanupScheduler
from quota_gate.adapters.rate_limit.in_memory import InMemoryTieredRateLimiter
from quota_gate.api.routes import auth_router, chat_router, health_router, status_router
from quota_gate.core.config import Settings, settings as default_settings
from quota_gate.core.exception_handlers import setup_exception_handlers
from quota_gate.core.logging import configure_logging
from quota_gate.core.middleware import request_id_middleware
from quota_gate.core.openapi import TAGS_METADATA, apply_openapi_customizations
from quota_gate.services.chat_service import ChatService
from quota_gate.services.user_service import UserService

logger = logging.getLogger(__name__)


def build_rate_limiter(cfg: Settings) -> InMemoryTieredRateLimiter:
    """Create the limiter from settings.

    Raises:
        ConfigurationError: If the tier table or window is invalid.
    """
    return InMemoryTieredRateLimiter(
        tier_limits=cfg.rate_limit.tier_limits(),
        window_seconds=cfg.rate_limit.window_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the cleanup sweep on startup, cancel it on shutdown."""
    scheduler: CleanupScheduler = app.state.cleanup_scheduler
    await scheduler.start()
    logger.info(
        "app.started",
        extra={
            "tier_limits": app.state.rate_limiter.tier_limits,
            "window_s": app.state.rate_limiter.window_seconds,
        },
    )
    try:
        yield
    finally:
        await scheduler.shutdown()
        logger.info("app.stopped")


def create_app(
    *,
    app_settings: Settings | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    llm_client: AbstractLLMClient | None = None,
    user_service: UserService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Collaborators can be injected (mainly by tests); anything omitted is
    built from settings. Invalid configuration fails here, at startup.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    limiter = rate_limiter or build_rate_limiter(cfg)

    app = FastAPI(
        title="AI Quota Gateway",
        description=(
            "Gates calls to an AI text generation API behind per-tier request "
            "quotas. Guests are tracked by IP address, signed-in users by user "
            "id, each with a fixed one-window counter."
        ),
        version=__version__,
        openapi_tags=TAGS_METADATA,
        docs_url=None if cfg.is_production else "/docs",
        redoc_url=None if cfg.is_production else "/redoc",
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.started_at = time.monotonic()
    app.state.rate_limiter = limiter
    app.state.cleanup_scheduler = CleanupScheduler(
        limiter,
        interval_seconds=cfg.rate_limit.cleanup_interval_seconds,
    )
    app.state.user_service = user_service or UserService(bcrypt_rounds=cfg.auth.bcrypt_rounds)
    app.state.chat_service = ChatService(
        llm=llm_client or create_llm_client(cfg.llm),
        default_model=cfg.llm.model,
        max_message_chars=cfg.app.max_message_chars,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")
    app.include_router(status_router, prefix="/api")
    app.include_router(health_router, prefix="/api")

    apply_openapi_customizations(app)

    return app

"""Global exception handlers for consistent error responses.

Every error body has the same shape as the rest of the API:
``{"success": false, "error": <message>, "code": <code>, "request_id": ...}``.

- AppError subclasses -> their ``http_status``
- HTTPException (e.g. 429 from rate limiting) -> its status, headers kept
- Unexpected Exception -> generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quota_gate.core.config import settings
from quota_gate.core.errors import AppError, LLMAppError
from quota_gate.core.logging import get_request_id

logger = logging.getLogger(__name__)


def error_body(message: str, code: str, **extra) -> dict:
    body = {
        "success": False,
        "error": message,
        "code": code,
        "request_id": get_request_id(),
    }
    body.update(extra)
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Details are only exposed for LLM failures when debug mode is on, since
    they may contain provider internals.
    """
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.http_status,
            "has_details": bool(exc.details),
        },
    )

    cfg = getattr(request.app.state, "settings", settings)
    extra = {}
    if exc.details and (cfg.app.debug or not isinstance(exc, LLMAppError)):
        extra["details"] = exc.details
    remaining = getattr(request.state, "rate_limit_remaining", None)
    if remaining is not None:
        extra["remaining_requests"] = remaining

    return JSONResponse(
        status_code=exc.http_status,
        content=error_body(exc.message, exc.code, **extra),
        headers=getattr(request.state, "rate_limit_headers", None) or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException in the API's error shape.

    A dict ``detail`` is merged into the body so routes can attach fields
    such as ``remaining_requests`` (see the rate limit dependency).
    """
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = str(detail.pop("error", "Request failed"))
        code = str(detail.pop("code", f"http_{exc.status_code}"))
        content = error_body(message, code, **detail)
    else:
        content = error_body(str(exc.detail), f"http_{exc.status_code}")

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query validation errors -> 400 with the first problem spelled out."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    logger.info("request_validation_failed", extra={"error_count": len(errors), "field": field})
    return JSONResponse(status_code=400, content=error_body(message, "invalid_request"))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (no stack traces to client)."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=error_body(
            "An unexpected error occurred. Please try again later.",
            "internal_server_error",
        ),
        headers=getattr(request.state, "rate_limit_headers", None) or None,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)

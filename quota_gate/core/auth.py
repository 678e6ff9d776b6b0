"""Bearer token authentication and caller identity resolution.

Requests without an Authorization header are served as guests. A token that
is present but invalid or expired is rejected outright rather than silently
downgraded, so a client never burns guest quota by accident.

Design principles:
- Token logic (create/decode) is plain functions, testable without FastAPI
- resolve_identity is the only FastAPI-facing piece, used via Depends()
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from fastapi import Header, Request
from jose import JWTError, jwt

from quota_gate.adapters.rate_limit.base import Identity
from quota_gate.core.config import AuthSettings, settings
from quota_gate.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def create_access_token(
    user: dict[str, Any],
    *,
    auth_settings: AuthSettings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed token carrying the user's id, username and tier.

    Args:
        user: Mapping with ``id``, ``username`` and ``type`` (tier).
        auth_settings: Signing configuration; defaults to global settings.
        expires_delta: Token lifetime; defaults to the configured lifetime.

    Returns:
        Encoded JWT string.
    """
    cfg = auth_settings or settings.auth
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=cfg.token_expires_minutes)
    )
    claims = {
        "id": user["id"],
        "username": user["username"],
        "type": user["type"],
        "exp": expire,
    }
    return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)


def decode_access_token(token: str, *, auth_settings: AuthSettings | None = None) -> dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        AuthenticationAppError: 403 if the signature, format or expiry is invalid.
    """
    cfg = auth_settings or settings.auth
    try:
        return jwt.decode(token, cfg.jwt_secret, algorithms=[cfg.jwt_algorithm])
    except JWTError as exc:
        logger.warning(
            "auth.invalid_token",
            extra={
                "reason": type(exc).__name__,
                "token_hash": hashlib.sha256(token.encode()).hexdigest()[:16],
            },
        )
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
            http_status=403,
        ) from exc


def identity_from_claims(claims: dict[str, Any]) -> Identity:
    """Build an Identity from token claims; missing tier means guest."""
    tier = claims.get("type") or "guest"
    return Identity(tier=str(tier).lower(), id=claims.get("id"))


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token part of ``Bearer <token>``, or None if absent."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def client_address(request: Request) -> str:
    """Best-effort origin address of the request.

    Uses the socket peer first, then the first X-Forwarded-For hop.
    """
    if request.client and request.client.host:
        return request.client.host

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return "unknown"


async def resolve_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """FastAPI dependency resolving the caller identity.

    Returns:
        Identity for a valid token, None for guests (no header, or a header
        without credentials such as a bare ``Bearer``).

    Raises:
        AuthenticationAppError: 403 when a token is supplied but invalid.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        _, _, credentials = (authorization or "").strip().partition(" ")
        if credentials.strip():
            raise AuthenticationAppError(
                code="invalid_token",
                message="Invalid or expired token",
                http_status=403,
            )
        logger.debug("auth.guest")
        return None

    identity = identity_from_claims(decode_access_token(token))
    logger.debug("auth.success", extra={"tier": identity.tier, "user_id": identity.id})
    return identity

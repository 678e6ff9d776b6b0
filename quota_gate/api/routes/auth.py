from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter
from quota_gate.api.dependencies import get_rate_limiter, get_user_service
from quota_gate.core.auth import create_access_token
from quota_gate.core.rate_limit import describe_window
from quota_gate.schemas.auth import AuthResponse, Credentials, DemoUsersResponse, RegisterRequest
from quota_gate.services.user_service import DEMO_PASSWORD, UserService

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=AuthResponse)
def login(
    body: Credentials,
    users: Annotated[UserService, Depends(get_user_service)],
) -> AuthResponse:
    """Exchange username/password for a bearer token.

    Raises:
        ValidationAppError: 400 when a field is missing.
        AuthenticationAppError: 401 on wrong credentials.
    """
    user = users.authenticate(body.username, body.password)
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.public()),
        user=user.public(),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    users: Annotated[UserService, Depends(get_user_service)],
) -> AuthResponse:
    """Create an account (demo only, kept in memory) and log it in."""
    user = users.register(body.username, body.password, body.type)
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.public()),
        user=user.public(),
    )


@router.get("/users", response_model=DemoUsersResponse)
def demo_users(
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> DemoUsersResponse:
    """List the seeded demo accounts and what each tier allows."""
    limits = limiter.tier_limits
    window = describe_window(limiter.window_seconds)
    return DemoUsersResponse(
        message="Demo users for testing",
        users=[
            {
                "username": f"{tier}user",
                "password": DEMO_PASSWORD,
                "type": tier,
                "limit": f"{limits[tier]} requests/{window}",
            }
            for tier in ("free", "premium")
            if tier in limits
        ],
        note=f"Guests (no auth) get {limits['guest']} requests/{window}",
    )

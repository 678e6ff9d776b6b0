"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests. The
environment is set before any quota_gate import so settings pick it up.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "mock")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from quota_gate.adapters.llm.mock_client import MockLLMClient
from quota_gate.adapters.rate_limit.in_memory import InMemoryTieredRateLimiter
from quota_gate.core.app_factory import create_app
from quota_gate.services.user_service import UserService

TIER_LIMITS = {"guest": 3, "free": 10, "premium": 50}
HOUR = 3600


@pytest.fixture
def clock() -> Mock:
    """Controllable time source, starting at an arbitrary UNIX time."""
    return Mock(return_value=1_000_000.0)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryTieredRateLimiter:
    return InMemoryTieredRateLimiter(tier_limits=TIER_LIMITS, window_seconds=HOUR, clock=clock)


@pytest.fixture
def user_service() -> UserService:
    return UserService(bcrypt_rounds=4)


@pytest.fixture
def app(limiter: InMemoryTieredRateLimiter, user_service: UserService):
    return create_app(
        rate_limiter=limiter,
        llm_client=MockLLMClient(),
        user_service=user_service,
    )


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client

"""End-to-end tests for the HTTP surface.

Uses the app factory with an injected limiter (controllable clock), the mock
LLM client and a fresh user store per test.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.adapters.rate_limit.base import Identity
from quota_gate.core.app_factory import create_app
from quota_gate.core.errors import LLMAppError
from quota_gate.services.user_service import DEMO_PASSWORD

HOUR = 3600


def _chat(client: TestClient, message="Hello AI", headers=None):
    return client.post("/api/chat", json={"message": message}, headers=headers or {})


def _login(client: TestClient, username: str) -> dict[str, str]:
    resp = client.post("/api/login", json={"username": username, "password": DEMO_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


class TestChatRateLimiting:
    def test_guest_quota_scenario(self, client: TestClient) -> None:
        remaining = []
        for _ in range(3):
            resp = _chat(client)
            assert resp.status_code == 200
            body = resp.json()
            assert body["success"] is True
            assert body["user_type"] == "guest"
            assert body["is_demo"] is True
            remaining.append(body["remaining_requests"])
        assert remaining == [2, 1, 0]

        denied = _chat(client)
        assert denied.status_code == 429
        body = denied.json()
        assert body["success"] is False
        assert body["error"] == "Too many requests. Guest users can make 3 requests per hour."
        assert body["remaining_requests"] == 0
        assert body["user_type"] == "guest"
        assert body["reset_time"].endswith("Z")

    def test_rate_limit_headers(self, client: TestClient) -> None:
        resp = _chat(client)

        assert resp.headers["X-RateLimit-Limit"] == "3"
        assert resp.headers["X-RateLimit-Remaining"] == "2"
        assert resp.headers["X-RateLimit-Reset"].endswith("Z")

        for _ in range(2):
            _chat(client)
        denied = _chat(client)
        assert denied.headers["X-RateLimit-Remaining"] == "0"
        assert denied.headers["X-RateLimit-Limit"] == "3"

    def test_free_user_has_own_quota(self, client: TestClient) -> None:
        for _ in range(3):
            _chat(client)
        assert _chat(client).status_code == 429

        headers = _login(client, "freeuser")
        resp = _chat(client, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["remaining_requests"] == 9
        assert resp.json()["user_type"] == "free"

    def test_premium_user_gets_fifty(self, client: TestClient) -> None:
        headers = _login(client, "premiumuser")
        for _ in range(50):
            assert _chat(client, headers=headers).status_code == 200
        assert _chat(client, headers=headers).status_code == 429

    def test_window_expiry_restores_quota(self, client: TestClient, clock) -> None:
        for _ in range(3):
            _chat(client)
        assert _chat(client).status_code == 429

        clock.return_value += HOUR
        resp = _chat(client)
        assert resp.status_code == 200
        assert resp.json()["remaining_requests"] == 2

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}, {"message": 5}])
    def test_invalid_message_does_not_consume_quota(self, client: TestClient, limiter, payload) -> None:
        resp = client.post("/api/chat", json=payload)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Message is required and must be a non-empty string"
        assert limiter.debug_snapshot() == {}

    def test_too_long_message_rejected(self, client: TestClient, limiter) -> None:
        resp = _chat(client, message="x" * 1001)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Message must be less than 1000 characters"
        assert limiter.debug_snapshot() == {}

    def test_invalid_token_rejected_without_consuming(self, client: TestClient, limiter) -> None:
        resp = _chat(client, headers={"Authorization": "Bearer garbage"})

        assert resp.status_code == 403
        assert resp.json()["error"] == "Invalid or expired token"
        assert limiter.debug_snapshot() == {}

    def test_bearer_without_token_is_guest(self, client: TestClient) -> None:
        resp = _chat(client, headers={"Authorization": "Bearer"})

        assert resp.status_code == 200
        assert resp.json()["user_type"] == "guest"
        assert resp.json()["remaining_requests"] == 2


class TestChatProviderErrors:
    def test_provider_failure_maps_status(self, limiter, user_service) -> None:
        llm = AsyncMock(spec=AbstractLLMClient)
        llm.is_demo = False
        llm.generate_text.side_effect = LLMAppError(
            code="llm_quota_exceeded",
            message="LLM provider quota exceeded. Please check your plan.",
            http_status=402,
        )
        app = create_app(rate_limiter=limiter, llm_client=llm, user_service=user_service)

        with TestClient(app) as client:
            resp = _chat(client)

        assert resp.status_code == 402
        body = resp.json()
        assert body["code"] == "llm_quota_exceeded"
        assert body["remaining_requests"] == 2

    def test_provider_failure_keeps_rate_limit_headers(self, limiter, user_service) -> None:
        llm = AsyncMock(spec=AbstractLLMClient)
        llm.is_demo = False
        llm.generate_text.side_effect = LLMAppError(
            code="llm_request_failed",
            message="Failed to get AI response",
            http_status=502,
        )
        app = create_app(rate_limiter=limiter, llm_client=llm, user_service=user_service)

        with TestClient(app) as client:
            resp = _chat(client)

        assert resp.status_code == 502
        assert resp.headers["X-RateLimit-Limit"] == "3"
        assert resp.headers["X-RateLimit-Remaining"] == "2"
        assert resp.headers["X-RateLimit-Reset"].endswith("Z")

    def test_unexpected_failure_keeps_rate_limit_headers(self, limiter, user_service) -> None:
        llm = AsyncMock(spec=AbstractLLMClient)
        llm.is_demo = False
        llm.generate_text.side_effect = RuntimeError("connection reset")
        app = create_app(rate_limiter=limiter, llm_client=llm, user_service=user_service)

        with TestClient(app, raise_server_exceptions=False) as client:
            resp = _chat(client)

        assert resp.status_code == 500
        assert resp.headers["X-RateLimit-Remaining"] == "2"


class TestStatus:
    def test_status_does_not_consume(self, client: TestClient) -> None:
        _chat(client)
        for _ in range(5):
            resp = client.get("/api/status")
            assert resp.status_code == 200
            body = resp.json()
            assert body["remaining_requests"] == 2
            assert body["total_requests"] == 3
            assert body["user_type"] == "guest"
            assert body["window_info"]["size"] == "1 hour"

        assert _chat(client).json()["remaining_requests"] == 1

    def test_status_for_user(self, client: TestClient) -> None:
        headers = _login(client, "premiumuser")
        body = client.get("/api/status", headers=headers).json()

        assert body["remaining_requests"] == 50
        assert body["user_type"] == "premium"

    def test_limits(self, client: TestClient) -> None:
        body = client.get("/api/limits").json()

        assert body["rate_limits"] == {"guest": 3, "free": 10, "premium": 50}
        assert body["window_size"] == "1 hour"
        assert body["algorithm"] == "Fixed Window"

    def test_debug_snapshot(self, client: TestClient, limiter) -> None:
        limiter.check_and_consume(Identity(tier="free", id=1), "testclient")
        body = client.get("/api/debug/rate-limits").json()

        assert body["success"] is True
        assert body["data"]["user:1"]["count"] == 1
        assert body["data"]["user:1"]["time_remaining"] == HOUR

    def test_debug_disabled(self, app, client: TestClient) -> None:
        app.state.settings = app.state.settings.model_copy(
            update={"app": app.state.settings.app.model_copy(update={"debug_endpoints": False})}
        )

        resp = client.get("/api/debug/rate-limits")

        assert resp.status_code == 404
        assert resp.json()["success"] is False


class TestAuthRoutes:
    def test_login(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "freeuser", "password": DEMO_PASSWORD})

        assert resp.status_code == 200
        body = resp.json()
        assert body["user"] == {"id": 1, "username": "freeuser", "type": "free"}
        assert body["token"]

    def test_login_bad_credentials(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "freeuser", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials"

    def test_login_missing_fields(self, client: TestClient) -> None:
        resp = client.post("/api/login", json={"username": "freeuser"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Username and password are required"

    def test_register_then_chat(self, client: TestClient) -> None:
        resp = client.post(
            "/api/register",
            json={"username": "newbie", "password": "pw", "type": "premium"},
        )
        assert resp.status_code == 201
        token = resp.json()["token"]

        chat = _chat(client, headers={"Authorization": f"Bearer {token}"})
        assert chat.json()["user_type"] == "premium"
        assert chat.json()["remaining_requests"] == 49

    def test_register_duplicate(self, client: TestClient) -> None:
        resp = client.post("/api/register", json={"username": "freeuser", "password": "pw"})
        assert resp.status_code == 409

    def test_demo_users(self, client: TestClient) -> None:
        body = client.get("/api/users").json()
        assert [u["username"] for u in body["users"]] == ["freeuser", "premiumuser"]
        assert body["users"][0]["limit"] == "10 requests/hour"
        assert body["note"] == "Guests (no auth) get 3 requests/hour"


class TestMisc:
    def test_models(self, client: TestClient) -> None:
        body = client.get("/api/chat/models").json()
        assert body["default"] == "llama-3.1-8b-instant"
        assert len(body["models"]) == 3

    def test_health(self, client: TestClient) -> None:
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["environment"] == "testing"
        assert body["version"] == "1.0.0"

    def test_cleanup_scheduler_lifecycle(self, app) -> None:
        with TestClient(app):
            assert app.state.cleanup_scheduler.running is True
        assert app.state.cleanup_scheduler.running is False

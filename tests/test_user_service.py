"""Tests for the in-memory demo user store."""

import pytest

from quota_gate.core.errors import AuthenticationAppError, ConflictAppError, ValidationAppError
from quota_gate.services.user_service import DEMO_PASSWORD


class TestAuthenticate:
    def test_demo_users_log_in(self, user_service) -> None:
        free = user_service.authenticate("freeuser", DEMO_PASSWORD)
        premium = user_service.authenticate("premiumuser", DEMO_PASSWORD)

        assert (free.id, free.type) == (1, "free")
        assert (premium.id, premium.type) == (2, "premium")

    def test_wrong_password(self, user_service) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            user_service.authenticate("freeuser", "wrong")
        assert exc_info.value.code == "invalid_credentials"
        assert exc_info.value.http_status == 401

    def test_unknown_user(self, user_service) -> None:
        with pytest.raises(AuthenticationAppError):
            user_service.authenticate("nobody", DEMO_PASSWORD)

    @pytest.mark.parametrize(("username", "password"), [(None, "x"), ("x", None), ("", "")])
    def test_missing_fields(self, user_service, username, password) -> None:
        with pytest.raises(ValidationAppError):
            user_service.authenticate(username, password)


class TestRegister:
    def test_registers_and_allocates_next_id(self, user_service) -> None:
        user = user_service.register("alice", "s3cret", "premium")

        assert user.id == 3
        assert user.type == "premium"
        assert user_service.authenticate("alice", "s3cret") == user

    def test_unknown_tier_becomes_free(self, user_service) -> None:
        assert user_service.register("bob", "pw", "admin").type == "free"
        assert user_service.register("carol", "pw", None).type == "free"

    def test_duplicate_username(self, user_service) -> None:
        with pytest.raises(ConflictAppError) as exc_info:
            user_service.register("freeuser", "pw")
        assert exc_info.value.http_status == 409

    def test_password_is_not_stored_in_clear(self, user_service) -> None:
        user = user_service.register("dave", "plain-text")
        assert "plain-text" not in user.password_hash
        assert "password_hash" not in user.public()

"""In-memory demo user store.

Seeded with one free and one premium account so the tiers can be exercised
without a database. Registered users live for the process lifetime only.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import bcrypt

from quota_gate.core.errors import AuthenticationAppError, ConflictAppError, ValidationAppError

logger = logging.getLogger(__name__)

REGISTRABLE_TIERS = ("free", "premium")
DEMO_PASSWORD = "password123"


@dataclass(frozen=True)
class User:
    id: int
    username: str
    type: str
    password_hash: str

    def public(self) -> dict[str, int | str]:
        """Fields that are safe to return to clients or put in a token."""
        return {"id": self.id, "username": self.username, "type": self.type}


class UserService:
    """Thread-safe username -> User registry with bcrypt password hashes."""

    def __init__(self, *, bcrypt_rounds: int = 10, seed_demo_users: bool = True) -> None:
        self._rounds = bcrypt_rounds
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._next_id = 1
        if seed_demo_users:
            self._add("freeuser", DEMO_PASSWORD, "free")
            self._add("premiumuser", DEMO_PASSWORD, "premium")

    def _hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def _add(self, username: str, password: str, tier: str) -> User:
        password_hash = self._hash(password)
        with self._lock:
            if username in self._users:
                raise ConflictAppError(code="user_exists", message="User already exists")
            user = User(id=self._next_id, username=username, type=tier, password_hash=password_hash)
            self._users[username] = user
            self._next_id += 1
        return user

    def get(self, username: str) -> User | None:
        with self._lock:
            return self._users.get(username)

    def authenticate(self, username: str | None, password: str | None) -> User:
        """Check credentials.

        Raises:
            ValidationAppError: If username or password is missing.
            AuthenticationAppError: If the credentials do not match.
        """
        if not username or not password:
            raise ValidationAppError(
                code="missing_credentials",
                message="Username and password are required",
            )

        user = self.get(username)
        if user is None or not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            logger.info("auth.login_failed", extra={"reason": "invalid_credentials"})
            raise AuthenticationAppError(code="invalid_credentials", message="Invalid credentials")

        logger.info("auth.login", extra={"user_id": user.id, "tier": user.type})
        return user

    def register(self, username: str | None, password: str | None, tier: str | None = "free") -> User:
        """Create a user. Unknown tiers are coerced to ``free``.

        Raises:
            ValidationAppError: If username or password is missing.
            ConflictAppError: If the username is taken.
        """
        if not username or not password:
            raise ValidationAppError(
                code="missing_credentials",
                message="Username and password are required",
            )

        tier = tier if tier in REGISTRABLE_TIERS else "free"
        user = self._add(username, password, tier)
        logger.info("auth.registered", extra={"user_id": user.id, "tier": user.type})
        return user

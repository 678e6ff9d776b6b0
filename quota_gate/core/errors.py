"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape flexible while encouraging
    consistent keys across the codebase.
    """

    hint: str
    field: str
    max_value: int
    actual_value: int
    provider: str
    model: str
    tier: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
        http_status: Status code the HTTP layer should answer with.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    http_status: int = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input validation fails."""


@dataclass
class AuthenticationAppError(AppError):
    """Raised when credentials or tokens are rejected."""

    http_status: int = 401


@dataclass
class ConflictAppError(AppError):
    """Raised when a resource already exists."""

    http_status: int = 409


@dataclass
class LLMAppError(AppError):
    """Raised when the downstream LLM provider call fails."""

    http_status: int = 502


@dataclass
class ConfigurationError(AppError):
    """Raised at startup when configuration is invalid.

    Never raised while serving a request.
    """

    http_status: int = 500

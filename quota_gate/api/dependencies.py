"""Accessors for the per-app singletons created by the app factory."""

from __future__ import annotations

from fastapi import Request

from quota_gate.core.rate_limit import get_rate_limiter
from quota_gate.services.chat_service import ChatService
from quota_gate.services.user_service import UserService

__all__ = ["get_chat_service", "get_rate_limiter", "get_user_service"]


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service

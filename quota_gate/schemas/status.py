"""Pydantic schemas for quota status and service information endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WindowInfo(BaseModel):
    size: str = Field(..., description="Window size in words, e.g. '1 hour'.")
    reset_in_ms: int = Field(..., description="Milliseconds until the window resets.")


class StatusResponse(BaseModel):
    success: bool = True
    remaining_requests: int
    total_requests: int
    user_type: str
    reset_time: str = Field(..., description="ISO-8601 UTC time the window resets.")
    window_info: WindowInfo


class LimitsResponse(BaseModel):
    success: bool = True
    rate_limits: dict[str, int]
    window_size: str
    algorithm: str = "Fixed Window"
    tracking: dict[str, str]


class Uptime(BaseModel):
    seconds: int
    formatted: str


class HealthResponse(BaseModel):
    success: bool = True
    status: str = "healthy"
    timestamp: str
    uptime: Uptime
    environment: str
    version: str


class DebugRateLimitsResponse(BaseModel):
    success: bool = True
    message: str
    data: dict[str, dict[str, Any]]
    note: str

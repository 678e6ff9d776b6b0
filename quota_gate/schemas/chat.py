"""Pydantic schemas for the rate limited chat endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Chat payload.

    ``message`` is typed loosely on purpose: the chat service validates it
    before any quota is consumed and answers with a uniform error message.
    """

    message: Any = Field(default=None, description="Prompt text (1-1000 characters).")
    model: str | None = Field(default=None, description="Model id; server default when omitted.")


class ChatResponse(BaseModel):
    success: bool = True
    message: str = Field(..., description="The model's reply.")
    remaining_requests: int = Field(..., description="Requests left in the current window.")
    user_type: str
    model_used: str
    is_demo: bool = Field(default=False, description="True when served by the mock provider.")


class ModelInfo(BaseModel):
    id: str
    name: str
    description: str


class ModelsResponse(BaseModel):
    success: bool = True
    models: list[ModelInfo]
    default: str

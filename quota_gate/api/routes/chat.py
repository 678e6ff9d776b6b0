from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter, Identity
from quota_gate.api.dependencies import get_chat_service, get_rate_limiter
from quota_gate.core.auth import resolve_identity
from quota_gate.core.rate_limit import consume_quota
from quota_gate.schemas.chat import ChatRequest, ChatResponse, ModelsResponse
from quota_gate.services.chat_service import AVAILABLE_MODELS, ChatService

router = APIRouter(tags=["Chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    response: Response,
    identity: Annotated[Identity | None, Depends(resolve_identity)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
) -> ChatResponse:
    """Send a message to the AI model (rate limited per tier).

    Order matters: identity is resolved and the message validated before any
    quota is consumed, so rejected requests are free.

    Raises:
        AuthenticationAppError: 403 on an invalid token.
        ValidationAppError: 400 on a malformed message.
        HTTPException: 429 when the quota is exhausted.
        LLMAppError: 401/402/502 when the provider call fails.
    """
    message = chat_service.validate(body.message)
    admission = consume_quota(request, response, identity, limiter)

    reply, model_used = await chat_service.reply(message, model=body.model)
    return ChatResponse(
        message=reply,
        remaining_requests=admission.remaining,
        user_type=admission.tier,
        model_used=model_used,
        is_demo=chat_service.is_demo,
    )


@router.get(
    "/chat/models",
    response_model=ModelsResponse,
    dependencies=[Depends(resolve_identity)],
)
def list_models(
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
) -> ModelsResponse:
    """List models clients may request."""
    return ModelsResponse(models=list(AVAILABLE_MODELS), default=chat_service.default_model)

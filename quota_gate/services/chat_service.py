"""Chat service: message validation and the downstream LLM call.

Validation is a separate step so routes can reject malformed messages
before consuming any rate limit quota.
"""

from __future__ import annotations

import logging
from typing import Any

from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.adapters.llm.mock_client import MOCK_MODEL_NAME
from quota_gate.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

AVAILABLE_MODELS: tuple[dict[str, str], ...] = (
    {
        "id": "llama-3.1-8b-instant",
        "name": "Llama 3.1 8B Instant",
        "description": "Fast, cost-effective",
    },
    {
        "id": "llama-3.1-70b-versatile",
        "name": "Llama 3.1 70B Versatile",
        "description": "Higher quality responses",
    },
    {
        "id": "mixtral-8x7b-32768",
        "name": "Mixtral 8x7B (32k)",
        "description": "Large context, strong reasoning",
    },
)


def validate_message(message: Any, *, max_chars: int) -> str:
    """Check a chat message and return it unchanged.

    Raises:
        ValidationAppError: If the message is missing, not a string, blank,
            or longer than ``max_chars``.
    """
    if not isinstance(message, str) or not message.strip():
        raise ValidationAppError(
            code="invalid_message",
            message="Message is required and must be a non-empty string",
            details={"field": "message"},
        )
    if len(message) > max_chars:
        raise ValidationAppError(
            code="message_too_long",
            message=f"Message must be less than {max_chars} characters",
            details={"field": "message", "max_value": max_chars, "actual_value": len(message)},
        )
    return message


class ChatService:
    """Sends admitted chat messages to the configured LLM client."""

    def __init__(self, *, llm: AbstractLLMClient, default_model: str, max_message_chars: int = 1000) -> None:
        self._llm = llm
        self.default_model = default_model
        self.max_message_chars = max_message_chars

    @property
    def is_demo(self) -> bool:
        return self._llm.is_demo

    def validate(self, message: Any) -> str:
        return validate_message(message, max_chars=self.max_message_chars)

    async def reply(self, message: str, *, model: str | None = None) -> tuple[str, str]:
        """Generate a reply.

        Returns:
            Tuple of (reply_text, model_used).

        Raises:
            LLMAppError: If the provider call fails.
        """
        model_used = MOCK_MODEL_NAME if self.is_demo else (model or self.default_model)
        logger.info(
            "chat.request",
            extra={"model": model_used, "chars": len(message), "demo": self.is_demo},
        )
        text = await self._llm.generate_text(message, model=model_used)
        return text, model_used

"""Canned-reply LLM client for demos and tests."""

from __future__ import annotations

import asyncio
import random

from quota_gate.adapters.llm.base import AbstractLLMClient

MOCK_MODEL_NAME = "mock-llama3"

MOCK_RESPONSES = (
    "Hello! I'm a mock AI assistant. With a provider configured, this reply would come from a real model.",
    "This is a simulated response since no provider is configured. The rate limiting is working though!",
    "I'm here to help! This is a demo response. Set LLM_PROVIDER and LLM_API_KEY for real AI responses.",
    "Mock AI response: your request was admitted by the rate limiter and reached the model layer.",
    "Demo mode activated! Your message was received and the rate limiter is functioning correctly.",
)


class MockLLMClient(AbstractLLMClient):
    """Returns one of a fixed set of replies after an optional delay."""

    is_demo = True

    def __init__(
        self,
        *,
        delay_seconds: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._delay = delay_seconds
        self._rng = rng or random.Random()

    async def generate_text(
        self,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._rng.choice(MOCK_RESPONSES)

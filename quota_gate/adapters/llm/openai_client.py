"""OpenAI-compatible LLM client adapter."""

from typing import Any

from openai import AsyncOpenAI

from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.core.errors import LLMAppError


def classify_provider_error(exc: Exception) -> LLMAppError:
    """Map a provider exception to an LLMAppError with a suitable status.

    Messages mentioning an API key become 401, quota problems 402 and
    everything else 502.
    """
    text = str(exc).lower()
    if "api key" in text or "api_key" in text:
        return LLMAppError(
            code="llm_auth_failed",
            message="Invalid LLM API key configured.",
            http_status=401,
        )
    if "quota" in text:
        return LLMAppError(
            code="llm_quota_exceeded",
            message="LLM provider quota exceeded. Please check your plan.",
            http_status=402,
        )
    return LLMAppError(
        code="llm_request_failed",
        message="Failed to generate AI response",
        details={"context": {"error": str(exc)}},
    )


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions (or any compatible endpoint).

    Uses the official OpenAI Python SDK with async support. Point base_url at
    e.g. https://api.groq.com/openai/v1 to use Groq-hosted models.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        max_tokens: int = 150,
        temperature: float = 0.7,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: Provider API key.
            model: Default model name.
            base_url: Optional custom base URL.
            timeout_seconds: Timeout for requests in seconds.
            max_tokens: Default reply length bound.
            temperature: Default sampling temperature.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate_text(
        self,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Generate a reply using chat completions.

        Raises:
            LLMAppError: If the API call fails.
        """
        request_params: dict[str, Any] = {
            "model": model or self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
        }

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise classify_provider_error(exc) from exc

        content = response.choices[0].message.content
        return content.strip() if content else "No response generated"

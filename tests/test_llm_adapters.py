"""Tests for the LLM client factory and OpenAI adapter error mapping."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from quota_gate.adapters.llm.factory import create_llm_client
from quota_gate.adapters.llm.mock_client import MockLLMClient
from quota_gate.adapters.llm.openai_client import OpenAIClient, classify_provider_error
from quota_gate.core.config import LLMSettings
from quota_gate.core.errors import ConfigurationError, LLMAppError


class TestFactory:
    def test_mock_provider(self) -> None:
        assert isinstance(create_llm_client(LLMSettings(provider="mock")), MockLLMClient)

    def test_openai_provider(self) -> None:
        client = create_llm_client(
            LLMSettings(provider="openai", api_key="sk-test", model="gpt-4o-mini")
        )
        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    def test_openai_requires_api_key(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            create_llm_client(LLMSettings(provider="openai", api_key=None))
        assert exc_info.value.code == "llm_missing_api_key"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            create_llm_client(LLMSettings(provider="carrier-pigeon"))
        assert exc_info.value.code == "llm_unknown_provider"


class TestClassifyProviderError:
    @pytest.mark.parametrize(
        ("text", "code", "status"),
        [
            ("Incorrect API key provided", "llm_auth_failed", 401),
            ("You exceeded your current quota", "llm_quota_exceeded", 402),
            ("Connection reset by peer", "llm_request_failed", 502),
        ],
    )
    def test_mapping(self, text, code, status) -> None:
        error = classify_provider_error(RuntimeError(text))
        assert isinstance(error, LLMAppError)
        assert error.code == code
        assert error.http_status == status


class TestOpenAIClient:
    def _client(self) -> OpenAIClient:
        return OpenAIClient(api_key="sk-test", model="default-model", max_tokens=99, temperature=0.3)

    @pytest.mark.asyncio
    async def test_generate_text(self) -> None:
        client = self._client()
        completion = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="  hi!  "))]
        )
        create = AsyncMock(return_value=completion)

        with patch.object(client.client.chat.completions, "create", create):
            text = await client.generate_text("hello", model="other-model")

        assert text == "hi!"
        create.assert_awaited_once_with(
            model="other-model",
            messages=[{"role": "user", "content": "hello"}],
            max_tokens=99,
            temperature=0.3,
        )

    @pytest.mark.asyncio
    async def test_empty_reply(self) -> None:
        client = self._client()
        completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))])

        with patch.object(client.client.chat.completions, "create", AsyncMock(return_value=completion)):
            assert await client.generate_text("hello") == "No response generated"

    @pytest.mark.asyncio
    async def test_provider_failure_raises_llm_error(self) -> None:
        client = self._client()
        create = AsyncMock(side_effect=RuntimeError("quota exceeded"))

        with patch.object(client.client.chat.completions, "create", create):
            with pytest.raises(LLMAppError) as exc_info:
                await client.generate_text("hello")

        assert exc_info.value.http_status == 402

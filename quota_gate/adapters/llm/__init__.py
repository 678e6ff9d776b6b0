"""LLM adapter layer - abstracts over the downstream text generation provider."""

from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.adapters.llm.factory import create_llm_client
from quota_gate.adapters.llm.mock_client import MockLLMClient
from quota_gate.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "MockLLMClient",
    "OpenAIClient",
    "create_llm_client",
]

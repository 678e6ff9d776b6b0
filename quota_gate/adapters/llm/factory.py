"""Factory pattern for creating LLM client instances."""

from quota_gate.adapters.llm.base import AbstractLLMClient
from quota_gate.adapters.llm.mock_client import MockLLMClient
from quota_gate.adapters.llm.openai_client import OpenAIClient
from quota_gate.core.config import LLMSettings, settings
from quota_gate.core.errors import ConfigurationError


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the LLM client for the configured provider.

    Args:
        llm_settings: Provider settings; defaults to the global settings.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ConfigurationError: If provider-specific requirements are not met.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider == "mock":
        return MockLLMClient()

    if provider == "openai":
        if not cfg.api_key:
            raise ConfigurationError(
                code="llm_missing_api_key",
                message="OpenAI provider requires LLM_API_KEY environment variable",
                details={"provider": provider},
            )
        return OpenAIClient(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
            max_tokens=cfg.max_tokens,
            temperature=cfg.temperature,
        )

    raise ConfigurationError(
        code="llm_unknown_provider",
        message=f"Unknown LLM provider: '{provider}'. Supported providers: mock, openai",
        details={"provider": provider},
    )

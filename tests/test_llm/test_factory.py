"""Tests for LLM provider factory."""

import pytest

from spatialdm.config import ProviderConfig, Settings
from spatialdm.llm.factory import (
    create_provider,
    get_cheap_provider,
    get_narrator_provider,
    get_provider,
)
from spatialdm.llm.anthropic_provider import AnthropicProvider
from spatialdm.llm.openai_provider import OpenAIProvider
from spatialdm.llm.logging_provider import LoggingProvider
from spatialdm.llm.exceptions import UnsupportedProviderError


def _settings(**overrides) -> Settings:
    defaults = dict(_env_file=None, openai_api_key="test-key", anthropic_api_key="test-key")
    defaults.update(overrides)
    return Settings(**defaults)


class TestCreateProvider:
    """Tests for create_provider."""

    def test_openai(self):
        """Test creating an OpenAI provider."""
        provider = create_provider(ProviderConfig("openai", "gpt-4o"), _settings())

        assert isinstance(provider, OpenAIProvider)
        assert provider.default_model == "gpt-4o"

    def test_openai_compatible_base_url(self):
        """Test the custom base URL is passed through."""
        provider = create_provider(
            ProviderConfig("openai", "llama3"),
            _settings(openai_base_url="http://localhost:8000/v1"),
        )

        assert provider._base_url == "http://localhost:8000/v1"

    def test_anthropic(self):
        """Test creating an Anthropic provider."""
        provider = create_provider(
            ProviderConfig("anthropic", "claude-3-5-haiku-20241022"), _settings()
        )

        assert isinstance(provider, AnthropicProvider)
        assert provider.default_model == "claude-3-5-haiku-20241022"

    def test_unsupported(self):
        """Test unknown providers are rejected."""
        with pytest.raises(UnsupportedProviderError):
            create_provider(ProviderConfig("ollama", "llama3"), _settings())  # type: ignore

    def test_logging_wrapper(self):
        """Test log_llm_calls wraps the provider."""
        provider = create_provider(ProviderConfig("openai", "gpt-4o"), _settings(log_llm_calls=True))

        assert isinstance(provider, LoggingProvider)
        assert isinstance(provider.wrapped, OpenAIProvider)
        assert provider.provider_name == "openai"


class TestNamedProviders:
    """Tests for the settings-driven helpers."""

    def test_get_provider_from_string(self):
        provider = get_provider("anthropic:claude-3-5-haiku-20241022", _settings())

        assert isinstance(provider, AnthropicProvider)

    def test_narrator_provider(self):
        provider = get_narrator_provider(_settings(narrator="openai:gpt-4o"))

        assert provider.default_model == "gpt-4o"

    def test_cheap_provider(self):
        provider = get_cheap_provider(_settings(cheap="anthropic:claude-3-5-haiku-20241022"))

        assert isinstance(provider, AnthropicProvider)

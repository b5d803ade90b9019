"""Tests for LoggingProvider wrapper."""

import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from spatialdm.llm.logging_provider import LoggingProvider
from spatialdm.llm.message_types import Message
from spatialdm.llm.response_types import LLMResponse, UsageStats
from spatialdm.llm.exceptions import ProviderError


@pytest.fixture
def inner():
    """Create a mock provider to wrap."""
    provider = MagicMock()
    provider.provider_name = "openai"
    provider.default_model = "gpt-4o-mini"
    provider.complete = AsyncMock(
        return_value=LLMResponse(
            content='{"narrative": "ok"}',
            model="gpt-4o-mini",
            usage=UsageStats(prompt_tokens=12, completion_tokens=3, total_tokens=15),
        )
    )
    provider.count_tokens = MagicMock(return_value=7)
    return provider


class TestLoggingProvider:
    """Tests for LoggingProvider."""

    def test_delegates_properties(self, inner):
        provider = LoggingProvider(inner)

        assert provider.provider_name == "openai"
        assert provider.default_model == "gpt-4o-mini"
        assert provider.count_tokens("hello") == 7

    @pytest.mark.asyncio
    async def test_forwards_call(self, inner):
        """Test every argument reaches the wrapped provider."""
        provider = LoggingProvider(inner)
        messages = [Message.user("Hi")]

        response = await provider.complete(
            messages, max_tokens=100, temperature=0.2, system_prompt="DM", json_mode=True
        )

        assert response.content == '{"narrative": "ok"}'
        inner.complete.assert_awaited_once_with(
            messages=messages,
            model=None,
            max_tokens=100,
            temperature=0.2,
            system_prompt="DM",
            json_mode=True,
        )

    @pytest.mark.asyncio
    async def test_logs_request_and_reply(self, inner, caplog):
        """Test request and usage are logged at INFO."""
        provider = LoggingProvider(inner)

        with caplog.at_level(logging.INFO, logger="spatialdm.llm.logging_provider"):
            await provider.complete([Message.user("Hi")], json_mode=True)

        assert "LLM call openai:gpt-4o-mini (1 messages, 2 chars, json_mode=True)" in caplog.text
        assert "12+3 tokens" in caplog.text

    @pytest.mark.asyncio
    async def test_logs_and_reraises_errors(self, inner, caplog):
        """Test failures are logged and propagated."""
        inner.complete.side_effect = ProviderError("upstream down", is_retryable=True)
        provider = LoggingProvider(inner)

        with caplog.at_level(logging.ERROR, logger="spatialdm.llm.logging_provider"):
            with pytest.raises(ProviderError):
                await provider.complete([Message.user("Hi")])

        assert "LLM call failed" in caplog.text
        assert "upstream down" in caplog.text

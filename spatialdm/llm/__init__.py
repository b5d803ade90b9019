"""LLM provider abstraction layer.

Quick Start:
    from spatialdm.llm import get_narrator_provider, Message

    provider = get_narrator_provider()
    response = await provider.complete(
        messages=[Message.user("I charge at the orc!")],
        system_prompt=system_prompt,
        json_mode=True,
    )
    print(response.content)
"""

# Message types
from spatialdm.llm.message_types import Message, MessageRole

# Response types
from spatialdm.llm.response_types import LLMResponse, UsageStats

# Protocol
from spatialdm.llm.base import LLMProvider

# Providers
from spatialdm.llm.anthropic_provider import AnthropicProvider
from spatialdm.llm.openai_provider import OpenAIProvider
from spatialdm.llm.logging_provider import LoggingProvider

# Factory
from spatialdm.llm.factory import (
    create_provider,
    get_provider,
    get_narrator_provider,
    get_cheap_provider,
)

# Exceptions
from spatialdm.llm.exceptions import (
    LLMError,
    ProviderError,
    RateLimitError,
    AuthenticationError,
    ContentPolicyError,
    ContextLengthError,
    UnsupportedProviderError,
)

__all__ = [
    # Message types
    "Message",
    "MessageRole",
    # Response types
    "LLMResponse",
    "UsageStats",
    # Protocol
    "LLMProvider",
    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
    "LoggingProvider",
    # Factory
    "create_provider",
    "get_provider",
    "get_narrator_provider",
    "get_cheap_provider",
    # Exceptions
    "LLMError",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ContentPolicyError",
    "ContextLengthError",
    "UnsupportedProviderError",
]

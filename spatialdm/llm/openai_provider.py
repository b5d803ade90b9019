"""OpenAI provider implementation.

Supports the OpenAI API and OpenAI-compatible endpoints via base_url.
"""

import logging
from typing import Any, Sequence

import tiktoken
from openai import AsyncOpenAI
from openai import (
    AuthenticationError as OpenAIAuthError,
    RateLimitError as OpenAIRateLimitError,
    BadRequestError as OpenAIBadRequestError,
    APIError as OpenAIAPIError,
)

from spatialdm.llm.message_types import Message
from spatialdm.llm.response_types import LLMResponse, UsageStats
from spatialdm.llm.exceptions import (
    AuthenticationError,
    RateLimitError,
    ContentPolicyError,
    ContextLengthError,
    ProviderError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """OpenAI chat completions implementation.

    Supports:
    - GPT-4o family models
    - JSON mode (response_format=json_object)
    - OpenAI-compatible APIs via custom base_url
    """

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "gpt-4o-mini",
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
        presence_penalty: float = 0.6,
        frequency_penalty: float = 0.3,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key. If not provided, will use
                     OPENAI_API_KEY environment variable.
            default_model: Default model to use for completions.
            base_url: Custom base URL for OpenAI-compatible APIs.
            client: Optional pre-configured client (for testing).
            presence_penalty: Penalty discouraging repeated topics.
            frequency_penalty: Penalty discouraging repeated phrasing.
        """
        self._api_key = api_key
        self._default_model = default_model
        self._base_url = base_url
        self._client_instance: AsyncOpenAI | None = client
        self.presence_penalty = presence_penalty
        self.frequency_penalty = frequency_penalty

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self._default_model

    def _get_client(self) -> AsyncOpenAI:
        """Get or create the async client."""
        if self._client_instance is None:
            kwargs: dict[str, Any] = {}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client_instance = AsyncOpenAI(**kwargs)
        return self._client_instance

    def _convert_messages(
        self, messages: Sequence[Message], system_prompt: str | None = None
    ) -> list[dict[str, Any]]:
        """Convert our Message types to OpenAI format."""
        api_messages: list[dict[str, Any]] = []

        if system_prompt:
            api_messages.append({"role": "system", "content": system_prompt})

        for msg in messages:
            entry: dict[str, Any] = {"role": msg.role.value, "content": msg.content}
            if msg.name:
                entry["name"] = msg.name
            api_messages.append(entry)

        return api_messages

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse OpenAI API response into LLMResponse."""
        choice = response.choices[0]

        usage = None
        if response.usage:
            usage = UsageStats(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            model=response.model,
            usage=usage,
        )

    def _handle_api_error(self, error: Exception) -> None:
        """Convert OpenAI exceptions to our exception types."""
        if isinstance(error, OpenAIAuthError):
            raise AuthenticationError(str(error)) from error
        elif isinstance(error, OpenAIRateLimitError):
            raise RateLimitError(str(error)) from error
        elif isinstance(error, OpenAIBadRequestError):
            error_str = str(error).lower()
            if "context" in error_str or "token" in error_str or "length" in error_str:
                raise ContextLengthError(str(error)) from error
            elif "content" in error_str or "policy" in error_str:
                raise ContentPolicyError(str(error)) from error
            raise ProviderError(str(error), is_retryable=False) from error
        elif isinstance(error, OpenAIAPIError):
            # 5xx errors are retryable
            status_code = getattr(error, "status_code", None)
            is_retryable = status_code is not None and status_code >= 500
            raise ProviderError(
                str(error), is_retryable=is_retryable, status_code=status_code
            ) from error
        raise error

    async def complete(
        self,
        messages: Sequence[Message],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.8,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion from messages."""
        kwargs: dict[str, Any] = {
            "model": model or self._default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "presence_penalty": self.presence_penalty,
            "frequency_penalty": self.frequency_penalty,
            "messages": self._convert_messages(messages, system_prompt),
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._get_client().chat.completions.create(**kwargs)
        except Exception as e:
            self._handle_api_error(e)
            raise
        return self._parse_response(response)

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count tokens in text using tiktoken."""
        if not text:
            return 0

        model_name = model or self._default_model
        try:
            encoding = tiktoken.encoding_for_model(model_name)
        except KeyError:
            # Unknown or OpenAI-compatible model names
            encoding = tiktoken.get_encoding("cl100k_base")
        return len(encoding.encode(text))

"""Anthropic Claude provider implementation."""

from typing import Any, Sequence

from anthropic import AsyncAnthropic
from anthropic import (
    AuthenticationError as AnthropicAuthError,
    RateLimitError as AnthropicRateLimitError,
    BadRequestError as AnthropicBadRequestError,
    APIError as AnthropicAPIError,
)

from spatialdm.llm.message_types import Message, MessageRole
from spatialdm.llm.response_types import LLMResponse, UsageStats
from spatialdm.llm.exceptions import (
    AuthenticationError,
    RateLimitError,
    ContentPolicyError,
    ContextLengthError,
    ProviderError,
)

# Appended to the system prompt in JSON mode; the Messages API has no
# response_format switch.
JSON_MODE_INSTRUCTION = (
    "Respond with a single valid JSON object and nothing else. "
    "Do not wrap it in markdown code fences."
)


class AnthropicProvider:
    """Anthropic Claude implementation.

    JSON mode is emulated with a system instruction; the interpreter
    tolerates code fences if the model adds them anyway.
    """

    CHARS_PER_TOKEN = 4  # Rough estimate for token counting

    def __init__(
        self,
        api_key: str | None = None,
        default_model: str = "claude-3-5-haiku-20241022",
        client: AsyncAnthropic | None = None,
    ) -> None:
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, will use
                     ANTHROPIC_API_KEY environment variable.
            default_model: Default model to use for completions.
            client: Optional pre-configured client (for testing).
        """
        self._api_key = api_key
        self._default_model = default_model
        self._client_instance: AsyncAnthropic | None = client

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self._default_model

    def _get_client(self) -> AsyncAnthropic:
        """Get or create the async client."""
        if self._client_instance is None:
            kwargs: dict[str, Any] = {}
            if self._api_key:
                kwargs["api_key"] = self._api_key
            self._client_instance = AsyncAnthropic(**kwargs)
        return self._client_instance

    def _convert_messages(
        self, messages: Sequence[Message]
    ) -> tuple[str | None, list[dict[str, Any]]]:
        """Convert our Message types to Anthropic format.

        System messages are lifted out into the system parameter.
        Consecutive messages with the same role are merged because the
        API requires user/assistant alternation.

        Returns:
            Tuple of (system_prompt, messages_list)
        """
        system_prompt: str | None = None
        api_messages: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_prompt = msg.content
                continue

            role = "user" if msg.role == MessageRole.USER else "assistant"
            if api_messages and api_messages[-1]["role"] == role:
                api_messages[-1]["content"] += "\n\n" + msg.content
            else:
                api_messages.append({"role": role, "content": msg.content})

        return system_prompt, api_messages

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse Anthropic API response into LLMResponse."""
        content = "".join(block.text for block in response.content if block.type == "text")

        usage = None
        if response.usage:
            usage = UsageStats(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        return LLMResponse(
            content=content,
            finish_reason=response.stop_reason or "stop",
            model=response.model,
            usage=usage,
        )

    def _handle_api_error(self, error: Exception) -> None:
        """Convert Anthropic exceptions to our exception types."""
        if isinstance(error, AnthropicAuthError):
            raise AuthenticationError(str(error)) from error
        elif isinstance(error, AnthropicRateLimitError):
            raise RateLimitError(str(error)) from error
        elif isinstance(error, AnthropicBadRequestError):
            error_str = str(error).lower()
            if "context" in error_str or "token" in error_str:
                raise ContextLengthError(str(error)) from error
            elif "content" in error_str or "policy" in error_str:
                raise ContentPolicyError(str(error)) from error
            raise ProviderError(str(error), is_retryable=False) from error
        elif isinstance(error, AnthropicAPIError):
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
        extracted_system, api_messages = self._convert_messages(messages)
        final_system = system_prompt or extracted_system
        if json_mode:
            final_system = (
                f"{final_system}\n\n{JSON_MODE_INSTRUCTION}" if final_system else JSON_MODE_INSTRUCTION
            )

        kwargs: dict[str, Any] = {
            "model": model or self._default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": api_messages,
        }
        if final_system:
            kwargs["system"] = final_system

        try:
            response = await self._get_client().messages.create(**kwargs)
        except Exception as e:
            self._handle_api_error(e)
            raise
        return self._parse_response(response)

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count tokens in text (rough estimate).

        Anthropic doesn't provide a public tokenizer, so we use a heuristic.
        """
        if not text:
            return 0
        return len(text) // self.CHARS_PER_TOKEN

"""LLM provider protocol definition."""

from typing import Protocol, Sequence, runtime_checkable

from spatialdm.llm.message_types import Message
from spatialdm.llm.response_types import LLMResponse


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers.

    The narration core treats the provider as a black box: it sends a
    system prompt plus message history and gets raw text back. Failures
    surface as spatialdm.llm.exceptions errors and are not retried here.
    """

    @property
    def provider_name(self) -> str:
        """Return provider identifier (e.g., 'anthropic', 'openai')."""
        ...

    @property
    def default_model(self) -> str:
        """Return default model for this provider."""
        ...

    async def complete(
        self,
        messages: Sequence[Message],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.8,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion from messages.

        Args:
            messages: Conversation history.
            model: Model to use (defaults to provider's default).
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            system_prompt: System-level instructions.
            json_mode: Ask the provider for a single JSON object reply.

        Returns:
            LLMResponse with text and metadata.
        """
        ...

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count tokens in text for context window management."""
        ...

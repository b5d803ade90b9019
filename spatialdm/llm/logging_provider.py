"""Logging wrapper for LLM providers.

Wraps any provider and records request size, latency and usage of each
call through the standard logging module.
"""

import logging
import time
from typing import Sequence

from spatialdm.llm.base import LLMProvider
from spatialdm.llm.message_types import Message
from spatialdm.llm.response_types import LLMResponse

logger = logging.getLogger(__name__)


class LoggingProvider:
    """Wrapper that logs every completion of the wrapped provider.

    Prompt and reply text are only logged at DEBUG level.

    Args:
        provider: The LLM provider to wrap.
        log: Logger to write to (defaults to this module's logger).
    """

    def __init__(self, provider: LLMProvider, log: logging.Logger | None = None) -> None:
        self._provider = provider
        self._log = log or logger

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    @property
    def default_model(self) -> str:
        return self._provider.default_model

    @property
    def wrapped(self) -> LLMProvider:
        return self._provider

    async def complete(
        self,
        messages: Sequence[Message],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.8,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion and log the call."""
        model_name = model or self.default_model
        prompt_chars = len(system_prompt or "") + sum(len(m.content) for m in messages)
        self._log.info(
            f"LLM call {self.provider_name}:{model_name} "
            f"({len(messages)} messages, {prompt_chars} chars, json_mode={json_mode})"
        )
        if system_prompt:
            self._log.debug(f"System prompt:\n{system_prompt}")

        start_time = time.perf_counter()
        try:
            response = await self._provider.complete(
                messages=messages,
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system_prompt=system_prompt,
                json_mode=json_mode,
            )
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self._log.error(f"LLM call failed after {elapsed_ms:.0f}ms: {e}")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        usage = response.usage
        tokens = f"{usage.prompt_tokens}+{usage.completion_tokens} tokens" if usage else "no usage"
        self._log.info(
            f"LLM reply from {response.model or model_name} in {elapsed_ms:.0f}ms "
            f"({tokens}, finish={response.finish_reason})"
        )
        self._log.debug(f"Reply:\n{response.content}")
        return response

    def count_tokens(self, text: str, model: str | None = None) -> int:
        return self._provider.count_tokens(text, model)

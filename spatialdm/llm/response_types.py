"""What a provider hands back to the narration loop."""

from dataclasses import dataclass

# Provider-specific stop reasons meaning the reply hit max_tokens
TRUNCATED_FINISH_REASONS = frozenset({"length", "max_tokens"})


@dataclass(frozen=True)
class UsageStats:
    """Token counts for one completion; total_tokens is stored on the
    assistant Message row."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class LLMResponse:
    """One narrator completion.

    In JSON mode content is the raw JSON text; NarrationInterpreter
    parses it.
    """

    content: str
    finish_reason: str = "stop"
    model: str = ""
    usage: UsageStats | None = None

    @property
    def was_truncated(self) -> bool:
        """A cut-off JSON reply usually fails to parse and falls back to raw text."""
        return self.finish_reason in TRUNCATED_FINISH_REASONS

"""Token budget for the narrator system prompt.

Item counts are capped upstream by the context builder; this budget is the
final guard that keeps the rendered prompt under the configured size.
"""

from dataclasses import dataclass
from enum import IntEnum


class ContextPriority(IntEnum):
    """Priority levels for prompt sections.

    Higher numbers = higher priority (included first).
    """

    CRITICAL = 100  # Reply contract and movement guide
    HIGH = 80  # Situation and spatial context
    MEDIUM = 60  # Knowledge and mechanics
    LOW = 40  # Tone and DM guidelines


@dataclass
class ContextSection:
    """A section of the system prompt."""

    name: str
    content: str
    priority: ContextPriority
    token_count: int = 0

    def __post_init__(self) -> None:
        if self.token_count == 0 and self.content:
            self.token_count = estimate_tokens(self.content)


@dataclass
class BudgetResult:
    """Compiled prompt plus a record of what made it in."""

    content: str
    total_tokens: int
    sections_included: list[str]
    sections_excluded: list[str]

    @property
    def was_trimmed(self) -> bool:
        return bool(self.sections_excluded)


DEFAULT_PRIORITIES: dict[str, ContextPriority] = {
    "preamble": ContextPriority.CRITICAL,
    "reply_format": ContextPriority.CRITICAL,
    "movement_guide": ContextPriority.CRITICAL,
    "situation": ContextPriority.HIGH,
    "spatial": ContextPriority.HIGH,
    "dm_instructions": ContextPriority.HIGH,
    "knowledge": ContextPriority.MEDIUM,
    "mechanics": ContextPriority.MEDIUM,
    "tone": ContextPriority.LOW,
    "guidelines": ContextPriority.LOW,
}

# Below this many free tokens a section is dropped rather than truncated
_MIN_TRUNCATION_TOKENS = 40


def estimate_tokens(text: str) -> int:
    """Estimate token count at ~4 characters per token.

    Args:
        text: Text to estimate tokens for.

    Returns:
        Estimated token count (0 for empty text).
    """
    if not text:
        return 0
    return len(text) // 4 + 1


class ContextBudget:
    """Assemble prompt sections within a token limit.

    Sections are admitted highest priority first; HIGH and CRITICAL
    sections that do not fit whole are truncated into the remaining space.
    The output keeps the order in which sections were added.
    """

    def __init__(
        self,
        max_tokens: int = 1600,
        priorities: dict[str, ContextPriority] | None = None,
    ) -> None:
        self.max_tokens = max_tokens
        self.priorities = priorities or DEFAULT_PRIORITIES
        self._sections: list[ContextSection] = []

    def add_section(
        self,
        name: str,
        content: str,
        priority: ContextPriority | None = None,
    ) -> None:
        """Add a section; empty content is ignored."""
        if not content:
            return

        section_priority = priority or self.priorities.get(name, ContextPriority.MEDIUM)
        self._sections.append(ContextSection(name=name, content=content, priority=section_priority))

    def compile(self, separator: str = "\n\n") -> BudgetResult:
        """Join the sections that fit.

        Args:
            separator: String placed between sections.

        Returns:
            BudgetResult with the compiled text.
        """
        if not self._sections:
            return BudgetResult(content="", total_tokens=0, sections_included=[], sections_excluded=[])

        # sorted() is stable, so equal priorities keep insertion order
        by_priority = sorted(self._sections, key=lambda s: s.priority, reverse=True)
        separator_tokens = estimate_tokens(separator)

        admitted: dict[str, ContextSection] = {}
        excluded: list[str] = []
        total_tokens = 0

        for section in by_priority:
            cost = section.token_count + (separator_tokens if admitted else 0)
            if total_tokens + cost <= self.max_tokens:
                admitted[section.name] = section
                total_tokens += cost
                continue

            available = self.max_tokens - total_tokens - (separator_tokens if admitted else 0)
            if section.priority >= ContextPriority.HIGH and available >= _MIN_TRUNCATION_TOKENS:
                truncated = ContextSection(
                    name=section.name,
                    content=truncate_to_tokens(section.content, available),
                    priority=section.priority,
                )
                admitted[section.name] = truncated
                total_tokens += truncated.token_count + (separator_tokens if len(admitted) > 1 else 0)
            else:
                excluded.append(section.name)

        content = separator.join(
            admitted[s.name].content for s in self._sections if s.name in admitted
        )
        return BudgetResult(
            content=content,
            total_tokens=total_tokens,
            sections_included=[s.name for s in self._sections if s.name in admitted],
            sections_excluded=excluded,
        )

    def get_section_breakdown(self) -> dict[str, int]:
        """Token count per added section."""
        return {s.name: s.token_count for s in self._sections}


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut text to roughly max_tokens, preferring a line or sentence break."""
    if estimate_tokens(text) <= max_tokens:
        return text

    char_limit = max_tokens * 4 - 8
    if char_limit <= 0:
        return ""

    truncated = text[:char_limit]
    for break_char in ("\n", ". ", "! ", "? "):
        last_break = truncated.rfind(break_char)
        if last_break > char_limit // 2:
            return truncated[: last_break + len(break_char)].rstrip() + "..."

    return truncated.rstrip() + "..."

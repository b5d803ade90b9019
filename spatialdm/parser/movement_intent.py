"""Keyword-based movement intent detection for player input.

The detector is advisory. The narrator model's structured reply decides
whether anything actually moves; this classification is only used for
pre-filtering, target resolution and CLI diagnostics.
"""

from dataclasses import dataclass, field
from enum import Enum

from spatialdm.database.models.enums import InteractionType


class MovementActionType(str, Enum):
    """Action type a detected intent maps to."""

    MELEE = "MELEE"
    CONVERSATION = "CONVERSATION"
    PERCEPTION = "PERCEPTION"
    MOVEMENT = "MOVEMENT"

    @property
    def interaction_type(self) -> InteractionType | None:
        """Movement rule interaction type, None for plain movement."""
        return _INTERACTION_TYPES.get(self)


_INTERACTION_TYPES = {
    MovementActionType.MELEE: InteractionType.MELEE,
    MovementActionType.CONVERSATION: InteractionType.CONVERSATION,
    MovementActionType.PERCEPTION: InteractionType.PERCEPTION,
}


@dataclass(frozen=True)
class KeywordGroup:
    """One ordered classification group."""

    name: str
    action_type: MovementActionType
    keywords: tuple[str, ...]
    direction: str | None = None


# Evaluated top to bottom; the first group with any hit wins.
# "rush in to talk" therefore classifies as MELEE.
KEYWORD_GROUPS: tuple[KeywordGroup, ...] = (
    KeywordGroup(
        "attack",
        MovementActionType.MELEE,
        ("charge", "rush", "attack", "strike", "engage", "fight"),
        direction="toward",
    ),
    KeywordGroup(
        "talk",
        MovementActionType.CONVERSATION,
        ("talk to", "speak to", "approach to talk", "go talk", "converse with"),
        direction="toward",
    ),
    KeywordGroup(
        "investigate",
        MovementActionType.PERCEPTION,
        ("investigate", "examine", "inspect", "look at", "check out", "search"),
        direction="toward",
    ),
    KeywordGroup(
        "flee",
        MovementActionType.MOVEMENT,
        ("flee", "run away", "retreat", "back away", "step back", "move back"),
        direction="away",
    ),
    KeywordGroup(
        "approach",
        MovementActionType.MOVEMENT,
        ("approach", "move to", "walk to", "go to", "head to", "move toward", "walk toward"),
        direction="toward",
    ),
    KeywordGroup(
        "general",
        MovementActionType.MOVEMENT,
        ("move", "walk", "run", "step", "go", "head"),
    ),
)


@dataclass
class MovementIntent:
    """Result of movement intent detection."""

    detected: bool
    action_type: MovementActionType | None = None
    matched_keywords: list[str] = field(default_factory=list)
    direction: str | None = None
    group: str | None = None


def detect(text: str, groups: tuple[KeywordGroup, ...] = KEYWORD_GROUPS) -> MovementIntent:
    """Classify free text into a movement intent.

    Matching is case-insensitive substring matching, so "go" also hits
    inside longer words. Groups are checked in order and the first group
    with a hit is returned along with every keyword of that group found.

    Args:
        text: Raw player input.
        groups: Ordered keyword groups (defaults to KEYWORD_GROUPS).

    Returns:
        MovementIntent with detected=False when nothing matches.
    """
    lowered = text.lower()
    for group in groups:
        matched = [keyword for keyword in group.keywords if keyword in lowered]
        if matched:
            return MovementIntent(
                detected=True,
                action_type=group.action_type,
                matched_keywords=matched,
                direction=group.direction,
                group=group.name,
            )
    return MovementIntent(detected=False)


class MovementIntentDetector:
    """Injectable wrapper around detect() with a configurable group table."""

    def __init__(self, groups: tuple[KeywordGroup, ...] = KEYWORD_GROUPS) -> None:
        self.groups = groups

    def detect(self, text: str) -> MovementIntent:
        return detect(text, self.groups)

"""Database enumerations."""

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle status of a game session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class ChatRole(str, Enum):
    """Author of a stored session message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FeatureType(str, Enum):
    """Kind of scenery object inside a location."""

    OBSTACLE = "obstacle"
    POI = "poi"  # Point of interest
    DOOR = "door"
    FURNITURE = "furniture"
    TERRAIN = "terrain"
    HAZARD = "hazard"


class CoverLevel(str, Enum):
    """Protection conferred by a feature between two combatants.

    Ordered NONE < HALF < THREE_QUARTERS < FULL; compare with `rank`.
    """

    NONE = "none"
    HALF = "half"
    THREE_QUARTERS = "three_quarters"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _COVER_RANKS[self]


_COVER_RANKS = {
    CoverLevel.NONE: 0,
    CoverLevel.HALF: 1,
    CoverLevel.THREE_QUARTERS: 2,
    CoverLevel.FULL: 3,
}


class InteractionType(str, Enum):
    """Interaction kind governed by a movement rule."""

    MELEE = "melee"
    RANGED = "ranged"
    SPELL = "spell"
    CONVERSATION = "conversation"
    PERCEPTION = "perception"
    CUSTOM = "custom"


class KnowledgeCategory(str, Enum):
    """Category of a campaign knowledge entry."""

    LOCATION = "location"
    NPC = "npc"
    ITEM = "item"
    LORE = "lore"
    FACTION = "faction"
    QUEST = "quest"
    OTHER = "other"


class MechanicsCategory(str, Enum):
    """Category of a campaign mechanics rule."""

    COMBAT = "combat"
    SKILL_CHECK = "skill_check"
    MAGIC = "magic"
    SOCIAL = "social"
    EXPLORATION = "exploration"
    REST = "rest"
    OTHER = "other"

"""Database models."""

from spatialdm.database.models.base import Base, IdMixin, TimestampMixin, new_id
from spatialdm.database.models.enums import (
    ChatRole,
    CoverLevel,
    FeatureType,
    InteractionType,
    KnowledgeCategory,
    MechanicsCategory,
    SessionStatus,
)
from spatialdm.database.models.campaign import Campaign, Character
from spatialdm.database.models.session import (
    GameSession,
    Message,
    SessionState,
    SessionSummary,
)
from spatialdm.database.models.knowledge import (
    KnowledgeEntry,
    MechanicsRule,
    ToneProfile,
)
from spatialdm.database.models.spatial import (
    CharacterPosition,
    Location,
    LocationFeature,
    MovementEvent,
    MovementRule,
)

__all__ = [
    # Base
    "Base",
    "IdMixin",
    "TimestampMixin",
    "new_id",
    # Enums
    "ChatRole",
    "CoverLevel",
    "FeatureType",
    "InteractionType",
    "KnowledgeCategory",
    "MechanicsCategory",
    "SessionStatus",
    # Campaign
    "Campaign",
    "Character",
    # Session
    "GameSession",
    "Message",
    "SessionState",
    "SessionSummary",
    # Knowledge
    "KnowledgeEntry",
    "MechanicsRule",
    "ToneProfile",
    # Spatial
    "CharacterPosition",
    "Location",
    "LocationFeature",
    "MovementEvent",
    "MovementRule",
]

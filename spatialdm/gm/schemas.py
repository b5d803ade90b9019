"""Schemas for narration context and the narrator's structured reply.

The reply schema (NarrationReply / MovementClaim) is the JSON contract the
narrator model is asked to follow. The context types are plain dataclasses
built fresh for every request.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from spatialdm.database.models.enums import ChatRole, KnowledgeCategory, MechanicsCategory
from spatialdm.llm.response_types import UsageStats
from spatialdm.parser.movement_intent import MovementIntent
from spatialdm.spatial.geometry import Position
from spatialdm.spatial.schemas import (
    FlatAction,
    MovementSuggestion,
    NearbyCharacter,
    NearbyFeature,
)


# =============================================================================
# Model reply contract
# =============================================================================


class TargetPosition(BaseModel):
    """Coordinates proposed by the model."""

    x: float
    y: float
    z: float = 0.0


class MovementClaim(BaseModel):
    """Movement the model believes the player intends."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    detected: bool = False
    character_name: str | None = Field(default=None, alias="characterName")
    target_name: str | None = Field(default=None, alias="targetName")
    target_position: TargetPosition | None = Field(default=None, alias="targetPosition")
    action_type: str | None = Field(default=None, alias="actionType")
    reason: str | None = None


class NarrationReply(BaseModel):
    """Top-level JSON object the narrator must return."""

    model_config = ConfigDict(extra="ignore")

    narrative: str
    movement: MovementClaim | None = None


# =============================================================================
# Context
# =============================================================================


@dataclass
class StateSnapshot:
    """Copy of the session's structured state at request time."""

    current_location: str | None = None
    location_id: str | None = None
    active_npcs: list[str] = field(default_factory=list)
    ongoing_quests: list[str] = field(default_factory=list)
    party_conditions: dict[str, Any] = field(default_factory=dict)
    recent_events: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.current_location
            or self.active_npcs
            or self.ongoing_quests
            or self.party_conditions
            or self.recent_events
        )


@dataclass
class ChatTurn:
    """One prior message in the conversation."""

    role: ChatRole
    content: str


@dataclass
class KnowledgeItem:
    """A knowledge entry selected for the prompt, with its relevance score."""

    title: str
    content: str
    category: KnowledgeCategory
    score: int


@dataclass
class MechanicsItem:
    """A mechanics rule selected for the prompt."""

    title: str
    content: str
    category: MechanicsCategory

    def render(self) -> str:
        return f"{self.title}: {self.content}"


@dataclass
class SpatialPromptContext:
    """Spatial snapshot trimmed to what the prompt shows."""

    character_id: str
    character_name: str
    location_id: str
    location_name: str
    unit_type: str
    position: Position
    nearby_characters: list[NearbyCharacter] = field(default_factory=list)
    nearby_features: list[NearbyFeature] = field(default_factory=list)
    available_actions: list[FlatAction] = field(default_factory=list)


@dataclass
class PromptContext:
    """Bounded context assembled for one narration request."""

    session_id: str
    campaign_name: str
    user_input: str
    state: StateSnapshot | None = None
    summary: str | None = None
    recent_messages: list[ChatTurn] = field(default_factory=list)
    knowledge: list[KnowledgeItem] = field(default_factory=list)
    tone_name: str | None = None
    tone_guidelines: str | None = None
    mechanics: list[MechanicsItem] = field(default_factory=list)
    spatial: SpatialPromptContext | None = None
    ai_guidelines: str | None = None


# =============================================================================
# Interpretation and turn results
# =============================================================================


@dataclass
class ActingCharacter:
    """Who the model's movement claim applies to."""

    character_id: str
    name: str
    position: Position | None = None
    location_id: str | None = None

    @classmethod
    def from_context(cls, context: PromptContext) -> "ActingCharacter | None":
        """Derive the acting character from a context's spatial block."""
        if context.spatial is None:
            return None
        return cls(
            character_id=context.spatial.character_id,
            name=context.spatial.character_name,
            position=context.spatial.position,
            location_id=context.spatial.location_id,
        )


@dataclass
class NarrationResult:
    """Parsed model reply."""

    narrative_text: str
    movement_suggestion: MovementSuggestion | None = None


@dataclass
class TurnResult:
    """Everything produced by one narration turn."""

    narrative: str
    movement_suggestion: MovementSuggestion | None
    intent: MovementIntent
    context: PromptContext
    usage: UsageStats | None = None

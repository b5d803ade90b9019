"""Result types for spatial queries.

These are ephemeral values recomputed on demand; they are echoed into
prompts and message metadata but never stored as primary state.
"""

from dataclasses import dataclass, field
from typing import Any

from spatialdm.database.models.enums import CoverLevel, FeatureType, InteractionType
from spatialdm.spatial.geometry import Position


@dataclass
class NearbyCharacter:
    """Another character in the same location."""

    character_id: str
    name: str
    position: Position
    distance: float
    can_see: bool
    cover_level: CoverLevel = CoverLevel.NONE


@dataclass
class NearbyFeature:
    """A feature within search radius of a point."""

    feature_id: str
    name: str
    feature_type: FeatureType
    position: Position
    distance: float


@dataclass
class ActionTarget:
    """A character that a movement rule can currently reach."""

    character_id: str
    name: str
    distance: float


@dataclass
class AvailableAction:
    """A movement rule plus every target it is valid against right now."""

    rule_name: str
    interaction_type: InteractionType
    max_distance: float
    requires_line_of_sight: bool
    description: str = ""
    valid_targets: list[ActionTarget] = field(default_factory=list)

    @property
    def label(self) -> str:
        """Prompt label, e.g. 'melee (Sword Reach)'."""
        return f"{self.interaction_type.value} ({self.rule_name})"


@dataclass
class MovementValidation:
    """Structured verdict on a hypothetical move.

    A negative result is data, not an error: callers can look up an
    alternative with SpatialQueryService.nearest_valid_position.
    """

    is_valid: bool
    blocked_by: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class PathValidation:
    """Verdict on the straight-line path between two points."""

    is_valid: bool
    blocked_by: list[str] = field(default_factory=list)


@dataclass
class TurnMovement:
    """How many turns a move takes at a character's movement rate."""

    base_rate: float
    speed_multiplier: float
    can_reach_in_one_turn: bool
    turns_required: int

    @property
    def effective_rate(self) -> float:
        return self.base_rate * self.speed_multiplier


@dataclass
class FlatAction:
    """One (rule, target) pair flattened for prompt display."""

    action: str
    target_id: str
    target_name: str
    requires_movement: bool = False


@dataclass
class SpatialContext:
    """Spatial snapshot for one character at one instant."""

    character_id: str
    location_id: str
    location_name: str
    unit_type: str
    position: Position
    nearby_characters: list[NearbyCharacter] = field(default_factory=list)
    nearby_features: list[NearbyFeature] = field(default_factory=list)
    available_actions: list[FlatAction] = field(default_factory=list)


@dataclass
class MovementSuggestion:
    """Candidate relocation inferred from narration.

    `is_valid` starts provisionally True; the orchestrator re-validates it
    with SpatialQueryService.validate_movement before anything is applied.
    """

    character_id: str
    character_name: str
    from_position: Position
    to_position: Position
    reason: str
    action_type: str
    distance: float
    location_id: str | None = None
    target_name: str | None = None
    is_valid: bool = True
    validation_issues: list[str] = field(default_factory=list)
    turn_movement: TurnMovement | None = None

    def to_metadata(self) -> dict[str, Any]:
        """Serializable form stored on the assistant message."""
        data: dict[str, Any] = {
            "character_id": self.character_id,
            "character_name": self.character_name,
            "from": self.from_position.as_dict(),
            "to": self.to_position.as_dict(),
            "reason": self.reason,
            "action_type": self.action_type,
            "distance": self.distance,
            "location_id": self.location_id,
            "target_name": self.target_name,
            "is_valid": self.is_valid,
            "validation_issues": list(self.validation_issues),
        }
        if self.turn_movement is not None:
            data["turn_movement"] = {
                "base_rate": self.turn_movement.base_rate,
                "speed_multiplier": self.turn_movement.speed_multiplier,
                "can_reach_in_one_turn": self.turn_movement.can_reach_in_one_turn,
                "turns_required": self.turn_movement.turns_required,
            }
        return data

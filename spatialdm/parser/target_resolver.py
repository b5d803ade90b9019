"""Resolve a named target into a destination position."""

import logging
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.orm import Session

from spatialdm.database.models.campaign import Character
from spatialdm.database.models.session import GameSession
from spatialdm.database.models.spatial import CharacterPosition, LocationFeature
from spatialdm.managers.base import BaseManager
from spatialdm.parser.movement_intent import MovementIntent
from spatialdm.spatial.geometry import Position, distance_3d
from spatialdm.spatial.index import DatabaseSpatialIndex, SpatialIndex, position_from_row

logger = logging.getLogger(__name__)

# Stand-off distances when no movement rule applies
DEFAULT_CHARACTER_DISTANCE = 1.5
DEFAULT_FEATURE_DISTANCE = 1.0


@dataclass
class TargetCheck:
    """Whether a target name refers to something in the session."""

    exists: bool
    kind: Literal["character", "feature"] | None = None


def position_at_distance(current: Position, target: Position, stand_off: float) -> Position:
    """Point on the current->target line that is stand_off away from target.

    Unlike SpatialQueryService.suggest_movement this follows the full 3D
    line, so elevation changes too.
    """
    length = distance_3d(current, target)
    if length <= stand_off:
        return current

    ratio = (length - stand_off) / length
    return Position(
        x=current.x + (target.x - current.x) * ratio,
        y=current.y + (target.y - current.y) * ratio,
        z=current.z + (target.z - current.z) * ratio,
        facing=current.facing,
    )


class TargetResolver(BaseManager):
    """Find characters or features by (partial) name within a session.

    Name matching is a case-insensitive substring match; the first
    character match wins over any feature match.
    """

    def __init__(self, db: Session, index: SpatialIndex | None = None) -> None:
        super().__init__(db)
        self.index = index or DatabaseSpatialIndex(db)

    def target_position(
        self,
        intent: MovementIntent,
        session_id: str,
        current: Position,
        target_name: str | None = None,
    ) -> Position | None:
        """Destination for moving toward a named target.

        Characters are approached to the max_distance of the campaign rule
        matching the intent's interaction type (1.5 when none matches);
        features are approached to 1.0.

        Returns:
            Destination position, or None when the session has no current
            location, no target name was given, or nothing matches.
        """
        session = self.db.get(GameSession, session_id)
        if session is None or session.state is None or session.state.location_id is None:
            return None
        if not target_name:
            return None

        character_pos = self._find_character_position(session.campaign_id, target_name)
        if character_pos is not None:
            stand_off = self._rule_distance(session.campaign_id, intent)
            return position_at_distance(current, position_from_row(character_pos), stand_off)

        feature = self._find_feature(session.state.location_id, target_name)
        if feature is not None:
            anchor = Position(feature.x, feature.y, feature.z)
            return position_at_distance(current, anchor, DEFAULT_FEATURE_DISTANCE)

        logger.debug(f"No target matching '{target_name}' in session {session_id}")
        return None

    def validate_target(self, target_name: str, session_id: str) -> TargetCheck:
        """Check whether a target name refers to a campaign character or a
        feature of the session's current location."""
        session = self.db.get(GameSession, session_id)
        if session is None:
            return TargetCheck(exists=False)

        pattern = f"%{target_name}%"
        character = (
            self.db.query(Character)
            .filter(Character.campaign_id == session.campaign_id, Character.name.ilike(pattern))
            .first()
        )
        if character is not None:
            return TargetCheck(exists=True, kind="character")

        if session.state is not None and session.state.location_id is not None:
            if self._find_feature(session.state.location_id, target_name) is not None:
                return TargetCheck(exists=True, kind="feature")

        return TargetCheck(exists=False)

    def _find_character_position(
        self, campaign_id: str, target_name: str
    ) -> CharacterPosition | None:
        character = (
            self.db.query(Character)
            .filter(
                Character.campaign_id == campaign_id,
                Character.name.ilike(f"%{target_name}%"),
            )
            .order_by(Character.created_at)
            .first()
        )
        if character is None:
            return None
        return self.index.position_of(character.id)

    def _find_feature(self, location_id: str, target_name: str) -> LocationFeature | None:
        return (
            self.db.query(LocationFeature)
            .filter(
                LocationFeature.location_id == location_id,
                LocationFeature.name.ilike(f"%{target_name}%"),
            )
            .order_by(LocationFeature.name)
            .first()
        )

    def _rule_distance(self, campaign_id: str, intent: MovementIntent) -> float:
        interaction = intent.action_type.interaction_type if intent.action_type else None
        if interaction is not None:
            for rule in self.index.movement_rules(campaign_id):
                if rule.interaction_type == interaction:
                    return rule.max_distance
        return DEFAULT_CHARACTER_DISTANCE

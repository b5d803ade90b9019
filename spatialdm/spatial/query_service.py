"""Spatial query service.

Answers the geometric questions that gate narrative actions: who can see
whom, how much cover stands between them, which interactions are in range,
and whether a proposed move is legal. Everything here is a read; even
validate_movement only judges a hypothetical move.
"""

import logging
import math

from spatialdm.config import Settings, get_settings
from spatialdm.database.models.enums import CoverLevel
from spatialdm.spatial.geometry import (
    Position,
    distance_2d,
    distance_3d,
    feature_box,
    point_in_box,
    segment_intersects_box,
)
from spatialdm.spatial.index import SpatialIndex, location_box, position_from_row
from spatialdm.spatial.schemas import (
    ActionTarget,
    AvailableAction,
    FlatAction,
    MovementValidation,
    NearbyCharacter,
    NearbyFeature,
    PathValidation,
    SpatialContext,
    TurnMovement,
)

logger = logging.getLogger(__name__)


class SpatialQueryService:
    """Geometric queries over a SpatialIndex.

    Example:
        service = SpatialQueryService(DatabaseSpatialIndex(db))
        if service.line_of_sight(archer, goblin, location_id):
            cover = service.cover_level(archer, goblin, location_id)
    """

    # Ring search parameters for nearest_valid_position
    SEARCH_STEP = 0.5
    SEARCH_DIRECTIONS = 8

    def __init__(self, index: SpatialIndex, settings: Settings | None = None) -> None:
        """Initialize with the index to query.

        Args:
            index: Source of locations, features and positions.
            settings: Optional settings override (defaults to cached settings).
        """
        self.index = index
        self.settings = settings or get_settings()

    # =========================================================================
    # Visibility and cover
    # =========================================================================

    def line_of_sight(self, from_pos: Position, to_pos: Position, location_id: str) -> bool:
        """Check for an unobstructed line between two points.

        Only features flagged blocks_vision are considered.

        Returns:
            True if no vision-blocking feature's box touches the segment.
        """
        for obstacle in self.index.features_of(location_id, blocks_vision=True):
            if segment_intersects_box(from_pos, to_pos, feature_box(obstacle)):
                return False
        return True

    def cover_level(
        self, attacker: Position, defender: Position, location_id: str
    ) -> CoverLevel:
        """Best cover any feature on the attacker->defender line provides.

        Returns:
            The highest CoverLevel among intersecting cover features,
            CoverLevel.NONE if none intersect.
        """
        best = CoverLevel.NONE
        for feature in self.index.features_of(location_id, provides_cover=True):
            if feature.provides_cover.rank <= best.rank:
                continue
            if segment_intersects_box(attacker, defender, feature_box(feature)):
                best = feature.provides_cover
        return best

    # =========================================================================
    # Proximity
    # =========================================================================

    def nearby_characters(
        self,
        position: Position,
        location_id: str,
        excluding: str | None = None,
    ) -> list[NearbyCharacter]:
        """Every other character in the location with distance and visibility.

        The result is unsorted; sort by `distance` if order matters.
        """
        entries = self.index.positions_in(location_id, excluding=excluding)
        names = self.index.character_names([character_id for character_id, _ in entries])

        nearby = []
        for character_id, other in entries:
            nearby.append(
                NearbyCharacter(
                    character_id=character_id,
                    name=names.get(character_id, character_id),
                    position=other,
                    distance=distance_3d(position, other),
                    can_see=self.line_of_sight(position, other, location_id),
                )
            )
        return nearby

    def visible_characters(
        self,
        position: Position,
        location_id: str,
        excluding: str | None = None,
    ) -> list[NearbyCharacter]:
        """Characters in the location with a clear line of sight."""
        return [
            entry
            for entry in self.nearby_characters(position, location_id, excluding)
            if entry.can_see
        ]

    def nearby_features(
        self,
        position: Position,
        location_id: str,
        max_distance: float | None = None,
    ) -> list[NearbyFeature]:
        """Features whose anchor lies within max_distance, nearest first.

        Args:
            position: Search origin.
            location_id: Location to search.
            max_distance: Radius (defaults to settings.nearby_feature_radius).
        """
        radius = self.settings.nearby_feature_radius if max_distance is None else max_distance

        results = []
        for feature in self.index.features_of(location_id):
            anchor = Position(feature.x, feature.y, feature.z)
            distance = distance_3d(position, anchor)
            if distance <= radius:
                results.append(
                    NearbyFeature(
                        feature_id=feature.id,
                        name=feature.name,
                        feature_type=feature.feature_type,
                        position=anchor,
                        distance=distance,
                    )
                )
        results.sort(key=lambda f: f.distance)
        return results

    def available_actions(self, character_id: str, campaign_id: str) -> list[AvailableAction]:
        """Which campaign movement rules reach which characters right now.

        A target is valid for a rule when it is within max_distance and,
        if the rule requires it, in line of sight.

        Returns:
            One entry per rule (possibly with no targets). Empty when the
            character has no recorded position or location.
        """
        row = self.index.position_of(character_id)
        if row is None or row.location_id is None:
            return []

        origin = position_from_row(row)
        location_id = row.location_id
        others = self.index.positions_in(location_id, excluding=character_id)
        names = self.index.character_names([other_id for other_id, _ in others])

        actions = []
        for rule in self.index.movement_rules(campaign_id):
            targets = []
            for other_id, other in others:
                distance = distance_3d(origin, other)
                if distance > rule.max_distance:
                    continue
                if rule.requires_line_of_sight and not self.line_of_sight(
                    origin, other, location_id
                ):
                    continue
                targets.append(
                    ActionTarget(
                        character_id=other_id,
                        name=names.get(other_id, other_id),
                        distance=distance,
                    )
                )
            actions.append(
                AvailableAction(
                    rule_name=rule.name,
                    interaction_type=rule.interaction_type,
                    max_distance=rule.max_distance,
                    requires_line_of_sight=rule.requires_line_of_sight,
                    description=rule.description,
                    valid_targets=targets,
                )
            )
        return actions

    # =========================================================================
    # Movement
    # =========================================================================

    def validate_movement(
        self, from_pos: Position, to_pos: Position, location_id: str
    ) -> MovementValidation:
        """Judge a hypothetical move without applying it.

        Checks, in order: destination inside the location bounds,
        destination clear of movement-blocking features, then an advisory
        warning for implausibly long moves.
        """
        location = self.index.location(location_id)
        if location is None:
            return MovementValidation(is_valid=False, warnings=["Location not found"])

        if not point_in_box(to_pos, location_box(location)):
            return MovementValidation(
                is_valid=False,
                warnings=["Target position is outside location bounds"],
            )

        blocked_by = [
            feature.name
            for feature in self.index.features_of(location_id, blocks_movement=True)
            if point_in_box(to_pos, feature_box(feature))
        ]
        if blocked_by:
            return MovementValidation(
                is_valid=False,
                blocked_by=blocked_by,
                warnings=[f"Path blocked by: {', '.join(blocked_by)}"],
            )

        warnings = []
        distance = distance_3d(from_pos, to_pos)
        if distance > self.settings.max_reasonable_move:
            warnings.append(f"Movement distance ({distance:.1f}) seems unusually large")

        return MovementValidation(is_valid=True, warnings=warnings)

    def validate_movement_path(
        self, from_pos: Position, to_pos: Position, location_id: str
    ) -> PathValidation:
        """Check whether the straight path crosses movement-blocking features.

        No route around obstacles is proposed.
        """
        blocked_by = [
            feature.name
            for feature in self.index.features_of(location_id, blocks_movement=True)
            if segment_intersects_box(from_pos, to_pos, feature_box(feature))
        ]
        return PathValidation(is_valid=not blocked_by, blocked_by=blocked_by)

    def suggest_movement(
        self, current: Position, target: Position, desired_separation: float
    ) -> Position:
        """Move horizontally toward target until desired_separation remains.

        Elevation is held constant. Returns `current` unchanged when it is
        already within the separation or directly above/below the target.
        """
        length = distance_2d(current, target)
        if length == 0 or length <= desired_separation:
            return current

        move = length - desired_separation
        return Position(
            x=current.x + (target.x - current.x) / length * move,
            y=current.y + (target.y - current.y) / length * move,
            z=current.z,
            facing=current.facing,
        )

    def turn_movement(
        self, character_id: str, distance: float, speed_multiplier: float = 1.0
    ) -> TurnMovement:
        """Turn-based reach of a move at the character's movement rate.

        Args:
            character_id: Character whose base rate is used.
            distance: Distance to cover.
            speed_multiplier: e.g. 2.0 for running or charging.

        Raises:
            ValueError: If speed_multiplier is not positive.
        """
        if speed_multiplier <= 0:
            raise ValueError("speed_multiplier must be positive")

        character = self.index.character(character_id)
        base_rate = self.settings.default_movement_rate
        if character is not None and character.base_movement_rate:
            base_rate = character.base_movement_rate

        effective = base_rate * speed_multiplier
        return TurnMovement(
            base_rate=base_rate,
            speed_multiplier=speed_multiplier,
            can_reach_in_one_turn=distance <= effective,
            turns_required=math.ceil(distance / effective),
        )

    def nearest_valid_position(
        self,
        target: Position,
        location_id: str,
        search_radius: float = 2.0,
    ) -> Position | None:
        """Find a clear spot near a blocked target.

        Probes 8 evenly spaced directions on rings of growing radius
        (0.5, 1.0, ... up to search_radius). The first probe outside every
        movement-blocking box wins. This is a coarse approximation and
        can miss a closer clear point between rings.

        Returns:
            A probe position, or None if every probe is blocked.
        """
        blockers = [
            feature_box(f) for f in self.index.features_of(location_id, blocks_movement=True)
        ]

        rings = int(search_radius / self.SEARCH_STEP + 1e-9)
        for ring in range(1, rings + 1):
            radius = ring * self.SEARCH_STEP
            for step in range(self.SEARCH_DIRECTIONS):
                angle = step / self.SEARCH_DIRECTIONS * 2 * math.pi
                probe = Position(
                    x=target.x + math.cos(angle) * radius,
                    y=target.y + math.sin(angle) * radius,
                    z=target.z,
                )
                if not any(point_in_box(probe, box) for box in blockers):
                    return probe

        logger.debug(f"No valid position within {search_radius} of {target.as_dict()}")
        return None

    # =========================================================================
    # Snapshot
    # =========================================================================

    def build_spatial_context(self, character_id: str) -> SpatialContext | None:
        """Assemble the spatial snapshot for one character.

        Returns:
            SpatialContext, or None if the character has no position or
            location on record.
        """
        row = self.index.position_of(character_id)
        if row is None or row.location_id is None:
            return None

        location = self.index.location(row.location_id)
        character = self.index.character(character_id)
        if location is None or character is None:
            return None

        origin = position_from_row(row)
        visible = self.visible_characters(origin, location.id, excluding=character_id)
        for entry in visible:
            entry.cover_level = self.cover_level(origin, entry.position, location.id)
        visible.sort(key=lambda c: c.distance)

        flat_actions = [
            FlatAction(
                action=action.label,
                target_id=target.character_id,
                target_name=target.name,
            )
            for action in self.available_actions(character_id, character.campaign_id)
            for target in action.valid_targets
        ]

        return SpatialContext(
            character_id=character_id,
            location_id=location.id,
            location_name=location.name,
            unit_type=location.unit_type,
            position=origin,
            nearby_characters=visible,
            nearby_features=self.nearby_features(origin, location.id),
            available_actions=flat_actions,
        )

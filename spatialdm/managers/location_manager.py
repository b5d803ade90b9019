"""LocationManager for spatial locations, features and character positions."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from spatialdm.config import Settings
from spatialdm.database.models.campaign import Character
from spatialdm.database.models.enums import CoverLevel, FeatureType
from spatialdm.database.models.spatial import (
    CharacterPosition,
    Location,
    LocationFeature,
    MovementEvent,
)
from spatialdm.exceptions import InvalidGeometryError, InvalidMovementError
from spatialdm.managers.base import BaseManager
from spatialdm.spatial.geometry import Position, distance_3d
from spatialdm.spatial.index import DatabaseSpatialIndex, position_from_row
from spatialdm.spatial.query_service import SpatialQueryService

logger = logging.getLogger(__name__)

_BOUND_FIELDS = ("min_x", "max_x", "min_y", "max_y", "min_z", "max_z")
_DIMENSION_FIELDS = ("width", "height", "depth")


def _check_bounds(values: dict[str, float]) -> None:
    for axis in ("x", "y", "z"):
        low, high = values[f"min_{axis}"], values[f"max_{axis}"]
        if low > high:
            raise InvalidGeometryError(f"min_{axis} ({low}) exceeds max_{axis} ({high})")


def _check_dimensions(values: dict[str, float | None]) -> None:
    for name in _DIMENSION_FIELDS:
        value = values.get(name)
        if value is not None and value < 0:
            raise InvalidGeometryError(f"Feature {name} cannot be negative ({value})")


class LocationManager(BaseManager):
    """Manager for spatial writes.

    Handles:
    - Location creation/update with bounds validation
    - Feature creation/update with dimension validation
    - Character position upsert and placement
    - Committing validated moves with a movement event log
    """

    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        super().__init__(db)
        self.settings = settings
        self._query_service: SpatialQueryService | None = None

    @property
    def query_service(self) -> SpatialQueryService:
        """Lazily constructed query service over the same session."""
        if self._query_service is None:
            self._query_service = SpatialQueryService(
                DatabaseSpatialIndex(self.db), settings=self.settings
            )
        return self._query_service

    # =========================================================================
    # Locations
    # =========================================================================

    def get_location(self, location_id: str) -> Location:
        """Get location by id.

        Raises:
            NotFoundError: If the location does not exist.
        """
        return self._get_or_raise(Location, location_id, "location")

    def create_location(
        self,
        campaign_id: str,
        name: str,
        min_x: float,
        max_x: float,
        min_y: float,
        max_y: float,
        min_z: float = 0.0,
        max_z: float = 10.0,
        description: str = "",
        unit_type: str = "meters",
    ) -> Location:
        """Create a bounded location.

        Raises:
            InvalidGeometryError: If any min exceeds its max.
        """
        bounds = {
            "min_x": min_x,
            "max_x": max_x,
            "min_y": min_y,
            "max_y": max_y,
            "min_z": min_z,
            "max_z": max_z,
        }
        _check_bounds(bounds)

        location = Location(
            campaign_id=campaign_id,
            name=name,
            description=description,
            unit_type=unit_type,
            **bounds,
        )
        self.db.add(location)
        self.db.flush()
        logger.info(f"Created location '{name}' ({location.id})")
        return location

    def update_location(self, location_id: str, **updates) -> Location:
        """Update location fields, re-checking bounds.

        Raises:
            NotFoundError: If the location does not exist.
            InvalidGeometryError: If the update would invert a bound.
        """
        location = self.get_location(location_id)

        bounds = {field: updates.get(field, getattr(location, field)) for field in _BOUND_FIELDS}
        _check_bounds(bounds)

        for key, value in updates.items():
            setattr(location, key, value)

        self.db.flush()
        return location

    # =========================================================================
    # Features
    # =========================================================================

    def add_feature(
        self,
        location_id: str,
        name: str,
        x: float,
        y: float,
        z: float = 0.0,
        feature_type: FeatureType = FeatureType.OBSTACLE,
        width: float | None = None,
        height: float | None = None,
        depth: float | None = None,
        blocks_movement: bool = False,
        blocks_vision: bool = False,
        provides_cover: CoverLevel = CoverLevel.NONE,
        description: str | None = None,
        **kwargs,
    ) -> LocationFeature:
        """Add a feature anchored at (x, y, z).

        Its box spans width along x, depth along y and height along z.

        Raises:
            NotFoundError: If the location does not exist.
            InvalidGeometryError: If a dimension is negative.
        """
        self.get_location(location_id)
        _check_dimensions({"width": width, "height": height, "depth": depth})

        feature = LocationFeature(
            location_id=location_id,
            name=name,
            feature_type=feature_type,
            description=description,
            x=x,
            y=y,
            z=z,
            width=width,
            height=height,
            depth=depth,
            blocks_movement=blocks_movement,
            blocks_vision=blocks_vision,
            provides_cover=provides_cover,
            **kwargs,
        )
        self.db.add(feature)
        self.db.flush()
        return feature

    def update_feature(self, feature_id: str, **updates) -> LocationFeature:
        """Update feature fields, re-checking dimensions.

        Raises:
            NotFoundError: If the feature does not exist.
            InvalidGeometryError: If a dimension would become negative.
        """
        feature = self._get_or_raise(LocationFeature, feature_id, "feature")
        _check_dimensions(updates)

        for key, value in updates.items():
            setattr(feature, key, value)

        self.db.flush()
        return feature

    # =========================================================================
    # Positions
    # =========================================================================

    def get_or_create_position(self, character_id: str) -> CharacterPosition:
        """Get a character's position, creating one at the origin if absent.

        Raises:
            NotFoundError: If the character does not exist.
        """
        self._get_or_raise(Character, character_id, "character")

        position = (
            self.db.query(CharacterPosition)
            .filter(CharacterPosition.character_id == character_id)
            .first()
        )
        if position is None:
            position = CharacterPosition(character_id=character_id, x=0.0, y=0.0, z=0.0)
            self.db.add(position)
            self.db.flush()
        return position

    def set_position(
        self,
        character_id: str,
        position: Position,
        location_id: str | None = None,
    ) -> CharacterPosition:
        """Place a character directly, without movement validation.

        Used for setup and GM overrides. Facing is normalized to [0, 360).

        Raises:
            NotFoundError: If the character or location does not exist.
        """
        row = self.get_or_create_position(character_id)
        if location_id is not None:
            self.get_location(location_id)
            row.location_id = location_id

        row.x, row.y, row.z = position.x, position.y, position.z
        if position.facing is not None:
            row.facing = position.facing % 360
        row.last_updated = datetime.utcnow()

        self.db.flush()
        return row

    def commit_movement(
        self,
        character_id: str,
        to_position: Position,
        session_id: str | None = None,
        action_type: str | None = None,
        reason: str | None = None,
    ) -> MovementEvent:
        """Validate and apply a move inside the character's current location.

        Raises:
            NotFoundError: If the character does not exist.
            InvalidMovementError: If the character has no location or the
                destination fails validation.
        """
        row = self.get_or_create_position(character_id)
        if row.location_id is None:
            raise InvalidMovementError(
                f"Character {character_id} has no location", ["Character has no location"]
            )

        origin = position_from_row(row)
        validation = self.query_service.validate_movement(origin, to_position, row.location_id)
        if not validation.is_valid:
            raise InvalidMovementError(
                f"Movement rejected for character {character_id}", validation.warnings
            )

        event = MovementEvent(
            character_id=character_id,
            session_id=session_id,
            location_id=row.location_id,
            from_x=origin.x,
            from_y=origin.y,
            from_z=origin.z,
            to_x=to_position.x,
            to_y=to_position.y,
            to_z=to_position.z,
            distance=distance_3d(origin, to_position),
            action_type=action_type,
            reason=reason,
        )
        self.db.add(event)

        row.x, row.y, row.z = to_position.x, to_position.y, to_position.z
        row.last_updated = datetime.utcnow()
        self.db.flush()

        logger.info(
            f"Moved character {character_id} {event.distance:.1f} units "
            f"to ({to_position.x:.1f}, {to_position.y:.1f}, {to_position.z:.1f})"
        )
        return event

    def movement_history(self, character_id: str, limit: int = 20) -> list[MovementEvent]:
        """Most recent committed moves for a character, newest first."""
        return (
            self.db.query(MovementEvent)
            .filter(MovementEvent.character_id == character_id)
            .order_by(MovementEvent.created_at.desc())
            .limit(limit)
            .all()
        )

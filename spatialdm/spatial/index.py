"""Spatial index: what is in or near a location.

The query service depends only on the SpatialIndex protocol so it can be
pointed at any storage. DatabaseSpatialIndex is the SQLAlchemy-backed
implementation used by the application.
"""

from typing import Protocol, Sequence, runtime_checkable

from spatialdm.database.models.campaign import Character
from spatialdm.database.models.enums import CoverLevel
from spatialdm.database.models.spatial import (
    CharacterPosition,
    Location,
    LocationFeature,
    MovementRule,
)
from spatialdm.exceptions import NotFoundError
from spatialdm.managers.base import BaseManager
from spatialdm.spatial.geometry import Box, Position


@runtime_checkable
class SpatialIndex(Protocol):
    """Read contract the spatial query service relies on."""

    def location(self, location_id: str) -> Location | None:
        ...

    def boundary_of(self, location_id: str) -> Box:
        ...

    def features_of(
        self,
        location_id: str,
        *,
        blocks_vision: bool | None = None,
        blocks_movement: bool | None = None,
        provides_cover: bool | None = None,
    ) -> Sequence[LocationFeature]:
        ...

    def positions_in(
        self, location_id: str, excluding: str | None = None
    ) -> list[tuple[str, Position]]:
        ...

    def position_of(self, character_id: str) -> CharacterPosition | None:
        ...

    def character(self, character_id: str) -> Character | None:
        ...

    def character_names(self, character_ids: Sequence[str]) -> dict[str, str]:
        ...

    def movement_rules(self, campaign_id: str) -> Sequence[MovementRule]:
        ...


def position_from_row(row: CharacterPosition) -> Position:
    """Convert a stored position row into a geometry Position."""
    return Position(x=row.x, y=row.y, z=row.z, facing=row.facing)


def location_box(location: Location) -> Box:
    """Bounding box of a location."""
    return Box(
        min_x=location.min_x,
        max_x=location.max_x,
        min_y=location.min_y,
        max_y=location.max_y,
        min_z=location.min_z,
        max_z=location.max_z,
    )


class DatabaseSpatialIndex(BaseManager):
    """SQLAlchemy-backed spatial index.

    Every method is a plain read; nothing here mutates positions.
    """

    def location(self, location_id: str) -> Location | None:
        return self.db.get(Location, location_id)

    def boundary_of(self, location_id: str) -> Box:
        """Get the bounding box of a location.

        Raises:
            NotFoundError: If the location does not exist.
        """
        location = self.location(location_id)
        if location is None:
            raise NotFoundError("location", location_id)
        return location_box(location)

    def features_of(
        self,
        location_id: str,
        *,
        blocks_vision: bool | None = None,
        blocks_movement: bool | None = None,
        provides_cover: bool | None = None,
    ) -> list[LocationFeature]:
        """Get features of a location, optionally filtered by flag.

        Args:
            location_id: Location to search.
            blocks_vision: Filter on the vision-blocking flag.
            blocks_movement: Filter on the movement-blocking flag.
            provides_cover: True for features with any cover, False for none.

        Returns:
            Matching features ordered by name.
        """
        query = self.db.query(LocationFeature).filter(
            LocationFeature.location_id == location_id
        )
        if blocks_vision is not None:
            query = query.filter(LocationFeature.blocks_vision.is_(blocks_vision))
        if blocks_movement is not None:
            query = query.filter(LocationFeature.blocks_movement.is_(blocks_movement))
        if provides_cover is True:
            query = query.filter(LocationFeature.provides_cover != CoverLevel.NONE)
        elif provides_cover is False:
            query = query.filter(LocationFeature.provides_cover == CoverLevel.NONE)
        return query.order_by(LocationFeature.name).all()

    def positions_in(
        self, location_id: str, excluding: str | None = None
    ) -> list[tuple[str, Position]]:
        """Get (character_id, position) for every character in a location."""
        query = self.db.query(CharacterPosition).filter(
            CharacterPosition.location_id == location_id
        )
        if excluding is not None:
            query = query.filter(CharacterPosition.character_id != excluding)
        return [(row.character_id, position_from_row(row)) for row in query.all()]

    def position_of(self, character_id: str) -> CharacterPosition | None:
        return (
            self.db.query(CharacterPosition)
            .filter(CharacterPosition.character_id == character_id)
            .first()
        )

    def character(self, character_id: str) -> Character | None:
        return self.db.get(Character, character_id)

    def character_names(self, character_ids: Sequence[str]) -> dict[str, str]:
        """Map character ids to display names."""
        if not character_ids:
            return {}
        rows = (
            self.db.query(Character.id, Character.name)
            .filter(Character.id.in_(list(character_ids)))
            .all()
        )
        return {row.id: row.name for row in rows}

    def movement_rules(self, campaign_id: str) -> list[MovementRule]:
        return (
            self.db.query(MovementRule)
            .filter(MovementRule.campaign_id == campaign_id)
            .order_by(MovementRule.max_distance, MovementRule.name)
            .all()
        )

"""Spatial reasoning: geometry kernel, spatial index and query service.

Main Components:
    - Position / Box: geometry value types
    - distance_3d, distance_2d, segment_intersects_box, point_in_box: kernel
    - SpatialIndex / DatabaseSpatialIndex: per-location storage reads
    - SpatialQueryService: line of sight, cover, actions, movement checks
"""

from spatialdm.spatial.geometry import (
    Box,
    Position,
    distance_2d,
    distance_3d,
    feature_box,
    point_in_box,
    segment_intersects_box,
)
from spatialdm.spatial.index import DatabaseSpatialIndex, SpatialIndex
from spatialdm.spatial.query_service import SpatialQueryService
from spatialdm.spatial.schemas import (
    ActionTarget,
    AvailableAction,
    FlatAction,
    MovementSuggestion,
    MovementValidation,
    NearbyCharacter,
    NearbyFeature,
    PathValidation,
    SpatialContext,
    TurnMovement,
)

__all__ = [
    # Geometry
    "Box",
    "Position",
    "distance_2d",
    "distance_3d",
    "feature_box",
    "point_in_box",
    "segment_intersects_box",
    # Index
    "DatabaseSpatialIndex",
    "SpatialIndex",
    # Queries
    "SpatialQueryService",
    # Results
    "ActionTarget",
    "AvailableAction",
    "FlatAction",
    "MovementSuggestion",
    "MovementValidation",
    "NearbyCharacter",
    "NearbyFeature",
    "PathValidation",
    "SpatialContext",
    "TurnMovement",
]

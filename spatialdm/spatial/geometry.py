"""Geometry kernel for the spatial system.

Pure functions over points and axis-aligned bounding boxes (AABBs). Nothing
here touches the database; the index and query service build on top.
"""

import math
from dataclasses import dataclass
from typing import Any, Protocol


# Direction components smaller than this are treated as parallel to the axis
PARALLEL_EPSILON = 1e-4


@dataclass(frozen=True)
class Position:
    """A point in a location's coordinate space.

    Attributes:
        x: East-west coordinate.
        y: North-south coordinate.
        z: Vertical coordinate.
        facing: Optional facing angle in degrees [0, 360).
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    facing: float | None = None

    def offset(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Position":
        """Return a new position shifted by the given deltas."""
        return Position(self.x + dx, self.y + dy, self.z + dz, self.facing)

    def as_dict(self) -> dict[str, float]:
        """Plain x/y/z mapping (used in prompts and message metadata)."""
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Position":
        """Build a position from any mapping with x/y/z keys (missing = 0)."""
        return cls(
            x=float(data.get("x", 0.0) or 0.0),
            y=float(data.get("y", 0.0) or 0.0),
            z=float(data.get("z", 0.0) or 0.0),
        )


@dataclass(frozen=True)
class Box:
    """An axis-aligned bounding box."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float

    @property
    def is_well_formed(self) -> bool:
        """True when min <= max on every axis."""
        return (
            self.min_x <= self.max_x
            and self.min_y <= self.max_y
            and self.min_z <= self.max_z
        )

    def contains(self, point: Position) -> bool:
        return point_in_box(point, self)

    @classmethod
    def from_feature(cls, feature: "Boxed") -> "Box":
        return feature_box(feature)


class Boxed(Protocol):
    """Anything with an anchor and optional extents (e.g. LocationFeature)."""

    x: float
    y: float
    z: float
    width: float | None
    height: float | None
    depth: float | None


def feature_box(feature: Boxed) -> Box:
    """Derive a feature's bounding box from anchor + dimensions.

    Width runs along x, depth along y and height along z. A missing
    dimension is a zero extent, so a feature without any is a point.
    """
    width = feature.width or 0.0
    height = feature.height or 0.0
    depth = feature.depth or 0.0
    return Box(
        min_x=feature.x,
        max_x=feature.x + width,
        min_y=feature.y,
        max_y=feature.y + depth,
        min_z=feature.z,
        max_z=feature.z + height,
    )


def distance_3d(a: Position, b: Position) -> float:
    """Euclidean distance between two points."""
    dx = b.x - a.x
    dy = b.y - a.y
    dz = b.z - a.z
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def distance_2d(a: Position, b: Position) -> float:
    """Horizontal distance, ignoring elevation."""
    dx = b.x - a.x
    dy = b.y - a.y
    return math.sqrt(dx * dx + dy * dy)


def point_in_box(point: Position, box: Box) -> bool:
    """Inclusive containment test on all three axes."""
    return (
        box.min_x <= point.x <= box.max_x
        and box.min_y <= point.y <= box.max_y
        and box.min_z <= point.z <= box.max_z
    )


def segment_intersects_box(start: Position, end: Position, box: Box) -> bool:
    """Slab test for the segment start->end against an AABB.

    For each axis the entry/exit parameters are intersected with the
    running [t_min, t_max] interval, which starts as [0, 1] so only the
    segment (not the infinite line) is considered. Axes whose direction
    component is below PARALLEL_EPSILON fall back to a containment check
    of the start coordinate.

    Returns:
        True if any part of the segment touches the box.
    """
    t_min = 0.0
    t_max = 1.0

    slabs = (
        (start.x, end.x - start.x, box.min_x, box.max_x),
        (start.y, end.y - start.y, box.min_y, box.max_y),
        (start.z, end.z - start.z, box.min_z, box.max_z),
    )

    for origin, direction, low, high in slabs:
        if abs(direction) < PARALLEL_EPSILON:
            if origin < low or origin > high:
                return False
            continue

        t1 = (low - origin) / direction
        t2 = (high - origin) / direction
        t_min = max(t_min, min(t1, t2))
        t_max = min(t_max, max(t1, t2))
        if t_min > t_max:
            return False

    return t_max >= t_min

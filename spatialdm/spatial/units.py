"""Unit conversion for spatial values.

Coordinates are stored in meters by convention; prompts and the CLI can
present them in feet or 5-foot grid squares.
"""

from typing import Literal

from spatialdm.spatial.geometry import Box, Position

UnitType = Literal["meters", "feet"]

FEET_PER_METER = 3.28084
METERS_PER_GRID_SQUARE = 1.524  # One 5 ft square


def meters_to_feet(meters: float) -> float:
    return meters * FEET_PER_METER


def feet_to_meters(feet: float) -> float:
    return feet / FEET_PER_METER


def meters_to_grid_squares(meters: float) -> float:
    return meters / METERS_PER_GRID_SQUARE


def grid_squares_to_meters(squares: float) -> float:
    return squares * METERS_PER_GRID_SQUARE


def format_distance(meters: float, unit_type: UnitType = "meters", precision: int = 1) -> str:
    """Format a distance for display.

    Examples:
        >>> format_distance(1.5)
        '1.5 m'
        >>> format_distance(3.048, "feet")
        '10.0 ft'
    """
    if unit_type == "feet":
        return f"{meters_to_feet(meters):.{precision}f} ft"
    return f"{meters:.{precision}f} m"


def format_position(
    position: Position, unit_type: UnitType = "meters", precision: int = 1
) -> str:
    """Format coordinates as '(x, y, z) unit'."""
    if unit_type == "feet":
        coords = [meters_to_feet(v) for v in (position.x, position.y, position.z)]
        suffix = "ft"
    else:
        coords = [position.x, position.y, position.z]
        suffix = "m"
    return "(" + ", ".join(f"{c:.{precision}f}" for c in coords) + f") {suffix}"


def convert_box(box: Box, to_unit: UnitType) -> Box:
    """Convert a box stored in meters into the target unit."""
    if to_unit == "meters":
        return box
    return Box(
        min_x=meters_to_feet(box.min_x),
        max_x=meters_to_feet(box.max_x),
        min_y=meters_to_feet(box.min_y),
        max_y=meters_to_feet(box.max_y),
        min_z=meters_to_feet(box.min_z),
        max_z=meters_to_feet(box.max_z),
    )

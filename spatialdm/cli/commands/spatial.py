"""Spatial query commands."""

from typing import Optional

import typer

from spatialdm.cli.display import (
    console,
    display_actions,
    display_alternative,
    display_error,
    display_spatial_context,
    display_success,
    display_validation,
)
from spatialdm.database.connection import get_db_session
from spatialdm.spatial.geometry import Position
from spatialdm.spatial.index import DatabaseSpatialIndex, position_from_row
from spatialdm.spatial.query_service import SpatialQueryService


def parse_position(value: str) -> Position:
    """Parse 'x,y' or 'x,y,z' into a Position.

    Raises:
        typer.BadParameter: If the value is not two or three numbers.
    """
    parts = [part.strip() for part in value.split(",")]
    if len(parts) not in (2, 3):
        raise typer.BadParameter(f"Expected 'x,y' or 'x,y,z', got '{value}'")
    try:
        coords = [float(part) for part in parts]
    except ValueError:
        raise typer.BadParameter(f"Coordinates must be numbers, got '{value}'")
    return Position(*coords)


def _require_location(service: SpatialQueryService, location_id: str) -> None:
    if service.index.location(location_id) is None:
        display_error(f"Location {location_id} not found")
        raise typer.Exit(1)


def los(
    location_id: str = typer.Argument(..., help="Location ID"),
    from_pos: str = typer.Argument(..., help="Viewer position as x,y[,z]"),
    to_pos: str = typer.Argument(..., help="Target position as x,y[,z]"),
) -> None:
    """Check line of sight between two points."""
    start, end = parse_position(from_pos), parse_position(to_pos)
    with get_db_session() as db:
        service = SpatialQueryService(DatabaseSpatialIndex(db))
        _require_location(service, location_id)

        if service.line_of_sight(start, end, location_id):
            display_success("Line of sight: clear")
        else:
            console.print("[bold red]Line of sight: blocked[/bold red]")


def cover(
    location_id: str = typer.Argument(..., help="Location ID"),
    attacker: str = typer.Argument(..., help="Attacker position as x,y[,z]"),
    defender: str = typer.Argument(..., help="Defender position as x,y[,z]"),
) -> None:
    """Show the cover a defender has against an attacker."""
    start, end = parse_position(attacker), parse_position(defender)
    with get_db_session() as db:
        service = SpatialQueryService(DatabaseSpatialIndex(db))
        _require_location(service, location_id)

        level = service.cover_level(start, end, location_id)
        console.print(f"[bold]Cover:[/bold] {level.value}")


def validate_move(
    character_id: str = typer.Argument(..., help="Character ID"),
    to_pos: str = typer.Argument(..., help="Destination as x,y[,z]"),
    location: Optional[str] = typer.Option(
        None, "--location", "-l", help="Location ID (defaults to the character's)"
    ),
) -> None:
    """Validate a move from a character's current position."""
    target = parse_position(to_pos)
    with get_db_session() as db:
        service = SpatialQueryService(DatabaseSpatialIndex(db))
        row = service.index.position_of(character_id)
        if row is None:
            display_error(f"Character {character_id} has no position")
            raise typer.Exit(1)

        location_id = location or row.location_id
        if location_id is None:
            display_error(f"Character {character_id} has no location")
            raise typer.Exit(1)

        validation = service.validate_movement(position_from_row(row), target, location_id)
        display_validation(validation)

        if validation.blocked_by:
            display_alternative(service.nearest_valid_position(target, location_id))


def actions(
    character_id: str = typer.Argument(..., help="Character ID"),
) -> None:
    """List movement rules and reachable targets for a character."""
    with get_db_session() as db:
        service = SpatialQueryService(DatabaseSpatialIndex(db))
        character = service.index.character(character_id)
        if character is None:
            display_error(f"Character {character_id} not found")
            raise typer.Exit(1)

        spatial = service.build_spatial_context(character_id)
        if spatial is not None:
            display_spatial_context(spatial)
        display_actions(service.available_actions(character_id, character.campaign_id))

"""Rich display helpers for CLI output."""

import logging
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from spatialdm.gm.context_budget import BudgetResult
from spatialdm.gm.schemas import SpatialPromptContext
from spatialdm.parser.movement_intent import MovementIntent
from spatialdm.spatial.geometry import Position
from spatialdm.spatial.schemas import (
    AvailableAction,
    MovementSuggestion,
    MovementValidation,
    SpatialContext,
)
from spatialdm.spatial.units import format_distance, format_position


# Shared console instance
console = Console()


def configure_logging(level: str = "INFO") -> None:
    """Route library logging through Rich.

    Args:
        level: Root log level name.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def display_error(message: str) -> None:
    """Display error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def display_success(message: str) -> None:
    """Display success message."""
    console.print(f"[bold green]{message}[/bold green]")


def display_info(message: str) -> None:
    """Display info message."""
    console.print(f"[dim]{message}[/dim]")


def display_warning(message: str) -> None:
    console.print(f"[yellow]⚠ {message}[/yellow]")


def display_narrative(text: str) -> None:
    """Display narrator text in a soft panel.

    Args:
        text: Narrative text to display.
    """
    console.print(Panel(text, border_style="dim", padding=(1, 2)))


def display_intent(intent: MovementIntent) -> None:
    """Display a keyword intent detection result."""
    if not intent.detected:
        display_info("No movement intent detected")
        return

    table = Table(title="Movement Intent", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Action", intent.action_type.value if intent.action_type else "-")
    table.add_row("Group", intent.group or "-")
    table.add_row("Keywords", ", ".join(intent.matched_keywords))
    table.add_row("Direction", intent.direction or "-")
    console.print(table)


def display_validation(validation: MovementValidation) -> None:
    """Display a movement verdict with its warnings."""
    if validation.is_valid:
        display_success("Movement is valid")
    else:
        display_error("Movement is not valid")

    for warning in validation.warnings:
        display_warning(warning)


def display_alternative(position: Position | None, unit_type: str = "meters") -> None:
    if position is None:
        display_info("No clear position found nearby")
    else:
        display_info(f"Nearest clear position: {format_position(position, unit_type)}")


def display_actions(actions: list[AvailableAction]) -> None:
    """Display movement rules and the targets each can reach now."""
    if not actions:
        console.print("[dim]No movement rules defined.[/dim]")
        return

    table = Table(title="Available Actions")
    table.add_column("Rule", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Range", justify="right")
    table.add_column("LOS", justify="center")
    table.add_column("Targets")

    for action in actions:
        targets = ", ".join(
            f"{t.name} ({format_distance(t.distance)})" for t in action.valid_targets
        )
        table.add_row(
            action.rule_name,
            action.interaction_type.value,
            format_distance(action.max_distance),
            "yes" if action.requires_line_of_sight else "no",
            targets or "[dim]none in range[/dim]",
        )

    console.print(table)


def display_spatial_context(spatial: SpatialContext | SpatialPromptContext) -> None:
    """Display a character's spatial snapshot as Rich tables."""
    unit = spatial.unit_type
    console.print(
        f"[bold]Location:[/bold] {spatial.location_name}  "
        f"[bold]Position:[/bold] {format_position(spatial.position, unit)}"
    )

    if spatial.nearby_characters:
        table = Table(title="Visible Characters")
        table.add_column("Name", style="cyan")
        table.add_column("Position")
        table.add_column("Distance", justify="right")
        table.add_column("Cover", style="yellow")
        for entry in spatial.nearby_characters:
            table.add_row(
                entry.name,
                format_position(entry.position, unit),
                format_distance(entry.distance, unit),
                entry.cover_level.value,
            )
        console.print(table)

    if spatial.nearby_features:
        table = Table(title="Nearby Features")
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="green")
        table.add_column("Distance", justify="right")
        for feature in spatial.nearby_features:
            table.add_row(
                feature.name,
                feature.feature_type.value,
                format_distance(feature.distance, unit),
            )
        console.print(table)


def display_prompt(prompt: BudgetResult, breakdown: dict[str, int]) -> None:
    """Display a compiled system prompt and its per-section token estimates."""
    console.print(Panel(prompt.content, title="System Prompt", border_style="cyan"))

    table = Table(title=f"Token Budget ({prompt.total_tokens} tokens)")
    table.add_column("Section", style="cyan")
    table.add_column("Tokens", justify="right")
    table.add_column("Included", justify="center")
    for name, tokens in breakdown.items():
        included = name in prompt.sections_included
        table.add_row(name, str(tokens), "[green]yes[/green]" if included else "[red]no[/red]")
    console.print(table)


def display_suggestion(suggestion: MovementSuggestion) -> None:
    """Display a movement suggestion with its review outcome."""
    style = "green" if suggestion.is_valid else "red"
    console.print(
        f"[bold {style}]Movement:[/bold {style}] {suggestion.character_name} "
        f"{suggestion.action_type} {format_position(suggestion.from_position)} -> "
        f"{format_position(suggestion.to_position)} ({format_distance(suggestion.distance)})"
    )
    console.print(f"[dim]Reason: {suggestion.reason}[/dim]")
    for issue in suggestion.validation_issues:
        display_warning(issue)


@contextmanager
def progress_spinner(description: str = "Processing..."):
    """Context manager for spinner during operations.

    Yields:
        Tuple of (progress, task_id) for optional updates.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)
        yield progress, task

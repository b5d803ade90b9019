"""Main CLI application."""

from typing import Optional

import typer
from sqlalchemy.exc import SQLAlchemyError

from spatialdm.cli.commands import narration, spatial
from spatialdm.cli.display import configure_logging, display_error, display_success
from spatialdm.config import get_settings

# Create main app
app = typer.Typer(
    name="spatialdm",
    help="Spatial reasoning and context assembly for an AI narrator",
    add_completion=True,
)

# Spatial queries
app.command("los")(spatial.los)
app.command("cover")(spatial.cover)
app.command("validate-move")(spatial.validate_move)
app.command("actions")(spatial.actions)

# Narration
app.command("detect")(narration.detect)
app.command("context")(narration.context)
app.command("narrate")(narration.narrate)


@app.command("init-db")
def init_db_command() -> None:
    """Create all tables in the configured database."""
    from spatialdm.database.connection import init_db

    try:
        init_db()
    except SQLAlchemyError as e:
        display_error(f"Failed to initialize database: {e}")
        raise typer.Exit(1)
    display_success("Database initialized")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (defaults to LOG_LEVEL setting)"
    ),
) -> None:
    """Spatial DM - spatial queries and narration turns for tabletop sessions.

    Use 'spatialdm init-db' to create tables, then 'spatialdm narrate' to play a turn.
    """
    configure_logging(log_level or get_settings().log_level)


if __name__ == "__main__":
    app()

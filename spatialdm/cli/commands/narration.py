"""Narration commands: intent detection, context preview and turns."""

import asyncio
from typing import Optional

import typer
from sqlalchemy.orm import Session

from spatialdm.cli.display import (
    console,
    display_error,
    display_info,
    display_intent,
    display_narrative,
    display_prompt,
    display_spatial_context,
    display_success,
    display_suggestion,
    progress_spinner,
)
from spatialdm.config import get_settings
from spatialdm.database.connection import get_db_session
from spatialdm.exceptions import InvalidMovementError, SpatialDMError
from spatialdm.gm.context_builder import ContextBuilder
from spatialdm.gm.dungeon_master import DungeonMaster
from spatialdm.gm.prompts import prompt_budget
from spatialdm.llm.exceptions import LLMError
from spatialdm.llm.factory import get_cheap_provider, get_narrator_provider
from spatialdm.parser.movement_intent import detect as detect_intent


def detect(
    text: str = typer.Argument(..., help="Player input to classify"),
) -> None:
    """Classify player text into a movement intent."""
    display_intent(detect_intent(text))


def context(
    session_id: str = typer.Argument(..., help="Session ID"),
    user_input: str = typer.Argument(..., help="Player input for the turn"),
    character: Optional[str] = typer.Option(
        None, "--character", "-c", help="Acting character ID"
    ),
) -> None:
    """Preview the narrator context and system prompt for a turn."""
    settings = get_settings()
    with get_db_session() as db:
        try:
            prompt_context = ContextBuilder(db, settings=settings).build_context(
                session_id, user_input, character
            )
        except SpatialDMError as e:
            display_error(str(e))
            raise typer.Exit(1)

        budget = prompt_budget(prompt_context, settings.context_max_tokens)
        display_prompt(budget.compile(), budget.get_section_breakdown())

        if prompt_context.spatial is not None:
            display_spatial_context(prompt_context.spatial)
        else:
            display_info("No spatial context available")


async def _run_turn(
    db: Session,
    session_id: str,
    user_input: str,
    character_id: str | None,
    commit: bool,
) -> None:
    settings = get_settings()
    dm = DungeonMaster(
        db,
        get_narrator_provider(settings),
        settings=settings,
        summary_provider=get_cheap_provider(settings),
    )

    with progress_spinner("The narrator is thinking..."):
        turn = await dm.generate_response(session_id, user_input, character_id)

    display_narrative(turn.narrative)

    suggestion = turn.movement_suggestion
    if suggestion is None:
        return

    display_suggestion(suggestion)
    if not commit:
        return

    try:
        event = dm.commit_movement(suggestion, session_id)
    except InvalidMovementError as e:
        display_error(str(e))
        return
    display_success(f"Moved {suggestion.character_name} {event.distance:.1f} units")


def narrate(
    session_id: str = typer.Argument(..., help="Session ID"),
    user_input: str = typer.Argument(..., help="Player input for the turn"),
    character: Optional[str] = typer.Option(
        None, "--character", "-c", help="Acting character ID"
    ),
    commit: bool = typer.Option(
        False, "--commit", help="Apply the movement suggestion if it is valid"
    ),
) -> None:
    """Run one narration turn against the configured narrator model."""
    with get_db_session() as db:
        try:
            asyncio.run(_run_turn(db, session_id, user_input, character, commit))
        except SpatialDMError as e:
            display_error(str(e))
            raise typer.Exit(1)
        except LLMError as e:
            display_error(f"Narrator call failed: {e}")
            console.print("[dim]Nothing was saved for this turn.[/dim]")
            raise typer.Exit(1)

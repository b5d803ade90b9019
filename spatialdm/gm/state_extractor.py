"""Rule-based session state extraction from narration.

Heuristic and lossy by nature: regexes pick up location, NPC and quest
mentions from the narrator's prose. Kept apart from context assembly so
it can be replaced (e.g. by structured state deltas from the model)
without touching anything else.
"""

import logging
import re
from typing import Any

from sqlalchemy.orm import Session

from spatialdm.database.models.session import SessionState

logger = logging.getLogger(__name__)

LOCATION_PATTERN = re.compile(
    r"(?:you (?:arrive|enter|reach|find yourself in|are in|stand in|move to))"
    r"\s+(?:a |an |the |)\s*([^.!?]+)",
    re.IGNORECASE,
)
NPC_PATTERN = re.compile(
    r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(?:says|tells|asks|responds|replies|approaches)"
)
QUEST_PATTERN = re.compile(r"(?:quest|mission|task|objective):\s*([^.!?]+)", re.IGNORECASE)

EVENT_MAX_CHARS = 100
MAX_RECENT_EVENTS = 5


def extract_state_updates(
    user_input: str,
    narrative: str,
    existing_events: list[str] | None = None,
    max_events: int = MAX_RECENT_EVENTS,
) -> dict[str, Any]:
    """Derive state changes from one exchange.

    Args:
        user_input: Player text; its first 100 characters become the
            newest recent event.
        narrative: Narrator reply to scan.
        existing_events: Current recent events, newest first.
        max_events: Cap on recent events kept.

    Returns:
        Dict with `recent_events` always set and `current_location`,
        `active_npcs`, `ongoing_quests` set only when found.
    """
    updates: dict[str, Any] = {}

    location = LOCATION_PATTERN.search(narrative)
    if location:
        updates["current_location"] = location.group(1).strip()

    npcs = list(dict.fromkeys(match.group(1) for match in NPC_PATTERN.finditer(narrative)))
    if npcs:
        updates["active_npcs"] = npcs

    quests = [match.group(1).strip() for match in QUEST_PATTERN.finditer(narrative)]
    if quests:
        updates["ongoing_quests"] = quests

    events = [user_input[:EVENT_MAX_CHARS], *(existing_events or [])]
    updates["recent_events"] = events[:max_events]

    return updates


def apply_state_updates(db: Session, session_id: str, updates: dict[str, Any]) -> SessionState:
    """Upsert the session's state row with extracted updates."""
    state = db.query(SessionState).filter(SessionState.session_id == session_id).first()
    if state is None:
        state = SessionState(session_id=session_id)
        db.add(state)

    for key, value in updates.items():
        setattr(state, key, value)

    db.flush()
    logger.debug(f"Updated state for session {session_id}: {sorted(updates)}")
    return state

"""Interpret the narrator model's structured reply.

A reply that is not the expected JSON object is a data-quality problem,
not a program error: the raw text becomes the narrative and no movement
is suggested. The interpreter never calls the spatial query service;
validating a suggestion is the orchestrator's job.
"""

import json
import logging
import re

from pydantic import ValidationError

from spatialdm.gm.schemas import ActingCharacter, MovementClaim, NarrationReply, NarrationResult
from spatialdm.spatial.geometry import Position, distance_3d
from spatialdm.spatial.schemas import MovementSuggestion

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL | re.IGNORECASE)

DEFAULT_ACTION_TYPE = "MOVEMENT"
DEFAULT_REASON = "Movement detected"
ORIGIN = Position(0.0, 0.0, 0.0)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    return match.group(1).strip() if match else stripped


def parse_reply(raw_text: str) -> NarrationReply | None:
    """Parse raw model output into a NarrationReply.

    A malformed movement object is dropped on its own; the narrative is
    kept.

    Returns:
        NarrationReply, or None if the text is not a JSON object with a
        string narrative.
    """
    try:
        data = json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as e:
        logger.warning(f"Narrator reply is not valid JSON ({e}); using raw text")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Narrator reply is JSON {type(data).__name__}, not an object; using raw text")
        return None

    movement = data.pop("movement", None)
    try:
        reply = NarrationReply.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Narrator reply does not match schema: {e.error_count()} errors; using raw text")
        return None

    if movement is not None:
        try:
            reply.movement = MovementClaim.model_validate(movement)
        except ValidationError as e:
            logger.warning(
                f"Narrator movement claim does not match schema: {e.error_count()} errors; ignoring it"
            )
    return reply


class NarrationInterpreter:
    """Turns raw model output into narrative text plus an optional
    provisional movement suggestion."""

    def process_model_reply(
        self, raw_text: str, acting: ActingCharacter | None = None
    ) -> NarrationResult:
        """Interpret one model reply.

        Args:
            raw_text: Text returned by the model.
            acting: Character the movement claim applies to. Without it no
                suggestion can be built.

        Returns:
            NarrationResult; never raises for malformed input.
        """
        reply = parse_reply(raw_text)
        if reply is None:
            return NarrationResult(narrative_text=raw_text)

        claim = reply.movement
        if claim is None or not claim.detected or claim.target_position is None:
            return NarrationResult(narrative_text=reply.narrative)

        if acting is None:
            logger.info("Movement claimed but no acting character is known; ignoring it")
            return NarrationResult(narrative_text=reply.narrative)

        origin = acting.position or ORIGIN
        target = Position(
            x=claim.target_position.x,
            y=claim.target_position.y,
            z=claim.target_position.z,
        )
        suggestion = MovementSuggestion(
            character_id=acting.character_id,
            character_name=claim.character_name or acting.name,
            from_position=origin,
            to_position=target,
            reason=claim.reason or DEFAULT_REASON,
            action_type=(claim.action_type or DEFAULT_ACTION_TYPE).upper(),
            distance=distance_3d(origin, target),
            location_id=acting.location_id,
            target_name=claim.target_name,
        )
        logger.debug(
            f"Movement suggestion for {suggestion.character_name}: "
            f"{suggestion.action_type} {suggestion.distance:.1f} units"
        )
        return NarrationResult(narrative_text=reply.narrative, movement_suggestion=suggestion)

"""Context assembly for narration requests.

Builds a bounded PromptContext from session state, the latest rolling
summary, recent messages, scored knowledge, one tone profile, relevant
mechanics rules and an optional spatial snapshot. Missing ingredients are
normal: each one is simply left out.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spatialdm.config import Settings, get_settings
from spatialdm.database.models.campaign import Campaign, Character
from spatialdm.database.models.enums import ChatRole
from spatialdm.database.models.session import GameSession, Message, SessionState, SessionSummary
from spatialdm.exceptions import SpatialDMError
from spatialdm.gm.relevance import find_relevant_mechanics, score_knowledge, select_tone
from spatialdm.gm.schemas import ChatTurn, PromptContext, SpatialPromptContext, StateSnapshot
from spatialdm.managers.base import BaseManager
from spatialdm.spatial.index import DatabaseSpatialIndex
from spatialdm.spatial.query_service import SpatialQueryService

logger = logging.getLogger(__name__)


def build_state_snapshot(state: SessionState | None, event_limit: int = 5) -> StateSnapshot | None:
    """Copy a SessionState row into a StateSnapshot.

    Recent events are kept verbatim, newest first, up to event_limit.
    Non-list/non-dict JSON values are treated as absent.
    """
    if state is None:
        return None

    def as_list(value) -> list:
        return list(value) if isinstance(value, list) else []

    return StateSnapshot(
        current_location=state.current_location or None,
        location_id=state.location_id,
        active_npcs=[str(npc) for npc in as_list(state.active_npcs)],
        ongoing_quests=[str(quest) for quest in as_list(state.ongoing_quests)],
        party_conditions=dict(state.party_conditions)
        if isinstance(state.party_conditions, dict)
        else {},
        recent_events=[str(event) for event in as_list(state.recent_events)][:event_limit],
    )


class ContextBuilder(BaseManager):
    """Assembles the PromptContext for one narration request.

    Example:
        builder = ContextBuilder(db)
        context = builder.build_context(session_id, "I charge the orc!")
    """

    def __init__(
        self,
        db: Session,
        query_service: SpatialQueryService | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(db)
        self.settings = settings or get_settings()
        self.query_service = query_service or SpatialQueryService(
            DatabaseSpatialIndex(db), settings=self.settings
        )

    def build_context(
        self,
        session_id: str,
        user_input: str,
        character_id: str | None = None,
    ) -> PromptContext:
        """Assemble the bounded context for a request.

        Args:
            session_id: Session being narrated.
            user_input: Player text for this turn.
            character_id: Character whose spatial view to include; defaults
                to the campaign's earliest-created character.

        Returns:
            PromptContext with whatever ingredients are available.

        Raises:
            NotFoundError: If the session, or an explicit character_id,
                does not exist.
        """
        session = self._get_or_raise(GameSession, session_id, "session")
        campaign = session.campaign

        snapshot = build_state_snapshot(session.state, self.settings.recent_event_limit)
        summary = self.latest_summary(session_id)
        tone = select_tone(campaign.tone_profiles, snapshot)

        context = PromptContext(
            session_id=session_id,
            campaign_name=campaign.name,
            user_input=user_input,
            state=snapshot,
            summary=summary.summary if summary is not None else None,
            recent_messages=self.recent_messages(session_id),
            knowledge=score_knowledge(
                campaign.knowledge, user_input, snapshot, limit=self.settings.knowledge_limit
            ),
            tone_name=tone.name if tone is not None else None,
            tone_guidelines=tone.tone_rules if tone is not None else None,
            mechanics=find_relevant_mechanics(
                campaign.mechanics_rules, user_input, limit=self.settings.mechanics_limit
            ),
            spatial=self.spatial_context(campaign, character_id),
            ai_guidelines=campaign.ai_guidelines,
        )

        logger.debug(
            f"Built context for session {session_id}: "
            f"{len(context.recent_messages)} messages, {len(context.knowledge)} knowledge, "
            f"{len(context.mechanics)} mechanics, spatial={'yes' if context.spatial else 'no'}"
        )
        return context

    def latest_summary(self, session_id: str) -> SessionSummary | None:
        """Most recent rolling summary by message_range_end."""
        return (
            self.db.query(SessionSummary)
            .filter(SessionSummary.session_id == session_id)
            .order_by(SessionSummary.message_range_end.desc())
            .first()
        )

    def recent_messages(self, session_id: str) -> list[ChatTurn]:
        """Last N non-system messages, oldest first."""
        rows = (
            self.db.query(Message)
            .filter(Message.session_id == session_id, Message.role != ChatRole.SYSTEM)
            .order_by(Message.created_at.desc())
            .limit(self.settings.recent_message_limit)
            .all()
        )
        return [ChatTurn(role=row.role, content=row.content) for row in reversed(rows)]

    def messages_since_last_summary(self, session_id: str) -> int:
        """Number of stored messages not yet covered by a summary."""
        total = (
            self.db.query(func.count(Message.id)).filter(Message.session_id == session_id).scalar()
        ) or 0
        summary = self.latest_summary(session_id)
        if summary is None:
            return total
        return total - summary.message_range_end

    def spatial_context(
        self, campaign: Campaign, character_id: str | None = None
    ) -> SpatialPromptContext | None:
        """Spatial block for the prompt, or None when unavailable.

        Missing position or location data is logged and the block is
        omitted.

        Raises:
            NotFoundError: If an explicit character_id does not resolve.
        """
        character = self._resolve_character(campaign, character_id)
        if character is None:
            return None

        try:
            spatial = self.query_service.build_spatial_context(character.id)
        except (SpatialDMError, SQLAlchemyError) as e:
            logger.warning(f"Spatial context unavailable for campaign {campaign.id}: {e}")
            return None

        if spatial is None:
            return None

        return SpatialPromptContext(
            character_id=character.id,
            character_name=character.name,
            location_id=spatial.location_id,
            location_name=spatial.location_name,
            unit_type=spatial.unit_type,
            position=spatial.position,
            nearby_characters=spatial.nearby_characters,
            nearby_features=spatial.nearby_features[: self.settings.feature_limit],
            available_actions=spatial.available_actions[: self.settings.action_limit],
        )

    def _resolve_character(self, campaign: Campaign, character_id: str | None) -> Character | None:
        if character_id is not None:
            character = self._get_or_raise(Character, character_id, "character")
            if character.campaign_id != campaign.id:
                logger.warning(
                    f"Character {character_id} is not part of campaign {campaign.id}"
                )
                return None
            return character

        return (
            self.db.query(Character)
            .filter(Character.campaign_id == campaign.id)
            .order_by(Character.created_at, Character.id)
            .first()
        )

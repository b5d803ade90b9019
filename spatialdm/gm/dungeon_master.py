"""Narration turn orchestration.

One call to DungeonMaster.generate_response runs a full turn: session
checks, context assembly, the narrator call, reply interpretation,
re-validation of any movement claim, message persistence, state
extraction and optional summarization. Movement is never applied here;
callers confirm a suggestion with commit_movement.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spatialdm.config import Settings, get_settings
from spatialdm.database.models.enums import ChatRole, SessionStatus
from spatialdm.database.models.session import GameSession, Message
from spatialdm.database.models.spatial import MovementEvent
from spatialdm.exceptions import InvalidMovementError, SessionInactiveError
from spatialdm.gm.context_builder import ContextBuilder
from spatialdm.gm.interpreter import NarrationInterpreter
from spatialdm.gm.prompts import build_message_history, build_system_prompt
from spatialdm.gm.schemas import ActingCharacter, TurnResult
from spatialdm.gm.state_extractor import apply_state_updates, extract_state_updates
from spatialdm.gm.summarizer import SessionSummarizer
from spatialdm.llm.base import LLMProvider
from spatialdm.llm.exceptions import LLMError
from spatialdm.llm.response_types import LLMResponse
from spatialdm.managers.base import BaseManager
from spatialdm.managers.location_manager import LocationManager
from spatialdm.parser.movement_intent import MovementActionType, MovementIntent, MovementIntentDetector
from spatialdm.spatial.index import DatabaseSpatialIndex
from spatialdm.spatial.query_service import SpatialQueryService
from spatialdm.spatial.schemas import MovementSuggestion

logger = logging.getLogger(__name__)

# Words in a MELEE reason that mean the character is running
RUNNING_WORDS = ("charge", "rush")


class DungeonMaster(BaseManager):
    """Runs narration turns for game sessions.

    Example:
        dm = DungeonMaster(db, get_narrator_provider())
        turn = await dm.generate_response(session_id, "I charge at the orc!")
        if turn.movement_suggestion and turn.movement_suggestion.is_valid:
            dm.commit_movement(turn.movement_suggestion, session_id)
    """

    def __init__(
        self,
        db: Session,
        llm_provider: LLMProvider,
        settings: Settings | None = None,
        summary_provider: LLMProvider | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            db: Database session.
            llm_provider: Narrator model.
            settings: Optional settings override.
            summary_provider: Model for rolling summaries (defaults to the
                narrator provider).
        """
        super().__init__(db)
        self.llm_provider = llm_provider
        self.settings = settings or get_settings()
        self._summary_provider = summary_provider
        self.detector = MovementIntentDetector()
        self.interpreter = NarrationInterpreter()

        self._query_service: SpatialQueryService | None = None
        self._context_builder: ContextBuilder | None = None
        self._summarizer: SessionSummarizer | None = None
        self._location_manager: LocationManager | None = None

    # =========================================================================
    # Lazy collaborators
    # =========================================================================

    @property
    def query_service(self) -> SpatialQueryService:
        if self._query_service is None:
            self._query_service = SpatialQueryService(
                DatabaseSpatialIndex(self.db), settings=self.settings
            )
        return self._query_service

    @property
    def context_builder(self) -> ContextBuilder:
        if self._context_builder is None:
            self._context_builder = ContextBuilder(
                self.db, query_service=self.query_service, settings=self.settings
            )
        return self._context_builder

    @property
    def summarizer(self) -> SessionSummarizer:
        if self._summarizer is None:
            self._summarizer = SessionSummarizer(
                self.db, self._summary_provider or self.llm_provider, settings=self.settings
            )
        return self._summarizer

    @property
    def location_manager(self) -> LocationManager:
        if self._location_manager is None:
            self._location_manager = LocationManager(self.db, settings=self.settings)
        return self._location_manager

    # =========================================================================
    # Turn
    # =========================================================================

    async def generate_response(
        self,
        session_id: str,
        user_input: str,
        character_id: str | None = None,
    ) -> TurnResult:
        """Run one narration turn.

        Args:
            session_id: Active session to narrate.
            user_input: Player text.
            character_id: Acting character (defaults to the campaign's
                earliest-created character).

        Returns:
            TurnResult with narrative and a re-validated movement suggestion.

        Raises:
            NotFoundError: If the session or the acting character does not exist.
            SessionInactiveError: If the session is not active.
            LLMError: If the narrator call fails (propagated untouched).
        """
        session = self._get_or_raise(GameSession, session_id, "session")
        if session.status != SessionStatus.ACTIVE:
            raise SessionInactiveError(session_id, session.status.value)

        intent = self.detector.detect(user_input)
        context = self.context_builder.build_context(session_id, user_input, character_id)

        prompt = build_system_prompt(context, max_tokens=self.settings.context_max_tokens)
        if prompt.was_trimmed:
            logger.info(f"System prompt trimmed, dropped sections: {prompt.sections_excluded}")

        response = await self.llm_provider.complete(
            messages=build_message_history(context),
            system_prompt=prompt.content,
            max_tokens=self.settings.max_tokens_per_request,
            temperature=self.settings.narration_temperature,
            json_mode=True,
        )
        if response.was_truncated:
            logger.warning(
                f"Narrator reply stopped at max_tokens ({self.settings.max_tokens_per_request}); "
                "it may not parse"
            )

        result = self.interpreter.process_model_reply(
            response.content, ActingCharacter.from_context(context)
        )
        suggestion = result.movement_suggestion
        if suggestion is not None:
            self.review_suggestion(suggestion)
            if intent.detected and intent.action_type and suggestion.action_type != intent.action_type.value:
                logger.debug(
                    f"Narrator action {suggestion.action_type} differs from keyword "
                    f"intent {intent.action_type.value}"
                )

        self._save_exchange(session_id, user_input, result.narrative_text, response, suggestion, intent)
        self._update_state(session, user_input, result.narrative_text)
        await self._summarize_if_needed(session_id)

        return TurnResult(
            narrative=result.narrative_text,
            movement_suggestion=suggestion,
            intent=intent,
            context=context,
            usage=response.usage,
        )

    def review_suggestion(self, suggestion: MovementSuggestion) -> MovementSuggestion:
        """Re-validate a provisional suggestion in place.

        Sets is_valid and issues from validate_movement, and attaches
        turn-movement info with a warning when the move takes more than
        one turn. MELEE moves described as a charge or rush use
        the running speed multiplier.
        """
        if suggestion.location_id is None:
            suggestion.is_valid = False
            suggestion.validation_issues = ["Character has no location"]
            return suggestion

        validation = self.query_service.validate_movement(
            suggestion.from_position, suggestion.to_position, suggestion.location_id
        )
        suggestion.is_valid = validation.is_valid
        # Warnings already name any blocking features
        issues = list(validation.warnings)

        multiplier = 1.0
        reason = suggestion.reason.lower()
        if suggestion.action_type == MovementActionType.MELEE.value and any(
            word in reason for word in RUNNING_WORDS
        ):
            multiplier = self.settings.running_speed_multiplier

        turn = self.query_service.turn_movement(
            suggestion.character_id, suggestion.distance, multiplier
        )
        suggestion.turn_movement = turn
        if not turn.can_reach_in_one_turn:
            speed_text = ""
            if multiplier > 1.0:
                speed_text = f" ({multiplier:g}x speed = {turn.effective_rate:g}m/turn)"
            issues.append(
                f"Cannot reach in one turn (requires {turn.turns_required} turns "
                f"at {turn.base_rate:g}m/turn{speed_text})"
            )

        suggestion.validation_issues = issues
        return suggestion

    def commit_movement(
        self, suggestion: MovementSuggestion, session_id: str | None = None
    ) -> MovementEvent:
        """Apply a reviewed suggestion.

        The destination is validated again against the current positions
        before it is written.

        Raises:
            InvalidMovementError: If the suggestion is invalid.
        """
        if not suggestion.is_valid:
            raise InvalidMovementError(
                f"Cannot commit invalid movement for {suggestion.character_name}",
                suggestion.validation_issues,
            )
        return self.location_manager.commit_movement(
            suggestion.character_id,
            suggestion.to_position,
            session_id=session_id,
            action_type=suggestion.action_type,
            reason=suggestion.reason,
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def _save_exchange(
        self,
        session_id: str,
        user_input: str,
        narrative: str,
        response: LLMResponse,
        suggestion: MovementSuggestion | None,
        intent: MovementIntent,
    ) -> None:
        now = datetime.utcnow()
        metadata: dict = {"model": response.model, "finish_reason": response.finish_reason}
        if response.usage is not None:
            metadata["prompt_tokens"] = response.usage.prompt_tokens
            metadata["completion_tokens"] = response.usage.completion_tokens
        if response.was_truncated:
            metadata["truncated"] = True
        if suggestion is not None:
            metadata["movement_suggestion"] = suggestion.to_metadata()
        if intent.detected:
            metadata["intent"] = {
                "action_type": intent.action_type.value if intent.action_type else None,
                "keywords": intent.matched_keywords,
            }

        self.db.add(
            Message(session_id=session_id, role=ChatRole.USER, content=user_input, created_at=now)
        )
        self.db.add(
            Message(
                session_id=session_id,
                role=ChatRole.ASSISTANT,
                content=narrative,
                token_count=response.usage.total_tokens if response.usage else None,
                message_metadata=metadata,
                # Keeps assistant after user when ordering by created_at
                created_at=now + timedelta(microseconds=1),
            )
        )
        self.db.flush()

    def _update_state(self, session: GameSession, user_input: str, narrative: str) -> None:
        existing = list(session.state.recent_events or []) if session.state else []
        updates = extract_state_updates(
            user_input, narrative, existing, max_events=self.settings.recent_event_limit
        )
        apply_state_updates(self.db, session.id, updates)
        # The row may have just been created; reload the relationship on next access
        self.db.expire(session, ["state"])

    async def _summarize_if_needed(self, session_id: str) -> None:
        try:
            created = await self.summarizer.auto_summarize_if_needed(session_id)
        except (LLMError, SQLAlchemyError) as e:
            logger.error(f"Auto-summarization failed for session {session_id}: {e}")
            return
        if created:
            logger.info(f"Created rolling summary for session {session_id}")

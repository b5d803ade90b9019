"""Rolling session summaries.

Each summary covers the messages after the previous summary. It combines
an LLM-written narrative with rule-based key events; when the LLM call
fails a rule-based narrative is used instead.
"""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from spatialdm.config import Settings, get_settings
from spatialdm.database.models.enums import ChatRole
from spatialdm.database.models.session import Message, SessionSummary
from spatialdm.llm.base import LLMProvider
from spatialdm.llm.exceptions import LLMError
from spatialdm.llm.message_types import Message as LLMMessage
from spatialdm.managers.base import BaseManager

logger = logging.getLogger(__name__)


SUMMARY_SYSTEM = """You are a helpful assistant that creates concise summaries of tabletop RPG sessions.
Focus on the narrative flow, character development, and story progression.
Keep the summary under 200 words. Write in past tense."""

SUMMARY_PROMPT = """Please summarize the following RPG session exchange:

{conversation}"""

MAX_KEY_EVENTS = 10
MAX_EVENT_CHARS = 150
FALLBACK_ACTION_COUNT = 5


@dataclass
class KeyEvent:
    """A notable event picked out of a message by pattern."""

    type: str
    description: str


# (event type, detection pattern, sentence keywords, assistant-only)
KEY_EVENT_RULES: tuple[tuple[str, re.Pattern, str, bool], ...] = (
    ("dice_roll", re.compile(r"\b(?:roll|rolled|rolls)\b.*\bd\d+\b", re.IGNORECASE), "roll", False),
    (
        "combat",
        re.compile(r"\b(?:attack|damage|hit|miss|defeat|kill|wound|injure|strike)\b", re.IGNORECASE),
        "attack|damage|hit",
        False,
    ),
    (
        "decision",
        re.compile(
            r"\b(?:decide|choose|pick|select|agree to|refuse to|accept|decline)\b", re.IGNORECASE
        ),
        "decide|choose",
        False,
    ),
    (
        "discovery",
        re.compile(r"\b(?:find|discover|locate|uncover|reveal|notice|spot|see)\b", re.IGNORECASE),
        "find|discover",
        False,
    ),
    (
        "dialogue",
        re.compile(r"\b(?:says|tells|asks|responds|replies|whispers)\b", re.IGNORECASE),
        "says|tells|asks",
        True,
    ),
)


def extract_sentence(text: str, keywords: str) -> str:
    """First sentence containing one of the `|`-separated keywords, max 150 chars.

    Falls back to the start of the text.
    """
    match = re.search(rf"[^.!?]*\b(?:{keywords})\b[^.!?]*[.!?]", text, re.IGNORECASE)
    if match:
        return match.group(0).strip()[:MAX_EVENT_CHARS]
    return text[:MAX_EVENT_CHARS]


def extract_key_events(messages: Sequence[Message]) -> list[KeyEvent]:
    """Rule-based key events, in message order, capped at 10."""
    events: list[KeyEvent] = []
    for message in messages:
        for event_type, pattern, keywords, assistant_only in KEY_EVENT_RULES:
            if assistant_only and message.role != ChatRole.ASSISTANT:
                continue
            if pattern.search(message.content):
                events.append(KeyEvent(event_type, extract_sentence(message.content, keywords)))
    return events[:MAX_KEY_EVENTS]


def fallback_summary(messages: Sequence[Message]) -> str:
    """Rule-based narrative used when the LLM is unavailable."""
    actions = [m.content for m in messages if m.role == ChatRole.USER][:FALLBACK_ACTION_COUNT]
    return (
        f"The session included {len(messages)} exchanges. "
        f"Key player actions: {'; '.join(actions)}"
    )


def combine_summary(narrative: str, events: Sequence[KeyEvent]) -> str:
    summary = narrative
    if events:
        summary += "\n\nKey Events:\n"
        for event in events:
            summary += f"- [{event.type}] {event.description}\n"
    return summary


class SessionSummarizer(BaseManager):
    """Creates and reads rolling session summaries.

    Message ranges are 1-based positions in the session's message order;
    a new summary starts right after the previous one's range end.
    """

    def __init__(
        self,
        db: Session,
        llm_provider: LLMProvider,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(db)
        self.llm_provider = llm_provider
        self.settings = settings or get_settings()

    def latest_summary(self, session_id: str) -> SessionSummary | None:
        return (
            self.db.query(SessionSummary)
            .filter(SessionSummary.session_id == session_id)
            .order_by(SessionSummary.message_range_end.desc())
            .first()
        )

    def summaries(self, session_id: str) -> list[SessionSummary]:
        """All summaries of a session, oldest range first."""
        return (
            self.db.query(SessionSummary)
            .filter(SessionSummary.session_id == session_id)
            .order_by(SessionSummary.message_range_end)
            .all()
        )

    def _message_count(self, session_id: str) -> int:
        return (
            self.db.query(func.count(Message.id)).filter(Message.session_id == session_id).scalar()
        ) or 0

    def needs_summarization(self, session_id: str) -> bool:
        """True once enough messages have accumulated since the last summary."""
        total = self._message_count(session_id)
        latest = self.latest_summary(session_id)
        covered = latest.message_range_end if latest is not None else 0
        return total - covered >= self.settings.auto_summarize_threshold

    async def generate_summary(self, session_id: str) -> SessionSummary | None:
        """Summarize messages not yet covered by a summary.

        Returns:
            The new SessionSummary, or None when there is nothing new.
        """
        latest = self.latest_summary(session_id)
        start = latest.message_range_end + 1 if latest is not None else 1

        all_messages = (
            self.db.query(Message)
            .filter(Message.session_id == session_id)
            .order_by(Message.created_at, Message.id)
            .all()
        )
        pending = all_messages[start - 1 :]
        if not pending:
            return None

        events = extract_key_events(pending)
        narrative = await self._narrative_summary(pending)

        summary = SessionSummary(
            session_id=session_id,
            message_range_start=start,
            message_range_end=len(all_messages),
            summary=combine_summary(narrative, events),
            key_events=[asdict(event) for event in events],
        )
        self.db.add(summary)
        self.db.flush()

        logger.info(
            f"Summarized messages {start}-{len(all_messages)} of session {session_id} "
            f"({len(events)} key events)"
        )
        return summary

    async def auto_summarize_if_needed(self, session_id: str) -> bool:
        """Generate a summary when the threshold is met.

        Returns:
            True if a summary was created.
        """
        if not self.needs_summarization(session_id):
            return False
        return await self.generate_summary(session_id) is not None

    async def _narrative_summary(self, messages: Sequence[Message]) -> str:
        conversation = "\n\n".join(
            f"{'Player' if m.role == ChatRole.USER else 'DM'}: {m.content}" for m in messages
        )
        try:
            response = await self.llm_provider.complete(
                messages=[LLMMessage.user(SUMMARY_PROMPT.format(conversation=conversation))],
                system_prompt=SUMMARY_SYSTEM,
                max_tokens=self.settings.summary_max_tokens,
                temperature=0.5,
            )
        except LLMError as e:
            logger.warning(f"LLM summary failed, using rule-based summary: {e}")
            return fallback_summary(messages)

        return response.content.strip() or fallback_summary(messages)

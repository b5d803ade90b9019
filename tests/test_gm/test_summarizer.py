"""Tests for rolling session summaries."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from spatialdm.config import Settings
from spatialdm.database.models.enums import ChatRole
from spatialdm.database.models.session import Message
from spatialdm.gm.summarizer import (
    KeyEvent,
    SessionSummarizer,
    combine_summary,
    extract_key_events,
    extract_sentence,
    fallback_summary,
)
from spatialdm.llm.exceptions import ProviderError
from spatialdm.llm.response_types import LLMResponse
from tests.factories import create_messages, create_summary


@pytest.fixture
def provider():
    mock = MagicMock()
    mock.complete = AsyncMock(return_value=LLMResponse(content="The party fought an orc."))
    return mock


@pytest.fixture
def summarizer(db_session, provider, test_settings) -> SessionSummarizer:
    return SessionSummarizer(db_session, provider, settings=test_settings)


def _exchange(count: int) -> list[tuple[ChatRole, str]]:
    return [
        (ChatRole.USER, f"I act {n}.") if n % 2 == 0 else (ChatRole.ASSISTANT, f"It happens {n}.")
        for n in range(count)
    ]


class TestKeyEvents:
    """Tests for the rule-based event extraction."""

    def test_dice_and_combat(self):
        messages = [Message(role=ChatRole.USER, content="I roll a d20 to attack the orc.")]

        events = extract_key_events(messages)

        assert [e.type for e in events] == ["dice_roll", "combat"]
        assert events[0].description == "I roll a d20 to attack the orc."

    def test_dialogue_only_from_assistant(self):
        messages = [
            Message(role=ChatRole.USER, content="Mira says nothing."),
            Message(role=ChatRole.ASSISTANT, content="Mira says hello."),
        ]

        events = extract_key_events(messages)

        assert [(e.type, e.description) for e in events] == [("dialogue", "Mira says hello.")]

    def test_capped_at_ten(self):
        messages = [
            Message(role=ChatRole.USER, content="I attack and find a gem.") for _ in range(8)
        ]

        assert len(extract_key_events(messages)) == 10

    def test_extract_sentence_falls_back_to_text_start(self):
        assert extract_sentence("no keyword here", "roll") == "no keyword here"

    def test_extract_sentence_picks_matching_sentence(self):
        text = "The door creaks. You decide to enter! Darkness."

        assert extract_sentence(text, "decide|choose") == "You decide to enter!"


class TestSummaryText:
    def test_fallback_summary(self):
        messages = [
            Message(role=ChatRole.USER, content="I open the door"),
            Message(role=ChatRole.ASSISTANT, content="It creaks."),
            Message(role=ChatRole.USER, content="I step inside"),
        ]

        assert fallback_summary(messages) == (
            "The session included 3 exchanges. Key player actions: I open the door; I step inside"
        )

    def test_combine_summary(self):
        text = combine_summary("Story.", [KeyEvent("combat", "I hit it.")])

        assert text == "Story.\n\nKey Events:\n- [combat] I hit it.\n"

    def test_combine_without_events(self):
        assert combine_summary("Story.", []) == "Story."


class TestSessionSummarizer:
    """Tests for SessionSummarizer."""

    def test_needs_summarization_threshold(self, db_session, summarizer, game_session):
        create_messages(db_session, game_session, _exchange(14))
        assert not summarizer.needs_summarization(game_session.id)

        create_messages(db_session, game_session, [(ChatRole.USER, "one more")])
        assert summarizer.needs_summarization(game_session.id)

    def test_threshold_counts_from_last_summary(self, db_session, summarizer, game_session):
        create_messages(db_session, game_session, _exchange(20))
        create_summary(db_session, game_session, message_range_end=10)

        assert not summarizer.needs_summarization(game_session.id)

    @pytest.mark.asyncio
    async def test_generate_summary(self, db_session, summarizer, provider, game_session):
        create_messages(
            db_session,
            game_session,
            [(ChatRole.USER, "I attack the orc."), (ChatRole.ASSISTANT, "You hit it hard.")],
        )

        summary = await summarizer.generate_summary(game_session.id)

        assert summary.message_range_start == 1
        assert summary.message_range_end == 2
        assert summary.summary.startswith("The party fought an orc.\n\nKey Events:")
        assert summary.key_events[0] == {"type": "combat", "description": "I attack the orc."}
        provider.complete.assert_awaited_once()
        prompt = provider.complete.call_args.kwargs["messages"][0].content
        assert "Player: I attack the orc." in prompt
        assert "DM: You hit it hard." in prompt

    @pytest.mark.asyncio
    async def test_next_summary_starts_after_previous(self, db_session, summarizer, game_session):
        create_messages(db_session, game_session, _exchange(12))
        create_summary(db_session, game_session, message_range_end=10)

        summary = await summarizer.generate_summary(game_session.id)

        assert (summary.message_range_start, summary.message_range_end) == (11, 12)
        assert [s.message_range_end for s in summarizer.summaries(game_session.id)] == [10, 12]

    @pytest.mark.asyncio
    async def test_nothing_new(self, db_session, summarizer, provider, game_session):
        create_messages(db_session, game_session, _exchange(2))
        create_summary(db_session, game_session, message_range_start=1, message_range_end=2)

        assert await summarizer.generate_summary(game_session.id) is None
        provider.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_llm_failure_uses_fallback(self, db_session, summarizer, provider, game_session):
        provider.complete.side_effect = ProviderError("boom", is_retryable=True)
        create_messages(db_session, game_session, [(ChatRole.USER, "I wait.")])

        summary = await summarizer.generate_summary(game_session.id)

        assert summary.summary.startswith(
            "The session included 1 exchanges. Key player actions: I wait."
        )

    @pytest.mark.asyncio
    async def test_empty_llm_reply_uses_fallback(
        self, db_session, summarizer, provider, game_session
    ):
        provider.complete.return_value = LLMResponse(content="   ")
        create_messages(db_session, game_session, [(ChatRole.USER, "I wait.")])

        summary = await summarizer.generate_summary(game_session.id)

        assert summary.summary.startswith("The session included 1 exchanges.")

    @pytest.mark.asyncio
    async def test_auto_summarize(self, db_session, provider, game_session):
        summarizer = SessionSummarizer(
            db_session, provider, settings=Settings(_env_file=None, auto_summarize_threshold=4)
        )
        create_messages(db_session, game_session, _exchange(3))
        assert await summarizer.auto_summarize_if_needed(game_session.id) is False

        create_messages(db_session, game_session, [(ChatRole.ASSISTANT, "Later.")])
        assert await summarizer.auto_summarize_if_needed(game_session.id) is True
        assert summarizer.latest_summary(game_session.id).message_range_end == 4

"""Tests for LLM message and response types."""

import pytest
from dataclasses import FrozenInstanceError

from spatialdm.llm.message_types import Message, MessageRole
from spatialdm.llm.response_types import LLMResponse


class TestMessageRole:
    """Tests for MessageRole enum."""

    def test_role_is_string_enum(self):
        """Test that MessageRole is a string enum."""
        assert isinstance(MessageRole.USER, str)
        assert MessageRole.USER == "user"


class TestMessage:
    """Tests for Message factory methods."""

    def test_system(self):
        message = Message.system("You are the DM.")
        assert message.role == MessageRole.SYSTEM
        assert message.content == "You are the DM."

    def test_user_with_name(self):
        message = Message.user("I charge!", name="Aria")
        assert message.role == MessageRole.USER
        assert message.name == "Aria"

    def test_assistant(self):
        assert Message.assistant("The orc snarls.").role == MessageRole.ASSISTANT

    def test_immutable(self):
        """Test that messages cannot be modified."""
        message = Message.user("Hello")
        with pytest.raises(FrozenInstanceError):
            message.content = "Changed"


class TestLLMResponse:
    """Tests for LLMResponse."""

    def test_defaults(self):
        response = LLMResponse(content="Hi")
        assert response.finish_reason == "stop"
        assert response.usage is None
        assert not response.was_truncated

    @pytest.mark.parametrize("reason", ["length", "max_tokens"])
    def test_truncated(self, reason):
        assert LLMResponse(content="Hi", finish_reason=reason).was_truncated

    def test_end_turn_is_not_truncated(self):
        """Anthropic reports a normal stop as end_turn."""
        assert not LLMResponse(content="Hi", finish_reason="end_turn").was_truncated

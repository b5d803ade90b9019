"""LLM message type definitions.

Immutable dataclasses for chat messages sent to a provider.
"""

from dataclasses import dataclass
from enum import Enum


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A message in a conversation.

    Attributes:
        role: Who sent the message (system, user, assistant).
        content: Text content.
        name: Optional name for the participant.
    """

    role: MessageRole
    content: str = ""
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> "Message":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str, name: str | None = None) -> "Message":
        """Create a user message.

        Args:
            content: User's message text.
            name: Optional name for the user.

        Returns:
            A Message with role=USER.
        """
        return cls(role=MessageRole.USER, content=content, name=name)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content)

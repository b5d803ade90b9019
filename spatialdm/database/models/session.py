"""Game session, message, state and summary models."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatialdm.database.models.base import Base, IdMixin, TimestampMixin
from spatialdm.database.models.enums import ChatRole, SessionStatus

if TYPE_CHECKING:
    from spatialdm.database.models.campaign import Campaign
    from spatialdm.database.models.spatial import Location


class GameSession(Base, IdMixin, TimestampMixin):
    """A play session within a campaign."""

    __tablename__ = "game_sessions"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus, values_callable=lambda obj: [e.value for e in obj]),
        default=SessionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    campaign: Mapped["Campaign"] = relationship(back_populates="sessions")
    messages: Mapped[list["Message"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )
    state: Mapped["SessionState | None"] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        uselist=False,
    )
    summaries: Mapped[list["SessionSummary"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionSummary.message_range_end",
    )

    def __repr__(self) -> str:
        return f"<GameSession {self.name} ({self.status.value})>"


class Message(Base, IdMixin):
    """A single exchange in a session transcript."""

    __tablename__ = "messages"

    session_id: Mapped[str] = mapped_column(
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[ChatRole] = mapped_column(
        Enum(ChatRole, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    message_metadata: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        comment="Model name, usage and movement suggestion for assistant replies",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )

    session: Mapped["GameSession"] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        return f"<Message {self.role.value}: {self.content[:30]}>"


class SessionState(Base, IdMixin, TimestampMixin):
    """Rolling snapshot of the narrative situation for a session.

    List/map columns are plain JSON maintained by the state extractor.
    """

    __tablename__ = "session_states"

    session_id: Mapped[str] = mapped_column(
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    current_location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location_id: Mapped[str | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    active_npcs: Mapped[list | None] = mapped_column(JSON, nullable=True)
    ongoing_quests: Mapped[list | None] = mapped_column(JSON, nullable=True)
    party_conditions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    recent_events: Mapped[list | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Newest first, at most five entries",
    )

    session: Mapped["GameSession"] = relationship(back_populates="state")
    location: Mapped["Location | None"] = relationship()


class SessionSummary(Base, IdMixin):
    """Stored rolling summary covering a range of session messages."""

    __tablename__ = "session_summaries"

    session_id: Mapped[str] = mapped_column(
        ForeignKey("game_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    message_range_start: Mapped[int] = mapped_column(Integer, nullable=False)
    message_range_end: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_events: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    session: Mapped["GameSession"] = relationship(back_populates="summaries")

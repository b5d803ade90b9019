"""Campaign and character models."""

from typing import TYPE_CHECKING

from sqlalchemy import Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatialdm.database.models.base import Base, IdMixin, TimestampMixin

if TYPE_CHECKING:
    from spatialdm.database.models.knowledge import (
        KnowledgeEntry,
        MechanicsRule,
        ToneProfile,
    )
    from spatialdm.database.models.session import GameSession
    from spatialdm.database.models.spatial import (
        CharacterPosition,
        Location,
        MovementRule,
    )


class Campaign(Base, IdMixin, TimestampMixin):
    """A tabletop campaign: the scope for characters, knowledge and rules."""

    __tablename__ = "campaigns"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    world_settings: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_guidelines: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    characters: Mapped[list["Character"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
        order_by="Character.created_at",
    )
    sessions: Mapped[list["GameSession"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
    locations: Mapped[list["Location"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
    movement_rules: Mapped[list["MovementRule"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
    knowledge: Mapped[list["KnowledgeEntry"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
    tone_profiles: Mapped[list["ToneProfile"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )
    mechanics_rules: Mapped[list["MechanicsRule"]] = relationship(
        back_populates="campaign",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Campaign {self.name}>"


class Character(Base, IdMixin, TimestampMixin):
    """A player or non-player character belonging to a campaign."""

    __tablename__ = "characters"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    race: Mapped[str | None] = mapped_column(String(100), nullable=True)
    character_class: Mapped[str | None] = mapped_column(String(100), nullable=True)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    backstory: Mapped[str | None] = mapped_column(Text, nullable=True)

    base_movement_rate: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Distance per turn (null = settings.default_movement_rate)",
    )

    # Relationships
    campaign: Mapped["Campaign"] = relationship(back_populates="characters")
    position: Mapped["CharacterPosition | None"] = relationship(
        back_populates="character",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<Character {self.name}>"

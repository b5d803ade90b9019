"""Campaign knowledge, tone and mechanics models."""

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatialdm.database.models.base import Base, IdMixin, TimestampMixin
from spatialdm.database.models.enums import KnowledgeCategory, MechanicsCategory

if TYPE_CHECKING:
    from spatialdm.database.models.campaign import Campaign


class KnowledgeEntry(Base, IdMixin, TimestampMixin):
    """A piece of campaign lore that may be fed to the narrator."""

    __tablename__ = "knowledge_entries"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[KnowledgeCategory] = mapped_column(
        Enum(KnowledgeCategory, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    keywords: Mapped[list | None] = mapped_column(JSON, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    campaign: Mapped["Campaign"] = relationship(back_populates="knowledge")

    def __repr__(self) -> str:
        return f"<KnowledgeEntry {self.title} ({self.category.value})>"


class ToneProfile(Base, IdMixin, TimestampMixin):
    """Narration tone rules, optionally gated by conditions.

    Recognized condition keys are `location` (current location name
    equality) and `npc_present` (an active NPC name equality). Any other key
    is stored but ignored when matching.
    """

    __tablename__ = "tone_profiles"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    conditions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    tone_rules: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    campaign: Mapped["Campaign"] = relationship(back_populates="tone_profiles")

    def __repr__(self) -> str:
        return f"<ToneProfile {self.name} (priority {self.priority})>"


class MechanicsRule(Base, IdMixin, TimestampMixin):
    """A game-mechanics rule included only when the player input needs it."""

    __tablename__ = "mechanics_rules"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[MechanicsCategory] = mapped_column(
        Enum(MechanicsCategory, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    keywords: Mapped[list | None] = mapped_column(JSON, nullable=True)

    campaign: Mapped["Campaign"] = relationship(back_populates="mechanics_rules")

    def __repr__(self) -> str:
        return f"<MechanicsRule {self.title} ({self.category.value})>"

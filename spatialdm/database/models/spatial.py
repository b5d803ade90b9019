"""Spatial models: locations, scenery features, positions and movement rules."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatialdm.database.models.base import Base, IdMixin, TimestampMixin
from spatialdm.database.models.enums import CoverLevel, FeatureType, InteractionType

if TYPE_CHECKING:
    from spatialdm.database.models.campaign import Campaign, Character


class Location(Base, IdMixin, TimestampMixin):
    """A named axis-aligned region that scopes positions and features.

    Bounds satisfy min <= max on every axis (checked by LocationManager).
    """

    __tablename__ = "locations"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Bounding box
    min_x: Mapped[float] = mapped_column(Float, nullable=False)
    max_x: Mapped[float] = mapped_column(Float, nullable=False)
    min_y: Mapped[float] = mapped_column(Float, nullable=False)
    max_y: Mapped[float] = mapped_column(Float, nullable=False)
    min_z: Mapped[float] = mapped_column(Float, nullable=False)
    max_z: Mapped[float] = mapped_column(Float, nullable=False)

    unit_type: Mapped[str] = mapped_column(
        String(20),
        default="meters",
        nullable=False,
        comment="Display unit for coordinates: meters or feet",
    )

    # Relationships
    campaign: Mapped["Campaign"] = relationship(back_populates="locations")
    features: Mapped[list["LocationFeature"]] = relationship(
        back_populates="location",
        cascade="all, delete-orphan",
    )
    positions: Mapped[list["CharacterPosition"]] = relationship(
        back_populates="location",
    )

    def __repr__(self) -> str:
        return f"<Location {self.name}>"


class LocationFeature(Base, IdMixin, TimestampMixin):
    """A scenery object anchored inside a location.

    The bounding box spans anchor..anchor + (width, depth, height) along
    x, y and z. Missing dimensions mean a zero-extent point.
    """

    __tablename__ = "location_features"

    location_id: Mapped[str] = mapped_column(
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    feature_type: Mapped[FeatureType] = mapped_column(
        Enum(FeatureType, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Anchor
    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    z: Mapped[float] = mapped_column(Float, nullable=False)

    # Extent
    width: Mapped[float | None] = mapped_column(Float, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    depth: Mapped[float | None] = mapped_column(Float, nullable=True)

    blocks_movement: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    blocks_vision: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    provides_cover: Mapped[CoverLevel] = mapped_column(
        Enum(CoverLevel, values_callable=lambda obj: [e.value for e in obj]),
        default=CoverLevel.NONE,
        nullable=False,
    )
    elevation: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    feature_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    location: Mapped["Location"] = relationship(back_populates="features")

    def __repr__(self) -> str:
        return f"<LocationFeature {self.name} ({self.feature_type.value})>"


class CharacterPosition(Base, IdMixin):
    """Where a character currently stands.

    One row per character, created at the origin on first reference.
    """

    __tablename__ = "character_positions"

    character_id: Mapped[str] = mapped_column(
        ForeignKey("characters.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    location_id: Mapped[str | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    x: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    y: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    z: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    facing: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Facing angle in degrees [0, 360)",
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    character: Mapped["Character"] = relationship(back_populates="position")
    location: Mapped["Location | None"] = relationship(back_populates="positions")

    def __repr__(self) -> str:
        return f"<CharacterPosition {self.character_id} ({self.x}, {self.y}, {self.z})>"


class MovementRule(Base, IdMixin, TimestampMixin):
    """Campaign rule deciding which interactions are possible at a range."""

    __tablename__ = "movement_rules"

    campaign_id: Mapped[str] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    interaction_type: Mapped[InteractionType] = mapped_column(
        Enum(InteractionType, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    max_distance: Mapped[float] = mapped_column(Float, nullable=False)
    requires_line_of_sight: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    campaign: Mapped["Campaign"] = relationship(back_populates="movement_rules")

    def __repr__(self) -> str:
        return f"<MovementRule {self.name} ({self.interaction_type.value} <= {self.max_distance})>"


class MovementEvent(Base, IdMixin):
    """Append-only log of committed character moves."""

    __tablename__ = "movement_events"

    character_id: Mapped[str] = mapped_column(
        ForeignKey("characters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[str | None] = mapped_column(
        ForeignKey("game_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    location_id: Mapped[str | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
    )
    from_x: Mapped[float] = mapped_column(Float, nullable=False)
    from_y: Mapped[float] = mapped_column(Float, nullable=False)
    from_z: Mapped[float] = mapped_column(Float, nullable=False)
    to_x: Mapped[float] = mapped_column(Float, nullable=False)
    to_y: Mapped[float] = mapped_column(Float, nullable=False)
    to_z: Mapped[float] = mapped_column(Float, nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    action_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

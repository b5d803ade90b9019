"""Initial schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

This migration creates every table:
- Campaign, Character: campaign scope and its characters
- GameSession, Message, SessionState, SessionSummary: session transcript and rolling state
- Location, LocationFeature, CharacterPosition: spatial layout
- MovementRule, MovementEvent: interaction ranges and committed moves
- KnowledgeEntry, ToneProfile, MechanicsRule: narrator reference material
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Campaign table
    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("world_settings", sa.Text(), nullable=True),
        sa.Column("ai_guidelines", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Character table
    op.create_table(
        "characters",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("race", sa.String(100), nullable=True),
        sa.Column("character_class", sa.String(100), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("backstory", sa.Text(), nullable=True),
        sa.Column(
            "base_movement_rate",
            sa.Float(),
            nullable=True,
            comment="Distance per turn (null = settings.default_movement_rate)",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_characters_campaign_id", "characters", ["campaign_id"])

    # Location table
    op.create_table(
        "locations",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("min_x", sa.Float(), nullable=False),
        sa.Column("max_x", sa.Float(), nullable=False),
        sa.Column("min_y", sa.Float(), nullable=False),
        sa.Column("max_y", sa.Float(), nullable=False),
        sa.Column("min_z", sa.Float(), nullable=False),
        sa.Column("max_z", sa.Float(), nullable=False),
        sa.Column(
            "unit_type",
            sa.String(20),
            nullable=False,
            server_default="meters",
            comment="Display unit for coordinates: meters or feet",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_locations_campaign_id", "locations", ["campaign_id"])

    # GameSession table
    op.create_table(
        "game_sessions",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "paused", "completed", name="sessionstatus"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_game_sessions_campaign_id", "game_sessions", ["campaign_id"])
    op.create_index("ix_game_sessions_status", "game_sessions", ["status"])

    # Message table
    op.create_table(
        "messages",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("session_id", sa.String(32), nullable=False),
        sa.Column(
            "role",
            sa.Enum("user", "assistant", "system", name="chatrole"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("token_count", sa.Integer(), nullable=True),
        sa.Column(
            "metadata",
            sa.JSON(),
            nullable=True,
            comment="Model name, usage and movement suggestion for assistant replies",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["game_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_session_id", "messages", ["session_id"])
    op.create_index("ix_messages_created_at", "messages", ["created_at"])

    # SessionState table
    op.create_table(
        "session_states",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("session_id", sa.String(32), nullable=False),
        sa.Column("current_location", sa.String(200), nullable=True),
        sa.Column("location_id", sa.String(32), nullable=True),
        sa.Column("active_npcs", sa.JSON(), nullable=True),
        sa.Column("ongoing_quests", sa.JSON(), nullable=True),
        sa.Column("party_conditions", sa.JSON(), nullable=True),
        sa.Column(
            "recent_events",
            sa.JSON(),
            nullable=True,
            comment="Newest first, at most five entries",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["session_id"], ["game_sessions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id", name="uq_session_states_session_id"),
    )
    op.create_index("ix_session_states_location_id", "session_states", ["location_id"])

    # SessionSummary table
    op.create_table(
        "session_summaries",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("session_id", sa.String(32), nullable=False),
        sa.Column("message_range_start", sa.Integer(), nullable=False),
        sa.Column("message_range_end", sa.Integer(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("key_events", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["game_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_session_summaries_session_id", "session_summaries", ["session_id"])

    # LocationFeature table
    op.create_table(
        "location_features",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("location_id", sa.String(32), nullable=False),
        sa.Column(
            "feature_type",
            sa.Enum(
                "obstacle", "poi", "door", "furniture", "terrain", "hazard",
                name="featuretype",
            ),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("x", sa.Float(), nullable=False),
        sa.Column("y", sa.Float(), nullable=False),
        sa.Column("z", sa.Float(), nullable=False),
        sa.Column("width", sa.Float(), nullable=True),
        sa.Column("height", sa.Float(), nullable=True),
        sa.Column("depth", sa.Float(), nullable=True),
        sa.Column("blocks_movement", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("blocks_vision", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "provides_cover",
            sa.Enum("none", "half", "three_quarters", "full", name="coverlevel"),
            nullable=False,
            server_default="none",
        ),
        sa.Column("elevation", sa.Float(), nullable=False, server_default="0"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_location_features_location_id", "location_features", ["location_id"])
    op.create_index("ix_location_features_feature_type", "location_features", ["feature_type"])

    # CharacterPosition table
    op.create_table(
        "character_positions",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("character_id", sa.String(32), nullable=False),
        sa.Column("location_id", sa.String(32), nullable=True),
        sa.Column("x", sa.Float(), nullable=False, server_default="0"),
        sa.Column("y", sa.Float(), nullable=False, server_default="0"),
        sa.Column("z", sa.Float(), nullable=False, server_default="0"),
        sa.Column(
            "facing",
            sa.Float(),
            nullable=True,
            comment="Facing angle in degrees [0, 360)",
        ),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["character_id"], ["characters.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("character_id", name="uq_character_positions_character_id"),
    )
    op.create_index("ix_character_positions_location_id", "character_positions", ["location_id"])

    # MovementRule table
    op.create_table(
        "movement_rules",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "interaction_type",
            sa.Enum(
                "melee", "ranged", "spell", "conversation", "perception", "custom",
                name="interactiontype",
            ),
            nullable=False,
        ),
        sa.Column("max_distance", sa.Float(), nullable=False),
        sa.Column(
            "requires_line_of_sight", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_movement_rules_campaign_id", "movement_rules", ["campaign_id"])

    # MovementEvent table
    op.create_table(
        "movement_events",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("character_id", sa.String(32), nullable=False),
        sa.Column("session_id", sa.String(32), nullable=True),
        sa.Column("location_id", sa.String(32), nullable=True),
        sa.Column("from_x", sa.Float(), nullable=False),
        sa.Column("from_y", sa.Float(), nullable=False),
        sa.Column("from_z", sa.Float(), nullable=False),
        sa.Column("to_x", sa.Float(), nullable=False),
        sa.Column("to_y", sa.Float(), nullable=False),
        sa.Column("to_z", sa.Float(), nullable=False),
        sa.Column("distance", sa.Float(), nullable=False),
        sa.Column("action_type", sa.String(30), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["character_id"], ["characters.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["game_sessions.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_movement_events_character_id", "movement_events", ["character_id"])
    op.create_index("ix_movement_events_session_id", "movement_events", ["session_id"])

    # KnowledgeEntry table
    op.create_table(
        "knowledge_entries",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "location", "npc", "item", "lore", "faction", "quest", "other",
                name="knowledgecategory",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("keywords", sa.JSON(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_knowledge_entries_campaign_id", "knowledge_entries", ["campaign_id"])
    op.create_index("ix_knowledge_entries_category", "knowledge_entries", ["category"])

    # ToneProfile table
    op.create_table(
        "tone_profiles",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("tone_rules", sa.Text(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tone_profiles_campaign_id", "tone_profiles", ["campaign_id"])

    # MechanicsRule table
    op.create_table(
        "mechanics_rules",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column(
            "category",
            sa.Enum(
                "combat", "skill_check", "magic", "social", "exploration", "rest", "other",
                name="mechanicscategory",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("keywords", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mechanics_rules_campaign_id", "mechanics_rules", ["campaign_id"])
    op.create_index("ix_mechanics_rules_category", "mechanics_rules", ["category"])


def downgrade() -> None:
    # Drop tables in reverse order (dependencies first)
    op.drop_table("mechanics_rules")
    op.drop_table("tone_profiles")
    op.drop_table("knowledge_entries")
    op.drop_table("movement_events")
    op.drop_table("movement_rules")
    op.drop_table("character_positions")
    op.drop_table("location_features")
    op.drop_table("session_summaries")
    op.drop_table("session_states")
    op.drop_table("messages")
    op.drop_table("game_sessions")
    op.drop_table("locations")
    op.drop_table("characters")
    op.drop_table("campaigns")

    # Drop enum types
    op.execute("DROP TYPE IF EXISTS mechanicscategory")
    op.execute("DROP TYPE IF EXISTS knowledgecategory")
    op.execute("DROP TYPE IF EXISTS interactiontype")
    op.execute("DROP TYPE IF EXISTS coverlevel")
    op.execute("DROP TYPE IF EXISTS featuretype")
    op.execute("DROP TYPE IF EXISTS chatrole")
    op.execute("DROP TYPE IF EXISTS sessionstatus")

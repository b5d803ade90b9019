"""Fixtures for CLI tests backed by a temporary SQLite file."""

from contextlib import contextmanager
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

from spatialdm.database.connection import create_db_engine, init_db
from spatialdm.database.models.enums import CoverLevel, InteractionType
from tests.factories import (
    create_campaign,
    create_character,
    create_feature,
    create_game_session,
    create_location,
    create_movement_rule,
    place_character,
)


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI callback from replacing pytest's log handlers."""
    with patch("spatialdm.cli.main.configure_logging"):
        yield


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary SQLite database for CLI tests."""
    db_path = tmp_path / "test_cli.db"
    engine = create_db_engine(f"sqlite:///{db_path}")
    init_db(engine)
    TestSessionLocal = sessionmaker(bind=engine)

    @contextmanager
    def mock_get_db_session():
        """Mock get_db_session that uses the test database."""
        session = TestSessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    yield engine, mock_get_db_session

    engine.dispose()


@pytest.fixture
def seeded(temp_db) -> dict[str, str]:
    """Tavern scene: Aria at the origin, an orc at (5, 0), a wall at x=2..3.

    Returns:
        Mapping of names to the ids of the committed rows.
    """
    engine, _ = temp_db
    Session = sessionmaker(bind=engine)
    with Session() as db:
        campaign = create_campaign(db, name="The Sunken Crown")
        game_session = create_game_session(db, campaign)
        tavern = create_location(db, campaign, name="Tavern")
        hero = create_character(db, campaign, name="Aria", created_at=datetime(2024, 1, 1, 12, 0))
        orc = create_character(
            db, campaign, name="Grukk the Orc", created_at=datetime(2024, 1, 1, 12, 5)
        )
        place_character(db, hero, tavern, 0.0, 0.0, 0.0)
        place_character(db, orc, tavern, 5.0, 0.0, 0.0)
        create_feature(
            db, tavern, name="Stone Wall", x=2.0, y=-5.0, width=1.0, depth=3.0, height=3.0,
            blocks_movement=True, blocks_vision=True, provides_cover=CoverLevel.FULL,
        )
        create_movement_rule(
            db, campaign, name="Shout", interaction_type=InteractionType.CONVERSATION,
            max_distance=20.0,
        )
        ids = {
            "campaign": campaign.id,
            "session": game_session.id,
            "tavern": tavern.id,
            "hero": hero.id,
            "orc": orc.id,
        }
        db.commit()
    return ids

"""Core test fixtures for narration core tests."""

from datetime import datetime

import pytest
from sqlalchemy.orm import Session, sessionmaker

from spatialdm.config import Settings
from spatialdm.database.connection import create_db_engine, init_db
from spatialdm.database.models.campaign import Campaign, Character
from spatialdm.database.models.session import GameSession
from spatialdm.database.models.spatial import Location
from tests.factories import (
    create_campaign,
    create_character,
    create_game_session,
    create_location,
    place_character,
)


@pytest.fixture(scope="session")
def engine():
    """Create SQLite in-memory engine for fast tests."""
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """Create a fresh database session for each test.

    Uses a transaction that rolls back after each test for isolation.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session_factory = sessionmaker(bind=connection)
    session = session_factory()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only (no .env influence on limits)."""
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        anthropic_api_key="test-key",
    )


@pytest.fixture
def campaign(db_session: Session) -> Campaign:
    """Create a basic Campaign fixture."""
    return create_campaign(db_session, name="The Sunken Crown")


@pytest.fixture
def game_session(db_session: Session, campaign: Campaign) -> GameSession:
    """Create an active GameSession fixture."""
    return create_game_session(db_session, campaign)


@pytest.fixture
def tavern(db_session: Session, campaign: Campaign) -> Location:
    """A 20 x 20 x 10 meter room spanning (-10, -10, 0) to (10, 10, 10)."""
    return create_location(db_session, campaign, name="Tavern")


@pytest.fixture
def hero(db_session: Session, campaign: Campaign, tavern: Location) -> Character:
    """Player character standing at (0, 0, 0) in the tavern."""
    character = create_character(
        db_session, campaign, name="Aria", created_at=datetime(2024, 1, 1, 12, 0)
    )
    place_character(db_session, character, tavern, 0.0, 0.0, 0.0)
    return character


@pytest.fixture
def orc(db_session: Session, campaign: Campaign, tavern: Location, hero: Character) -> Character:
    """Hostile NPC standing at (5, 0, 0) in the tavern, created after the hero."""
    character = create_character(
        db_session, campaign, name="Grukk the Orc", created_at=datetime(2024, 1, 1, 12, 5)
    )
    place_character(db_session, character, tavern, 5.0, 0.0, 0.0)
    return character

"""Tests for TargetResolver."""

import pytest

from spatialdm.database.models.enums import InteractionType
from spatialdm.parser.movement_intent import detect
from spatialdm.parser.target_resolver import TargetResolver, position_at_distance
from spatialdm.spatial.geometry import Position, distance_3d
from tests.factories import create_feature, create_movement_rule, create_session_state


@pytest.fixture
def in_tavern(db_session, game_session, tavern):
    """Session state pointing at the tavern."""
    return create_session_state(
        db_session, game_session, location_id=tavern.id, current_location="Tavern"
    )


class TestPositionAtDistance:
    def test_stops_short_of_target(self):
        result = position_at_distance(Position(0, 0, 0), Position(10, 0, 0), 1.5)

        assert result.x == pytest.approx(8.5)

    def test_follows_elevation(self):
        result = position_at_distance(Position(0, 0, 0), Position(0, 0, 4), 1.0)

        assert result.z == pytest.approx(3.0)

    def test_already_close(self):
        current = Position(0, 0, 0)
        assert position_at_distance(current, Position(1, 0, 0), 1.5) is current


class TestTargetPosition:
    """Tests for TargetResolver.target_position."""

    def test_character_target_uses_default_stand_off(
        self, db_session, game_session, in_tavern, hero, orc
    ):
        resolver = TargetResolver(db_session)

        result = resolver.target_position(
            detect("I walk to the orc"), game_session.id, Position(0, 0, 0), "orc"
        )

        assert result is not None
        assert distance_3d(result, Position(5, 0, 0)) == pytest.approx(1.5)

    def test_character_target_uses_matching_rule(
        self, db_session, campaign, game_session, in_tavern, hero, orc
    ):
        create_movement_rule(
            db_session, campaign, name="Chat",
            interaction_type=InteractionType.CONVERSATION, max_distance=3.0,
        )
        resolver = TargetResolver(db_session)

        result = resolver.target_position(
            detect("I talk to Grukk"), game_session.id, Position(0, 0, 0), "grukk"
        )

        assert result.x == pytest.approx(2.0)

    def test_feature_target(self, db_session, game_session, in_tavern, tavern, hero):
        create_feature(db_session, tavern, name="Fireplace", x=0, y=6, z=0)
        resolver = TargetResolver(db_session)

        result = resolver.target_position(
            detect("I look at the fireplace"), game_session.id, Position(0, 0, 0), "fire"
        )

        assert result.y == pytest.approx(5.0)

    def test_no_location_in_state(self, db_session, game_session, hero, orc):
        create_session_state(db_session, game_session)
        resolver = TargetResolver(db_session)

        assert (
            resolver.target_position(detect("attack"), game_session.id, Position(), "orc")
            is None
        )

    def test_no_target_name(self, db_session, game_session, in_tavern):
        resolver = TargetResolver(db_session)

        assert resolver.target_position(detect("walk"), game_session.id, Position()) is None

    def test_unknown_target(self, db_session, game_session, in_tavern):
        resolver = TargetResolver(db_session)

        assert (
            resolver.target_position(detect("walk"), game_session.id, Position(), "dragon")
            is None
        )


class TestValidateTarget:
    """Tests for TargetResolver.validate_target."""

    def test_character(self, db_session, game_session, in_tavern, orc):
        check = TargetResolver(db_session).validate_target("ORC", game_session.id)

        assert check.exists
        assert check.kind == "character"

    def test_feature(self, db_session, game_session, in_tavern, tavern):
        create_feature(db_session, tavern, name="Bar Counter")

        check = TargetResolver(db_session).validate_target("counter", game_session.id)

        assert check.exists
        assert check.kind == "feature"

    def test_missing(self, db_session, game_session, in_tavern):
        check = TargetResolver(db_session).validate_target("dragon", game_session.id)

        assert not check.exists
        assert check.kind is None

    def test_unknown_session(self, db_session):
        assert not TargetResolver(db_session).validate_target("orc", "missing").exists

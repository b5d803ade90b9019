"""Tests for SpatialQueryService over the database-backed index."""

import pytest
from sqlalchemy.orm import Session

from spatialdm.config import Settings
from spatialdm.database.models.campaign import Campaign
from spatialdm.database.models.enums import CoverLevel, FeatureType, InteractionType
from spatialdm.database.models.spatial import Location
from spatialdm.spatial.geometry import Position, distance_2d, distance_3d
from spatialdm.spatial.index import DatabaseSpatialIndex
from spatialdm.spatial.query_service import SpatialQueryService
from tests.factories import (
    create_character,
    create_feature,
    create_location,
    create_movement_rule,
    place_character,
)


@pytest.fixture
def service(db_session: Session, test_settings: Settings) -> SpatialQueryService:
    return SpatialQueryService(DatabaseSpatialIndex(db_session), settings=test_settings)


@pytest.fixture
def arena(db_session: Session, campaign: Campaign) -> Location:
    """Open field spanning x in [-5, 30]."""
    return create_location(
        db_session, campaign, name="Arena", min_x=-5, max_x=30, min_y=-10, max_y=10
    )


class TestLineOfSight:
    """Tests for line_of_sight."""

    def test_clear_when_no_features(self, service, tavern):
        assert service.line_of_sight(Position(0, 0, 0), Position(5, 0, 0), tavern.id)

    def test_blocked_by_vision_blocking_wall(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Stone Wall", x=2, y=-1, z=0,
            width=1, depth=2, height=3, blocks_vision=True,
        )

        assert not service.line_of_sight(Position(0, 0, 0), Position(5, 0, 0), tavern.id)

    def test_movement_blocker_does_not_block_sight(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Low Fence", x=2, y=-1, z=0,
            width=1, depth=2, height=1, blocks_movement=True,
        )

        assert service.line_of_sight(Position(0, 0, 0), Position(5, 0, 0), tavern.id)

    def test_same_point_outside_blockers_is_visible(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Pillar", x=3, y=3, z=0,
            width=1, depth=1, height=4, blocks_vision=True,
        )
        p = Position(0, 0, 0)

        assert service.line_of_sight(p, p, tavern.id)


class TestCoverLevel:
    """Tests for cover_level."""

    def test_no_cover_in_open_field(self, service, arena):
        assert service.cover_level(Position(0, 0, 0), Position(20, 0, 0), arena.id) == CoverLevel.NONE

    def test_full_cover_wall_between_combatants(self, db_session, service, arena):
        create_feature(
            db_session, arena, name="Rampart", x=8, y=-2, z=0,
            width=4, depth=4, height=5,
            blocks_movement=True, provides_cover=CoverLevel.FULL,
        )

        level = service.cover_level(Position(0, 0, 0), Position(20, 0, 0), arena.id)

        assert level == CoverLevel.FULL

    def test_best_cover_wins_and_never_drops(self, db_session, service, arena):
        attacker, defender = Position(0, 0, 0), Position(20, 0, 0)
        create_feature(
            db_session, arena, name="Crate", x=4, y=-0.5, z=0,
            width=1, depth=1, height=1, provides_cover=CoverLevel.HALF,
        )
        before = service.cover_level(attacker, defender, arena.id)

        create_feature(
            db_session, arena, name="Rampart", x=8, y=-2, z=0,
            width=4, depth=4, height=5,
            blocks_movement=True, provides_cover=CoverLevel.FULL,
        )
        after = service.cover_level(attacker, defender, arena.id)

        assert before == CoverLevel.HALF
        assert after.rank >= before.rank
        assert after == CoverLevel.FULL

    def test_cover_off_the_line_is_ignored(self, db_session, service, arena):
        create_feature(
            db_session, arena, name="Distant Barricade", x=8, y=5, z=0,
            width=2, depth=2, height=2, provides_cover=CoverLevel.THREE_QUARTERS,
        )

        assert service.cover_level(Position(0, 0, 0), Position(20, 0, 0), arena.id) == CoverLevel.NONE


class TestProximity:
    """Tests for nearby characters and features."""

    def test_nearby_characters_reports_distance_and_visibility(self, service, tavern, hero, orc):
        nearby = service.nearby_characters(Position(0, 0, 0), tavern.id, excluding=hero.id)

        assert len(nearby) == 1
        assert nearby[0].name == "Grukk the Orc"
        assert nearby[0].distance == pytest.approx(5.0)
        assert nearby[0].can_see is True

    def test_visible_characters_filters_hidden(self, db_session, service, tavern, hero, orc):
        create_feature(
            db_session, tavern, name="Curtain", x=2, y=-1, z=0,
            width=0.1, depth=2, height=3, blocks_vision=True,
        )

        assert service.visible_characters(Position(0, 0, 0), tavern.id, excluding=hero.id) == []
        hidden = service.nearby_characters(Position(0, 0, 0), tavern.id, excluding=hero.id)
        assert hidden[0].can_see is False

    def test_nearby_features_sorted_and_radius_inclusive(self, db_session, service, tavern):
        create_feature(db_session, tavern, name="Far Table", x=8, y=0, z=0, feature_type=FeatureType.FURNITURE)
        create_feature(db_session, tavern, name="Hearth", x=3, y=0, z=0, feature_type=FeatureType.POI)
        create_feature(db_session, tavern, name="Door", x=0, y=2, z=0, feature_type=FeatureType.DOOR)

        features = service.nearby_features(Position(0, 0, 0), tavern.id, max_distance=3.0)

        assert [f.name for f in features] == ["Door", "Hearth"]
        assert features[1].distance == pytest.approx(3.0)

    def test_nearby_features_uses_settings_radius(self, db_session, service, tavern):
        create_feature(db_session, tavern, name="Far Table", x=8, y=0, z=0)

        assert [f.name for f in service.nearby_features(Position(0, 0, 0), tavern.id)] == ["Far Table"]


class TestAvailableActions:
    """Tests for available_actions."""

    def test_targets_within_rule_range(self, db_session, service, campaign, hero, orc):
        create_movement_rule(db_session, campaign, name="Sword Reach", max_distance=1.5)
        create_movement_rule(
            db_session, campaign, name="Shout",
            interaction_type=InteractionType.CONVERSATION, max_distance=6.0,
        )

        actions = {a.rule_name: a for a in service.available_actions(hero.id, campaign.id)}

        assert actions["Sword Reach"].valid_targets == []
        assert [t.name for t in actions["Shout"].valid_targets] == ["Grukk the Orc"]
        assert actions["Shout"].label == "conversation (Shout)"

    def test_line_of_sight_rule_excludes_hidden_targets(
        self, db_session, service, campaign, tavern, hero, orc
    ):
        create_movement_rule(
            db_session, campaign, name="Longbow",
            interaction_type=InteractionType.RANGED, max_distance=30.0,
            requires_line_of_sight=True,
        )
        create_movement_rule(
            db_session, campaign, name="Listen",
            interaction_type=InteractionType.PERCEPTION, max_distance=30.0,
        )
        create_feature(
            db_session, tavern, name="Wall", x=2, y=-1, z=0,
            width=1, depth=2, height=3, blocks_vision=True,
        )

        actions = {a.rule_name: a for a in service.available_actions(hero.id, campaign.id)}

        assert actions["Longbow"].valid_targets == []
        assert len(actions["Listen"].valid_targets) == 1

    def test_no_position_means_no_actions(self, db_session, service, campaign):
        wanderer = create_character(db_session, campaign, name="Wanderer")
        create_movement_rule(db_session, campaign)

        assert service.available_actions(wanderer.id, campaign.id) == []


class TestValidateMovement:
    """Tests for validate_movement and validate_movement_path."""

    def test_move_inside_bounds_is_valid(self, service, tavern):
        result = service.validate_movement(Position(0, 0, 0), Position(4, 4, 0), tavern.id)

        assert result.is_valid
        assert result.warnings == []

    def test_destination_outside_bounds(self, service, tavern):
        result = service.validate_movement(Position(0, 0, 0), Position(0, 10.5, 0), tavern.id)

        assert not result.is_valid
        assert result.warnings == ["Target position is outside location bounds"]

    def test_tavern_position_beyond_max_y(self, db_session, service, campaign):
        tavern = create_location(
            db_session, campaign, name="Tavern",
            min_x=0, max_x=18, min_y=0, max_y=12, min_z=0, max_z=4.5,
        )
        create_feature(
            db_session, tavern, name="Bar Counter", x=10, y=2, z=0,
            width=20, depth=3, height=1.2,
            blocks_movement=True, provides_cover=CoverLevel.HALF,
        )

        result = service.validate_movement(
            Position(13.5, 15, 0), Position(13.5, 15, 0), tavern.id
        )

        assert result.is_valid is False
        assert "outside location bounds" in result.warnings[0]

    def test_destination_inside_blocker(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Bar Counter", x=2, y=2, z=0,
            width=4, depth=1, height=1.2, blocks_movement=True,
        )

        result = service.validate_movement(Position(0, 0, 0), Position(3, 2.5, 0), tavern.id)

        assert not result.is_valid
        assert result.blocked_by == ["Bar Counter"]
        assert result.warnings == ["Path blocked by: Bar Counter"]

    def test_long_move_is_valid_with_warning(self, db_session, campaign, test_settings):
        field = create_location(db_session, campaign, min_x=-100, max_x=100, min_y=-100, max_y=100)
        service = SpatialQueryService(DatabaseSpatialIndex(db_session), settings=test_settings)

        result = service.validate_movement(Position(-40, 0, 0), Position(40, 0, 0), field.id)

        assert result.is_valid
        assert result.warnings == ["Movement distance (80.0) seems unusually large"]

    def test_unknown_location(self, service):
        result = service.validate_movement(Position(0, 0, 0), Position(1, 1, 0), "missing")

        assert not result.is_valid
        assert result.warnings == ["Location not found"]

    def test_path_crossing_blocker(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Table", x=2, y=-1, z=0,
            width=1, depth=2, height=1, blocks_movement=True,
        )

        crossing = service.validate_movement_path(Position(0, 0, 0), Position(5, 0, 0), tavern.id)
        around = service.validate_movement_path(Position(0, 3, 0), Position(5, 3, 0), tavern.id)

        assert not crossing.is_valid
        assert crossing.blocked_by == ["Table"]
        assert around.is_valid


class TestSuggestMovement:
    """Tests for suggest_movement."""

    def test_already_close_enough_returns_current(self, service):
        current = Position(0, 0, 0)

        assert service.suggest_movement(current, Position(1, 0, 0), 1.5) is current

    def test_stops_at_separation(self, service):
        current, target = Position(0, 0, 0), Position(10, 0, 0)

        result = service.suggest_movement(current, target, 1.5)

        assert result.x == pytest.approx(8.5)
        assert distance_2d(result, target) == pytest.approx(1.5)

    def test_keeps_elevation(self, service):
        result = service.suggest_movement(Position(0, 0, 2), Position(0, 8, 0), 2.0)

        assert result.z == 2
        assert result.y == pytest.approx(6.0)


class TestTurnMovement:
    """Tests for turn_movement."""

    def test_default_rate(self, service, hero):
        result = service.turn_movement(hero.id, 10.0)

        assert result.base_rate == 9.0
        assert result.can_reach_in_one_turn is False
        assert result.turns_required == 2

    def test_running_doubles_reach(self, service, hero):
        result = service.turn_movement(hero.id, 10.0, speed_multiplier=2.0)

        assert result.effective_rate == 18.0
        assert result.can_reach_in_one_turn is True
        assert result.turns_required == 1

    def test_character_rate_overrides_default(self, db_session, service, campaign):
        halfling = create_character(db_session, campaign, base_movement_rate=7.5)

        result = service.turn_movement(halfling.id, 7.5)

        assert result.base_rate == 7.5
        assert result.can_reach_in_one_turn is True

    def test_non_positive_multiplier_rejected(self, service, hero):
        with pytest.raises(ValueError):
            service.turn_movement(hero.id, 5.0, speed_multiplier=0)


class TestNearestValidPosition:
    """Tests for nearest_valid_position."""

    def test_finds_clear_probe_outside_blocker(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Statue", x=4, y=4, z=0,
            width=2, depth=2, height=2, blocks_movement=True,
        )
        target = Position(5, 5, 0)

        result = service.nearest_valid_position(target, tavern.id)

        assert result is not None
        assert result.x > 6 or result.y > 6 or result.x < 4 or result.y < 4
        assert distance_3d(result, target) == pytest.approx(1.5)

    def test_unblocked_target_returns_first_probe(self, service, tavern):
        result = service.nearest_valid_position(Position(0, 0, 0), tavern.id)

        assert result is not None
        assert distance_3d(result, Position(0, 0, 0)) == pytest.approx(0.5)

    def test_returns_none_when_everything_blocked(self, db_session, service, tavern):
        create_feature(
            db_session, tavern, name="Rubble", x=-10, y=-10, z=0,
            width=20, depth=20, height=5, blocks_movement=True,
        )

        assert service.nearest_valid_position(Position(0, 0, 0), tavern.id) is None


class TestBuildSpatialContext:
    """Tests for build_spatial_context."""

    def test_snapshot_for_positioned_character(self, db_session, service, campaign, tavern, hero, orc):
        create_feature(
            db_session, tavern, name="Barrel", x=2, y=-0.5, z=0,
            width=1, depth=1, height=1, provides_cover=CoverLevel.HALF,
        )
        create_movement_rule(
            db_session, campaign, name="Shout",
            interaction_type=InteractionType.CONVERSATION, max_distance=6.0,
        )

        context = service.build_spatial_context(hero.id)

        assert context is not None
        assert context.location_name == "Tavern"
        assert context.position == Position(0, 0, 0)
        assert [c.name for c in context.nearby_characters] == ["Grukk the Orc"]
        assert context.nearby_characters[0].cover_level == CoverLevel.HALF
        assert [f.name for f in context.nearby_features] == ["Barrel"]
        assert context.available_actions[0].action == "conversation (Shout)"
        assert context.available_actions[0].target_name == "Grukk the Orc"

    def test_characters_sorted_by_distance(self, db_session, service, campaign, tavern, hero, orc):
        goblin = create_character(db_session, campaign, name="Snik")
        place_character(db_session, goblin, tavern, 2.0, 0.0, 0.0)

        context = service.build_spatial_context(hero.id)

        assert [c.name for c in context.nearby_characters] == ["Snik", "Grukk the Orc"]

    def test_none_without_location(self, db_session, service, campaign):
        drifter = create_character(db_session, campaign, name="Drifter")
        place_character(db_session, drifter, None)

        assert service.build_spatial_context(drifter.id) is None

    def test_none_for_unknown_character(self, service):
        assert service.build_spatial_context("missing") is None

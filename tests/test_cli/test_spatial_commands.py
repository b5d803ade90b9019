"""Tests for spatial query CLI commands."""

from unittest.mock import patch

import pytest
import typer
from typer.testing import CliRunner

from spatialdm.cli.commands.spatial import parse_position
from spatialdm.cli.main import app
from spatialdm.spatial.geometry import Position


runner = CliRunner()

PATCH_TARGET = "spatialdm.cli.commands.spatial.get_db_session"


class TestParsePosition:
    """Tests for the x,y[,z] argument parser."""

    def test_two_coordinates(self):
        assert parse_position("1.5, 2") == Position(1.5, 2.0, 0.0)

    def test_three_coordinates(self):
        assert parse_position("1,2,3") == Position(1.0, 2.0, 3.0)

    @pytest.mark.parametrize("value", ["1", "1,2,3,4", "a,b"])
    def test_rejects_malformed(self, value):
        with pytest.raises(typer.BadParameter):
            parse_position(value)


class TestLineOfSightCommand:
    """Tests for 'spatialdm los'."""

    def test_clear(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["los", seeded["tavern"], "0,0", "5,0"])

        assert result.exit_code == 0
        assert "Line of sight: clear" in result.output

    def test_blocked_by_wall(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["los", seeded["tavern"], "0,-4", "5,-4"])

        assert result.exit_code == 0
        assert "Line of sight: blocked" in result.output

    def test_unknown_location(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["los", "nowhere", "0,0", "5,0"])

        assert result.exit_code == 1
        assert "Location nowhere not found" in result.output

    def test_bad_position_is_usage_error(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["los", seeded["tavern"], "zero", "5,0"])

        assert result.exit_code != 0


class TestCoverCommand:
    """Tests for 'spatialdm cover'."""

    def test_full_cover_behind_wall(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["cover", seeded["tavern"], "0,-4", "5,-4"])

        assert result.exit_code == 0
        assert "Cover: full" in result.output

    def test_no_cover_in_open(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["cover", seeded["tavern"], "0,0", "5,0"])

        assert "Cover: none" in result.output


class TestValidateMoveCommand:
    """Tests for 'spatialdm validate-move'."""

    def test_valid_move(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["validate-move", seeded["hero"], "3,3"])

        assert result.exit_code == 0
        assert "Movement is valid" in result.output

    def test_blocked_move_suggests_alternative(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["validate-move", seeded["hero"], "2.5,-3"])

        assert result.exit_code == 0
        assert "Movement is not valid" in result.output
        assert result.output.count("Path blocked by: Stone Wall") == 1
        assert "Nearest clear position" in result.output

    def test_out_of_bounds(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["validate-move", seeded["hero"], "50,0"])

        assert "Movement is not valid" in result.output
        assert "outside location bounds" in result.output
        assert "Nearest clear position" not in result.output

    def test_character_without_position(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["validate-move", "ghost", "1,1"])

        assert result.exit_code == 1
        assert "Character ghost has no position" in result.output


class TestActionsCommand:
    """Tests for 'spatialdm actions'."""

    def test_lists_rules_and_targets(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["actions", seeded["hero"]])

        assert result.exit_code == 0
        assert "Location:" in result.output
        assert "Tavern" in result.output
        assert "Available Actions" in result.output
        assert "Shout" in result.output
        assert "Grukk" in result.output

    def test_unknown_character(self, temp_db, seeded):
        _, mock_get_db_session = temp_db

        with patch(PATCH_TARGET, mock_get_db_session):
            result = runner.invoke(app, ["actions", "ghost"])

        assert result.exit_code == 1
        assert "Character ghost not found" in result.output

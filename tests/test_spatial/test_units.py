"""Tests for unit conversion and formatting."""

import pytest

from spatialdm.spatial.geometry import Box, Position
from spatialdm.spatial.units import (
    convert_box,
    feet_to_meters,
    format_distance,
    format_position,
    grid_squares_to_meters,
    meters_to_feet,
    meters_to_grid_squares,
)


class TestConversions:
    def test_ten_feet_is_about_three_meters(self):
        assert feet_to_meters(10) == pytest.approx(3.048, abs=1e-3)

    def test_feet_round_trip(self):
        assert feet_to_meters(meters_to_feet(7.25)) == pytest.approx(7.25)

    def test_one_grid_square_is_five_feet(self):
        assert meters_to_feet(grid_squares_to_meters(1)) == pytest.approx(5.0, abs=1e-3)
        assert meters_to_grid_squares(3.048) == pytest.approx(2.0)


class TestFormatting:
    def test_format_distance_meters(self):
        assert format_distance(1.5) == "1.5 m"

    def test_format_distance_feet(self):
        assert format_distance(3.048, "feet") == "10.0 ft"

    def test_format_position_meters(self):
        assert format_position(Position(13.5, 2, 0)) == "(13.5, 2.0, 0.0) m"

    def test_format_position_precision(self):
        assert format_position(Position(1.234, 0, 0), precision=2) == "(1.23, 0.00, 0.00) m"


class TestConvertBox:
    def test_meters_is_identity(self):
        box = Box(0, 18, 0, 12, 0, 4.5)
        assert convert_box(box, "meters") is box

    def test_feet_scales_every_bound(self):
        converted = convert_box(Box(0, 3.048, -3.048, 0, 0, 1), "feet")

        assert converted.max_x == pytest.approx(10.0, abs=1e-3)
        assert converted.min_y == pytest.approx(-10.0, abs=1e-3)
        assert converted.min_x == 0

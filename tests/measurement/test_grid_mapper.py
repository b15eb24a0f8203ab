"""
Unit tests for grid_mapper module.
"""

import pytest

from kasuri.common.types import GridSpec
from kasuri.measurement.grid_mapper import create_marker, map_to_grid, round_half_up


class TestRoundHalfUp:
    """Tests for round_half_up function."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (0.5, 1), (2.4999, 2), (3.5, 4), (0.0, 0), (-0.5, 0)],
    )
    def test_ties_round_up(self, value, expected):
        """Test that exact halves go up, unlike the built-in round."""
        assert round_half_up(value) == expected


class TestMapToGrid:
    """Tests for map_to_grid function."""

    def test_center_of_default_grid(self):
        """Test the center of a 32x80 grid."""
        assert map_to_grid(0.5, 0.5, GridSpec(rows=32, cols=80)) == (16, 40)

    def test_tie_breaks_upward(self):
        """Test that 0.5 * 5 columns maps to column 3."""
        assert map_to_grid(0.5, 0.5, GridSpec(rows=10, cols=5)) == (5, 3)

    def test_corners(self):
        """Test that the far edges map to the counts themselves."""
        grid = GridSpec(rows=10, cols=5)

        assert map_to_grid(0.0, 0.0, grid) == (0, 0)
        assert map_to_grid(1.0, 1.0, grid) == (10, 5)

    def test_out_of_range_is_clamped(self):
        """Test that positions outside [0, 1] are clamped first."""
        grid = GridSpec(rows=32, cols=80)

        assert map_to_grid(-0.1, 1.5, grid) == (32, 0)

    def test_indices_never_exceed_counts(self):
        """Test the [0, count] bound across a sweep of positions."""
        grid = GridSpec(rows=7, cols=13)

        for i in range(101):
            row, col = map_to_grid(i / 100, 1 - i / 100, grid)
            assert 0 <= row <= grid.rows
            assert 0 <= col <= grid.cols


class TestCreateMarker:
    """Tests for create_marker function."""

    def test_marker_fields(self):
        """Test that position and indices are filled in."""
        marker = create_marker(0.25, 0.75, GridSpec(rows=4, cols=8))

        assert (marker.x, marker.y) == (0.25, 0.75)
        assert (marker.row, marker.col) == (3, 2)

    def test_marker_position_clamped(self):
        """Test that the stored position is clamped as well."""
        marker = create_marker(1.2, -0.3, GridSpec(rows=4, cols=8))

        assert (marker.x, marker.y) == (1.0, 0.0)
        assert (marker.row, marker.col) == (0, 8)

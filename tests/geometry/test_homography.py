"""
Unit tests for homography module.

Covers estimation, point transformation and the quad <-> unit square
conveniences.
"""

import math

import numpy as np
import pytest

from kasuri.common.types import CalibrationQuad, GeometryError
from kasuri.geometry.homography import (
    UNIT_SQUARE,
    estimate_homography,
    forward_homography,
    inverse_homography,
    transform_point,
    transform_points,
)


class TestEstimateHomography:
    """Tests for estimate_homography function."""

    def test_unit_square_is_identity(self):
        """Test that the canonical unit quad yields the identity transform."""
        h = estimate_homography(UNIT_SQUARE, UNIT_SQUARE)

        assert h is not None
        assert h.shape == (9,)
        np.testing.assert_allclose(h, np.eye(3).ravel(), atol=1e-12)

    def test_h33_fixed_to_one(self, skewed_quad):
        """Test that the last coefficient is always exactly 1."""
        h = estimate_homography(skewed_quad, UNIT_SQUARE)

        assert h[8] == 1.0

    def test_maps_source_onto_destination(self, skewed_quad):
        """Test that every source corner lands on its destination corner."""
        h = estimate_homography(skewed_quad, UNIT_SQUARE)

        for (sx, sy), (dx, dy) in zip(skewed_quad.to_numpy(), UNIT_SQUARE):
            x, y = transform_point(sx, sy, h)
            assert x == pytest.approx(dx, abs=1e-9)
            assert y == pytest.approx(dy, abs=1e-9)

    def test_collinear_source_fails(self):
        """Test that three collinear source points signal failure."""
        src = [[0, 0], [1, 0], [2, 0], [0, 1]]

        assert estimate_homography(src, UNIT_SQUARE) is None

    def test_duplicate_source_fails(self):
        """Test that coincident source points signal failure."""
        src = [[0, 0], [0, 0], [1, 1], [0, 1]]

        assert estimate_homography(src, UNIT_SQUARE) is None

    def test_collinear_destination_fails(self):
        """Test that collinear destination points signal failure as well."""
        dst = [[0, 0], [1, 0], [2, 0], [0, 1]]

        assert estimate_homography(UNIT_SQUARE, dst) is None

    def test_coincident_destination_fails(self):
        """Test that a destination collapsed to one point signals failure."""
        assert estimate_homography(UNIT_SQUARE, [[0.5, 0.5]] * 4) is None

    def test_invalid_point_count(self):
        """Test that anything but 4 points is rejected."""
        with pytest.raises(ValueError, match="Expected exactly 4 points"):
            estimate_homography([[0, 0], [1, 0], [1, 1]], UNIT_SQUARE)


class TestTransformPoint:
    """Tests for transform_point and transform_points."""

    def test_identity(self):
        """Test that the identity leaves points unchanged."""
        assert transform_point(0.3, 0.7, np.eye(3).ravel()) == (0.3, 0.7)

    def test_rectangle_centroid_maps_to_center(self):
        """Test that an axis-aligned rectangle's centroid maps to (0.5, 0.5)."""
        quad = CalibrationQuad(points=[[0.2, 0.1], [0.6, 0.1], [0.6, 0.5], [0.2, 0.5]])
        h = forward_homography(quad)

        x, y = transform_point(0.4, 0.3, h)

        assert x == pytest.approx(0.5, abs=1e-9)
        assert y == pytest.approx(0.5, abs=1e-9)

    def test_point_at_infinity_is_nan(self):
        """Test that a zero homogeneous weight yields nan rather than raising."""
        h = np.array([1.0, 0, 0, 0, 1.0, 0, 1.0, 0, 0])  # w = x

        x, y = transform_point(0.0, 0.5, h)

        assert math.isnan(x) and math.isnan(y)

    def test_vectorised_matches_scalar(self, skewed_quad):
        """Test that transform_points agrees with transform_point."""
        h = inverse_homography(skewed_quad)
        points = np.array([[0.0, 0.0], [0.25, 0.75], [0.5, 0.5], [1.0, 0.3]])

        result = transform_points(points, h)

        for (px, py), (rx, ry) in zip(points, result):
            x, y = transform_point(px, py, h)
            assert rx == pytest.approx(x)
            assert ry == pytest.approx(y)

    def test_vectorised_point_at_infinity_is_nan(self):
        """Test that rows at infinity come back as nan."""
        h = np.array([1.0, 0, 0, 0, 1.0, 0, 1.0, 0, 0])

        result = transform_points(np.array([[0.0, 0.5], [1.0, 0.5]]), h)

        assert np.isnan(result[0]).all()
        np.testing.assert_allclose(result[1], [1.0, 0.5])


class TestQuadHomographies:
    """Tests for forward_homography and inverse_homography."""

    def test_round_trip_returns_unit_corners(self, skewed_quad):
        """Test forward(inverse(corner)) == corner for every unit-square corner."""
        forward = forward_homography(skewed_quad)
        inverse = inverse_homography(skewed_quad)

        for cx, cy in UNIT_SQUARE:
            qx, qy = transform_point(cx, cy, inverse)
            x, y = transform_point(qx, qy, forward)
            assert x == pytest.approx(cx, abs=1e-9)
            assert y == pytest.approx(cy, abs=1e-9)

    def test_inverse_maps_unit_corners_to_quad(self, skewed_quad):
        """Test that the inverse sends the unit square onto the quad corners."""
        inverse = inverse_homography(skewed_quad)

        mapped = transform_points(UNIT_SQUARE, inverse)

        np.testing.assert_allclose(mapped, skewed_quad.to_numpy(), atol=1e-9)

    def test_accepts_plain_arrays(self):
        """Test that (4, 2) arrays work as well as CalibrationQuad."""
        h = forward_homography(np.array([[0, 0], [2, 0], [2, 2], [0, 2]]))

        assert transform_point(1.0, 1.0, h) == pytest.approx((0.5, 0.5))

    def test_collinear_quad_raises(self, collinear_quad):
        """Test that a degenerate quad raises GeometryError in both directions."""
        with pytest.raises(GeometryError):
            forward_homography(collinear_quad)
        with pytest.raises(GeometryError):
            inverse_homography(collinear_quad)

    def test_coincident_quad_raises(self):
        """Test that coincident corners raise GeometryError."""
        quad = CalibrationQuad(points=[[0.5, 0.5]] * 4)

        with pytest.raises(GeometryError, match="degenerate"):
            inverse_homography(quad)

    def test_geometry_error_is_value_error(self, collinear_quad):
        """Test that GeometryError can be handled as a ValueError."""
        with pytest.raises(ValueError):
            inverse_homography(collinear_quad)

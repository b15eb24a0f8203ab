"""
Homography estimation and point transformation.

A homography is stored as 9 coefficients (row-major 3x3 matrix) with the
bottom-right element fixed to 1. The calibration quad is always paired with
the unit square; "forward" maps quad -> unit square and "inverse" maps unit
square -> quad (source-image space), which drives resampling.
"""

import logging
import math
from typing import Optional, Tuple, Union

import numpy as np

from kasuri.common.types import CalibrationQuad, GeometryError
from kasuri.geometry.linear_solver import PIVOT_EPSILON, solve_linear_system

logger = logging.getLogger(__name__)

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])

# |w| below this maps the point to infinity
W_EPSILON = 1e-12

PointsLike = Union[CalibrationQuad, np.ndarray, list]


def _as_points(points: PointsLike) -> np.ndarray:
    if isinstance(points, CalibrationQuad):
        return points.to_numpy()
    arr = np.array(points, dtype=np.float64)
    if arr.shape != (4, 2):
        raise ValueError(
            f"Expected exactly 4 points with shape (4, 2), got shape {arr.shape}"
        )
    return arr


def estimate_homography(
    src: PointsLike, dst: PointsLike, epsilon: float = PIVOT_EPSILON
) -> Optional[np.ndarray]:
    """
    Estimate the projective transform mapping 4 source points onto 4 destination points.

    Each correspondence contributes two rows of the direct linear transform:

        [sx, sy, 1, 0, 0, 0, -sx*dx, -sy*dx] . h = dx
        [0, 0, 0, sx, sy, 1, -sx*dy, -sy*dy] . h = dy

    Args:
        src: Source points, shape (4, 2).
        dst: Destination points, shape (4, 2).
        epsilon: Pivot threshold passed to the linear solver.

    Returns:
        Array of 9 coefficients (h33 = 1), or None when the points are
        collinear, duplicated or otherwise ill-conditioned.

    Example:
        >>> h = estimate_homography(UNIT_SQUARE, UNIT_SQUARE)
        >>> np.allclose(h, np.eye(3).ravel())
        True
    """
    src = _as_points(src)
    dst = _as_points(dst)

    system = np.zeros((8, 9), dtype=np.float64)
    for i, ((sx, sy), (dx, dy)) in enumerate(zip(src, dst)):
        system[2 * i] = [sx, sy, 1, 0, 0, 0, -sx * dx, -sy * dx, dx]
        system[2 * i + 1] = [0, 0, 0, sx, sy, 1, -sx * dy, -sy * dy, dy]

    solution = solve_linear_system(system, epsilon=epsilon)
    if solution is None:
        logger.debug(f"Homography estimation failed for source points {src.tolist()}")
        return None

    h = np.append(solution, 1.0)
    # degenerate destination points still solve, to a singular matrix
    if abs(np.linalg.det(h.reshape(3, 3))) < epsilon:
        logger.debug(f"Homography is singular for destination points {dst.tolist()}")
        return None

    return h


def transform_point(x: float, y: float, h: np.ndarray) -> Tuple[float, float]:
    """
    Apply a homography to a single point via homogeneous division.

    A point whose homogeneous weight is (near) zero maps to infinity; the
    result is then (nan, nan) and callers must treat it as invalid.
    """
    w = h[6] * x + h[7] * y + h[8]
    if abs(w) < W_EPSILON:
        return (math.nan, math.nan)
    return (
        float((h[0] * x + h[1] * y + h[2]) / w),
        float((h[3] * x + h[4] * y + h[5]) / w),
    )


def transform_points(points: np.ndarray, h: np.ndarray) -> np.ndarray:
    """
    Vectorised ``transform_point`` over an (N, 2) array.

    Rows whose homogeneous weight is (near) zero come back as nan.
    """
    points = np.asarray(points, dtype=np.float64)
    x = points[:, 0]
    y = points[:, 1]

    w = h[6] * x + h[7] * y + h[8]
    invalid = np.abs(w) < W_EPSILON
    w = np.where(invalid, np.nan, w)

    out = np.empty_like(points)
    out[:, 0] = (h[0] * x + h[1] * y + h[2]) / w
    out[:, 1] = (h[3] * x + h[4] * y + h[5]) / w
    return out


def _require_invertible(h: Optional[np.ndarray]) -> np.ndarray:
    if h is None:
        raise GeometryError(
            "Calibration quad is degenerate: corners are collinear or coincident"
        )
    return h


def forward_homography(
    quad: PointsLike, epsilon: float = PIVOT_EPSILON
) -> np.ndarray:
    """
    Homography mapping the calibration quad onto the unit square.

    Raises:
        GeometryError: If the quad is degenerate.
    """
    return _require_invertible(
        estimate_homography(quad, UNIT_SQUARE, epsilon=epsilon)
    )


def inverse_homography(
    quad: PointsLike, epsilon: float = PIVOT_EPSILON
) -> np.ndarray:
    """
    Homography mapping the unit square onto the calibration quad.

    Raises:
        GeometryError: If the quad is degenerate.
    """
    return _require_invertible(
        estimate_homography(UNIT_SQUARE, quad, epsilon=epsilon)
    )

"""
Projective geometry for calibration quads.

Provides the dense linear solver, four-point homography estimation, point
transformation and quad measurements used by the rectifier.
"""

from kasuri.geometry.homography import (
    UNIT_SQUARE,
    estimate_homography,
    forward_homography,
    inverse_homography,
    transform_point,
    transform_points,
)
from kasuri.geometry.linear_solver import solve_linear_system
from kasuri.geometry.quad_metrics import (
    calculate_edge_lengths,
    calculate_rect_ratio,
    is_convex_quadrilateral,
)

__all__ = [
    "UNIT_SQUARE",
    "calculate_edge_lengths",
    "calculate_rect_ratio",
    "estimate_homography",
    "forward_homography",
    "inverse_homography",
    "is_convex_quadrilateral",
    "solve_linear_system",
    "transform_point",
    "transform_points",
]

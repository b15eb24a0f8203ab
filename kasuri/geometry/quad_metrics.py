"""
Geometric measurements of a calibration quad.

Edge lengths and the aspect ratio decide the size of the rectified raster;
the convexity check is a diagnostic for suspicious corner placement.
"""

import logging
from typing import Tuple, Union

import numpy as np

from kasuri.common.types import CalibrationQuad

logger = logging.getLogger(__name__)


def _as_array(keypoints: Union[CalibrationQuad, np.ndarray, list]) -> np.ndarray:
    if isinstance(keypoints, CalibrationQuad):
        return keypoints.to_numpy()

    keypoints = np.array(keypoints, dtype=np.float64)
    if keypoints.shape != (4, 2):
        raise ValueError(
            f"Expected 4 keypoints with shape (4, 2), got {keypoints.shape}"
        )
    return keypoints


def calculate_edge_lengths(
    keypoints: Union[CalibrationQuad, np.ndarray, list],
) -> Tuple[float, float, float, float]:
    """
    Calculate the length of all 4 edges of a quadrilateral.

    Args:
        keypoints: 4 corner points in order [TL, TR, BR, BL].

    Returns:
        Tuple of (top_edge, right_edge, bottom_edge, left_edge) lengths.

    Example:
        >>> points = np.array([[0.1, 0.1], [0.7, 0.1], [0.7, 0.4], [0.1, 0.4]])
        >>> top, right, bottom, left = calculate_edge_lengths(points)
        >>> print(f"Width: {top:.1f}, Height: {right:.1f}")
        Width: 0.6, Height: 0.3
    """
    tl, tr, br, bl = _as_array(keypoints)

    top_edge = float(np.linalg.norm(tr - tl))
    right_edge = float(np.linalg.norm(br - tr))
    bottom_edge = float(np.linalg.norm(bl - br))
    left_edge = float(np.linalg.norm(tl - bl))

    logger.debug(
        f"Edge lengths - Top: {top_edge:.4f}, Right: {right_edge:.4f}, "
        f"Bottom: {bottom_edge:.4f}, Left: {left_edge:.4f}"
    )

    return top_edge, right_edge, bottom_edge, left_edge


def calculate_rect_ratio(keypoints: Union[CalibrationQuad, np.ndarray, list]) -> float:
    """
    Width/height ratio of the straightened quad.

    Average of the top and bottom edges over the average of the left and
    right edges. Computed in normalized units.

    Raises:
        ValueError: If either average is zero.
    """
    top, right, bottom, left = calculate_edge_lengths(keypoints)

    width = (top + bottom) / 2
    height = (left + right) / 2

    if height == 0 or width == 0:
        raise ValueError(
            f"Quad has a zero-length side pair (width={width}, height={height})"
        )

    ratio = width / height
    logger.debug(f"Rectified aspect ratio: {ratio:.3f}")

    return ratio


def is_convex_quadrilateral(keypoints: Union[CalibrationQuad, np.ndarray, list]) -> bool:
    """
    Check if 4 ordered points form a convex quadrilateral.

    A quadrilateral is convex if the 2D cross products of all consecutive
    edge pairs (P1->P2, P2->P3) share the same sign.

    Args:
        keypoints: Ordered points [TL, TR, BR, BL].

    Returns:
        True if the quadrilateral is convex, False otherwise.
    """
    rect = _as_array(keypoints)
    cross_products = []

    for i in range(4):
        p1 = rect[i]
        p2 = rect[(i + 1) % 4]
        p3 = rect[(i + 2) % 4]

        v1 = p2 - p1
        v2 = p3 - p2

        cross_products.append(v1[0] * v2[1] - v1[1] * v2[0])

    # tolerance in normalized units
    signs = [cp > 1e-9 for cp in cross_products]
    is_convex = all(signs) or not any(
        cp > -1e-9 for cp in cross_products
    )

    if not is_convex:
        logger.warning(
            f"Non-convex quadrilateral detected. Cross products: {cross_products}"
        )

    return is_convex

"""
Visualization Utilities

Draws measurement overlays onto the rectified raster: numbered marker dots
and the live crosshair of an in-progress measurement.
"""

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from kasuri.common.types import Marker

MARKER_FILL = (255, 255, 0, 255)  # yellow
MARKER_OUTLINE = (0, 0, 0, 255)
CROSSHAIR_COLOR = (0, 229, 255, 255)  # cyan


def _as_rgba(raster: np.ndarray) -> np.ndarray:
    if raster.ndim == 2:
        raster = cv2.cvtColor(raster, cv2.COLOR_GRAY2RGBA)
    elif raster.shape[2] == 3:
        raster = cv2.cvtColor(raster, cv2.COLOR_RGB2RGBA)
    return np.ascontiguousarray(raster).copy()


def draw_crosshair(
    canvas: np.ndarray,
    position: Tuple[float, float],
    color: Tuple[int, int, int, int] = CROSSHAIR_COLOR,
) -> np.ndarray:
    """
    Draw full-width/height guide lines and a dot at a normalized position.

    Args:
        canvas: Writable RGBA image, modified in place.
        position: Normalized (x, y).
        color: RGBA line color.

    Returns:
        The same canvas.
    """
    height, width = canvas.shape[:2]
    px = int(round(position[0] * (width - 1)))
    py = int(round(position[1] * (height - 1)))
    thickness = max(1, width // 400)

    cv2.line(canvas, (px, 0), (px, height - 1), color, thickness)
    cv2.line(canvas, (0, py), (width - 1, py), color, thickness)
    cv2.circle(canvas, (px, py), max(3, width // 80), color, -1)
    return canvas


def annotate_markers(
    raster: np.ndarray,
    markers: Sequence[Marker],
    candidate: Optional[Tuple[float, float]] = None,
    show_labels: bool = True,
) -> np.ndarray:
    """
    Render markers (and optionally the live candidate) onto a copy of the raster.

    Args:
        raster: Rectified raster, RGBA (or RGB / grayscale).
        markers: Markers in normalized rectified coordinates.
        candidate: Normalized position of an in-progress measurement.
        show_labels: Draw 1-based marker numbers next to the dots.

    Returns:
        New RGBA image; the input raster is not modified.
    """
    canvas = _as_rgba(raster)
    height, width = canvas.shape[:2]

    radius = max(2, width // 250)
    outline = max(1, radius // 4)
    font_scale = max(0.4, width / 1600)

    for i, marker in enumerate(markers, start=1):
        center = (
            int(round(marker.x * (width - 1))),
            int(round(marker.y * (height - 1))),
        )
        cv2.circle(canvas, center, radius, MARKER_FILL, -1)
        cv2.circle(canvas, center, radius, MARKER_OUTLINE, outline)

        if show_labels:
            cv2.putText(
                canvas,
                str(i),
                (center[0] + radius + 2, center[1] - radius - 2),
                cv2.FONT_HERSHEY_SIMPLEX,
                font_scale,
                MARKER_OUTLINE,
                1,
                cv2.LINE_AA,
            )

    if candidate is not None:
        draw_crosshair(canvas, candidate)

    return canvas

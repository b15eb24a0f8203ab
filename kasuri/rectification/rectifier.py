"""
Inverse-mapping rectifier.

Produces a raster showing what the photographed quadrilateral would look like
if it were a perfect rectangle. Every destination pixel is mapped back into
the source photo through the inverse homography (unit square -> quad) and
sampled with nearest-neighbour lookup.
"""

import logging
import math
from typing import Tuple, Union

import numpy as np

from kasuri.common.types import CalibrationQuad, GeometryError, ImageBuffer
from kasuri.geometry.homography import transform_points
from kasuri.geometry.quad_metrics import calculate_rect_ratio

logger = logging.getLogger(__name__)

DEFAULT_TARGET_WIDTH = 800


def calculate_raster_size(
    quad: CalibrationQuad, target_width: int = DEFAULT_TARGET_WIDTH
) -> Tuple[int, int]:
    """
    Calculate the rectified raster dimensions for a calibration quad.

    Width is fixed; height is ``round(width / ratio)`` where ratio is the
    quad's averaged top/bottom over left/right edge length (half rounds up).

    Args:
        quad: Calibration corners in normalized source coordinates.
        target_width: Raster width in pixels.

    Returns:
        Tuple of (width, height), both at least 1.

    Raises:
        GeometryError: If the quad has zero-length sides.

    Example:
        >>> calculate_raster_size(CalibrationQuad.default(), 800)
        (800, 800)
    """
    if target_width < 1:
        raise ValueError(f"target_width must be at least 1, got {target_width}")

    try:
        ratio = calculate_rect_ratio(quad)
    except ValueError as e:
        raise GeometryError(str(e)) from e

    height = max(1, int(math.floor(target_width / ratio + 0.5)))
    logger.debug(f"Raster size {target_width}x{height} (ratio {ratio:.3f})")

    return target_width, height


def rectify_image(
    image: Union[ImageBuffer, np.ndarray],
    inverse_h: np.ndarray,
    width: int,
    height: int,
) -> np.ndarray:
    """
    Resample the source image into a straightened RGBA raster.

    For every destination pixel (x, y) the normalized position (x/W, y/H) is
    mapped through ``inverse_h`` into normalized source coordinates, scaled by
    the source pixel dimensions and floored. Pixels that land inside the source
    copy its RGB with alpha 255; the rest stay fully transparent black.

    Args:
        image: Source bitmap.
        inverse_h: 9-coefficient homography from the unit square onto the quad.
        width: Raster width in pixels.
        height: Raster height in pixels.

    Returns:
        Read-only uint8 array of shape (height, width, 4).
    """
    if not isinstance(image, ImageBuffer):
        image = ImageBuffer(data=image)

    src = image.to_rgb()
    src_h, src_w = src.shape[:2]

    ys, xs = np.mgrid[0:height, 0:width]
    dest = np.column_stack([xs.ravel() / width, ys.ravel() / height])

    mapped = transform_points(dest, inverse_h)
    sx = np.floor(mapped[:, 0] * src_w)
    sy = np.floor(mapped[:, 1] * src_h)

    # nan (points at infinity) fails every comparison and is left as margin
    with np.errstate(invalid="ignore"):
        inside = (sx >= 0) & (sx < src_w) & (sy >= 0) & (sy < src_h)

    raster = np.zeros((height * width, 4), dtype=np.uint8)
    raster[inside, :3] = src[sy[inside].astype(np.intp), sx[inside].astype(np.intp)]
    raster[inside, 3] = 255

    margin = int(inside.size - np.count_nonzero(inside))
    if margin:
        logger.debug(f"{margin} of {inside.size} raster pixels fall outside the source image")

    raster = raster.reshape(height, width, 4)
    raster.setflags(write=False)
    return raster

"""
Grid mapping from normalized rectified coordinates to grid cells.

Ties round half up: 0.5 * 5 columns -> column 3. Python's built-in ``round``
rounds half to even and is not used here.
"""

import math
from typing import Tuple

from kasuri.common.types import GridSpec, Marker


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity."""
    return int(math.floor(value + 0.5))


def _clamp_unit(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def map_to_grid(x: float, y: float, grid: GridSpec) -> Tuple[int, int]:
    """
    Convert a normalized position into (row, col) grid indices.

    Args:
        x: Normalized horizontal position; clamped to [0, 1].
        y: Normalized vertical position; clamped to [0, 1].
        grid: Row and column counts.

    Returns:
        Tuple of (row, col), each in [0, count].

    Example:
        >>> map_to_grid(0.5, 0.5, GridSpec(rows=32, cols=80))
        (16, 40)
    """
    row = round_half_up(_clamp_unit(y) * grid.rows)
    col = round_half_up(_clamp_unit(x) * grid.cols)
    return row, col


def create_marker(x: float, y: float, grid: GridSpec) -> Marker:
    """Create a marker at (x, y) with indices derived from ``grid``."""
    row, col = map_to_grid(x, y, grid)
    return Marker(x=_clamp_unit(x), y=_clamp_unit(y), row=row, col=col)

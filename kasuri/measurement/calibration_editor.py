"""
Calibration-step corner dragging.

The source photo is letterboxed into the container; a drag grabs the corner
nearest to where it started and moves that same slot until release. Slots are
never re-sorted.
"""

import logging
from typing import Optional

from kasuri.common.types import CalibrationQuad, Point
from kasuri.measurement.viewport import PointerEvent, PointerPhase, compute_fit

logger = logging.getLogger(__name__)


class CalibrationEditor:
    """
    Maps pointer drags on the letterboxed source photo onto quad edits.

    Example:
        >>> editor = CalibrationEditor(CalibrationQuad.default(), 100, 200, 400, 400)
        >>> editor.handle_pointer(PointerEvent(160, 80, PointerPhase.START))
        >>> quad = editor.handle_pointer(PointerEvent(150, 60, PointerPhase.MOVE))
    """

    def __init__(
        self,
        quad: CalibrationQuad,
        image_width: int,
        image_height: int,
        container_width: float,
        container_height: float,
    ):
        self.quad = quad
        self.image_width = image_width
        self.image_height = image_height
        self._fit = compute_fit(
            container_width, container_height, image_width, image_height
        )
        self._active: Optional[int] = None

    @property
    def active_index(self) -> Optional[int]:
        """Slot being dragged, if any."""
        return self._active

    def screen_to_image(self, sx: float, sy: float) -> Point:
        """Container pixel position -> normalized source-image coordinates (clamped)."""
        x = (sx - self._fit.offset_x) / self._fit.scale / self.image_width
        y = (sy - self._fit.offset_y) / self._fit.scale / self.image_height
        return Point(x=x, y=y).clamped()

    def image_to_screen(self, point: Point) -> Point:
        return Point(
            x=self._fit.offset_x + point.x * self.image_width * self._fit.scale,
            y=self._fit.offset_y + point.y * self.image_height * self._fit.scale,
        )

    def handle_pointer(self, event: PointerEvent) -> Optional[CalibrationQuad]:
        """
        Feed one pointer event.

        Returns:
            The new quad when the event moved a corner, otherwise None.
        """
        position = self.screen_to_image(event.x, event.y)

        if event.phase is PointerPhase.START:
            self._active = self.quad.nearest_index(position)
            logger.debug(f"Dragging corner {self._active}")
            return None

        if self._active is None:
            return None

        if event.phase is PointerPhase.END:
            self._active = None
            return None

        updated = self.quad.with_point(self._active, position)
        if updated == self.quad:
            return None
        self.quad = updated
        return updated

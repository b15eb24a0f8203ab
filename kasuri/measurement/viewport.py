"""
Viewport transform over the rectified raster.

The on-screen position of a raster pixel p is

    screen = fit_offset + fit_scale * (pan + scale * p)

where the fit scale/offset letterbox the raster into the container and
scale/pan are the user's zoom and pan. Pointer input drives a small state
machine with two mutually exclusive modes: measuring and panning.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    """User-selected pointer mode."""

    MEASURE = "measure"
    PAN = "pan"


class PointerPhase(Enum):
    """Phase of a single-pointer gesture."""

    START = "start"
    MOVE = "move"
    END = "end"


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in container (screen) pixels."""

    x: float
    y: float
    phase: PointerPhase


@dataclass(frozen=True)
class FitTransform:
    """Uniform scale and centering offset that letterbox content into a container."""

    scale: float
    offset_x: float
    offset_y: float


def compute_fit(
    container_width: float,
    container_height: float,
    content_width: float,
    content_height: float,
) -> FitTransform:
    """
    Fit content into a container preserving aspect ratio, centered.

    Example:
        >>> compute_fit(800, 600, 800, 800)
        FitTransform(scale=0.75, offset_x=100.0, offset_y=0.0)
    """
    if min(container_width, container_height, content_width, content_height) <= 0:
        raise ValueError(
            f"Dimensions must be positive: container {container_width}x{container_height}, "
            f"content {content_width}x{content_height}"
        )

    scale = min(container_width / content_width, container_height / content_height)
    offset_x = (container_width - content_width * scale) / 2
    offset_y = (container_height - content_height * scale) / 2
    return FitTransform(scale=scale, offset_x=offset_x, offset_y=offset_y)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


class ViewportTransform:
    """
    Zoom/pan state over the rectified raster plus the pointer state machine.

    Attributes:
        scale: Zoom factor, within [min_scale, max_scale].
        pan_x: Horizontal pan in raster pixels.
        pan_y: Vertical pan in raster pixels.
        mode: Current interaction mode.
    """

    def __init__(
        self,
        container_width: float,
        container_height: float,
        raster_width: int,
        raster_height: int,
        min_scale: float = 1.0,
        max_scale: float = 5.0,
    ):
        if min_scale < 1.0 or max_scale < min_scale:
            raise ValueError(
                f"Invalid scale range [{min_scale}, {max_scale}]; need 1 <= min <= max"
            )

        self.container_width = float(container_width)
        self.container_height = float(container_height)
        self.raster_width = int(raster_width)
        self.raster_height = int(raster_height)
        self.min_scale = min_scale
        self.max_scale = max_scale

        self.scale = min_scale
        self.pan_x = 0.0
        self.pan_y = 0.0
        self.mode = InteractionMode.MEASURE

        self._candidate: Optional[Tuple[float, float]] = None
        self._drag_origin: Optional[Tuple[float, float]] = None

        self._fit = compute_fit(
            self.container_width,
            self.container_height,
            self.raster_width,
            self.raster_height,
        )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def fit(self) -> FitTransform:
        return self._fit

    def _refit(self) -> None:
        self._fit = compute_fit(
            self.container_width,
            self.container_height,
            self.raster_width,
            self.raster_height,
        )

    def set_container_size(self, width: float, height: float) -> None:
        self.container_width = float(width)
        self.container_height = float(height)
        self._refit()
        self.clamp_pan()

    def set_raster_size(self, width: int, height: int) -> None:
        """Switch to a new raster size; zoom and pan are reset if it changed."""
        if (width, height) == (self.raster_width, self.raster_height):
            return
        self.raster_width = int(width)
        self.raster_height = int(height)
        self._refit()
        self.reset()

    def reset(self) -> None:
        self.scale = self.min_scale
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._candidate = None
        self._drag_origin = None

    def screen_to_normalized(self, sx: float, sy: float) -> Tuple[float, float]:
        """
        Convert a container pixel position to normalized raster coordinates.

        Both axes are clamped to [0, 1].
        """
        fit = self._fit
        x = ((sx - fit.offset_x) / fit.scale - self.pan_x) / self.scale
        y = ((sy - fit.offset_y) / fit.scale - self.pan_y) / self.scale
        return (
            _clamp(x / self.raster_width, 0.0, 1.0),
            _clamp(y / self.raster_height, 0.0, 1.0),
        )

    def normalized_to_screen(self, nx: float, ny: float) -> Tuple[float, float]:
        """Convert normalized raster coordinates to a container pixel position."""
        fit = self._fit
        return (
            fit.offset_x + fit.scale * (self.pan_x + self.scale * nx * self.raster_width),
            fit.offset_y + fit.scale * (self.pan_y + self.scale * ny * self.raster_height),
        )

    def clamp_pan(self) -> None:
        """
        Keep the raster within reach of the viewport.

        pan_x is limited to [-W/2 * scale, W/2] and pan_y to [-H/2 * scale, H/2],
        W and H being the container dimensions.
        """
        half_w = self.container_width / 2
        half_h = self.container_height / 2
        self.pan_x = _clamp(self.pan_x, -half_w * self.scale, half_w)
        self.pan_y = _clamp(self.pan_y, -half_h * self.scale, half_h)

    def pan_by(self, dx: float, dy: float) -> None:
        """Pan by a screen-pixel delta."""
        self.pan_x += dx / self._fit.scale
        self.pan_y += dy / self._fit.scale
        self.clamp_pan()

    def set_scale(self, new_scale: float) -> float:
        """
        Zoom to ``new_scale`` keeping the raster point under the viewport center fixed.

        Returns:
            The applied scale after clamping to [min_scale, max_scale].
        """
        new_scale = _clamp(float(new_scale), self.min_scale, self.max_scale)
        if new_scale == self.scale:
            return self.scale

        fit = self._fit
        cx = (self.container_width / 2 - fit.offset_x) / fit.scale
        cy = (self.container_height / 2 - fit.offset_y) / fit.scale

        anchor_x = (cx - self.pan_x) / self.scale
        anchor_y = (cy - self.pan_y) / self.scale

        self.scale = new_scale
        self.pan_x = cx - anchor_x * new_scale
        self.pan_y = cy - anchor_y * new_scale
        self.clamp_pan()

        logger.debug(f"Zoom {self.scale:.2f}, pan ({self.pan_x:.1f}, {self.pan_y:.1f})")
        return self.scale

    def zoom_by(self, step: float) -> float:
        return self.set_scale(self.scale + step)

    # ------------------------------------------------------------------
    # Pointer state machine
    # ------------------------------------------------------------------

    @property
    def candidate(self) -> Optional[Tuple[float, float]]:
        """Live normalized position of an in-progress measurement, if any."""
        return self._candidate

    def set_mode(self, mode: InteractionMode) -> None:
        """Switch mode, abandoning any gesture in progress."""
        self.mode = mode
        self._candidate = None
        self._drag_origin = None

    def handle_pointer(self, event: PointerEvent) -> Optional[Tuple[float, float]]:
        """
        Feed one pointer event.

        Returns:
            The committed normalized position when a measurement gesture ends,
            otherwise None.
        """
        if self.mode is InteractionMode.PAN:
            self._handle_pan(event)
            return None
        return self._handle_measure(event)

    def _handle_measure(self, event: PointerEvent) -> Optional[Tuple[float, float]]:
        if event.phase is PointerPhase.START:
            self._candidate = self.screen_to_normalized(event.x, event.y)
        elif event.phase is PointerPhase.MOVE:
            if self._candidate is not None:
                self._candidate = self.screen_to_normalized(event.x, event.y)
        else:
            committed = self._candidate
            self._candidate = None
            return committed
        return None

    def _handle_pan(self, event: PointerEvent) -> None:
        if event.phase is PointerPhase.START:
            self._drag_origin = (event.x, event.y)
        elif event.phase is PointerPhase.MOVE:
            if self._drag_origin is not None:
                ox, oy = self._drag_origin
                self.pan_by(event.x - ox, event.y - oy)
                self._drag_origin = (event.x, event.y)
        else:
            self._drag_origin = None

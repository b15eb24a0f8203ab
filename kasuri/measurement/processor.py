"""
Main processor for the measurement engine.

Orchestrates the complete flow:
1. Source image loading (synchronous or via a decode future)
2. Calibration (four-corner quad editing)
3. Rectification (cached, rebuilt only on image/quad change)
4. Measurement (viewport pointer input -> grid-indexed markers)
5. Session export/import

The surrounding application owns one processor per session and passes every
input explicitly; the processor holds no global state.
"""

import logging
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import numpy as np

from kasuri.common.types import (
    CalibrationQuad,
    GridSpec,
    ImageBuffer,
    InvalidGridSpecError,
    Marker,
    SessionData,
)
from kasuri.measurement.calibration_editor import CalibrationEditor
from kasuri.measurement.config_loader import KasuriConfig, load_config
from kasuri.measurement.grid_mapper import create_marker
from kasuri.measurement.marker_store import MarkerStore
from kasuri.measurement.session import load_session, save_session
from kasuri.measurement.viewport import (
    InteractionMode,
    PointerEvent,
    ViewportTransform,
)
from kasuri.rectification.cache import RectificationCache
from kasuri.rectification.image_loader import decode_image_async
from kasuri.utils.visualization import annotate_markers

logger = logging.getLogger(__name__)


class MeasurementProcessor:
    """
    Rectification and grid-coordinate measurement for one photographed sheet.

    Example:
        >>> processor = MeasurementProcessor()
        >>> processor.load_image(image, image_ref="sheet.jpg")
        >>> processor.set_grid_spec("10", "5")
        True
        >>> processor.set_container_size(800, 800)
        >>> for phase in (PointerPhase.START, PointerPhase.END):
        ...     marker = processor.handle_pointer(PointerEvent(400, 400, phase))
        >>> marker.row, marker.col
        (5, 3)
    """

    def __init__(
        self,
        config: Optional[KasuriConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

        self.quad: CalibrationQuad = self.config.calibration.to_quad()
        self.grid: GridSpec = self.config.grid.to_grid_spec()
        self.image_ref: Optional[str] = None

        self.cache = RectificationCache(
            target_width=self.config.raster.target_width,
            pivot_epsilon=self.config.solver.pivot_epsilon,
        )
        self.cache.set_quad(self.quad)

        viewport_config = self.config.viewport
        self.viewport = ViewportTransform(
            container_width=viewport_config.container_width,
            container_height=viewport_config.container_height,
            raster_width=self.config.raster.target_width,
            raster_height=self.config.raster.target_width,
            min_scale=viewport_config.min_scale,
            max_scale=viewport_config.max_scale,
        )

        self.marker_store = MarkerStore()
        self._editor: Optional[CalibrationEditor] = None

    # ------------------------------------------------------------------
    # Source image
    # ------------------------------------------------------------------

    def load_image(
        self, image: Union[ImageBuffer, np.ndarray], image_ref: Optional[str] = None
    ) -> None:
        """Use an already decoded bitmap as the source photo."""
        self.cache.set_image(image)
        self._start_new_sheet(image_ref)

    def load_image_bytes(
        self,
        data: bytes,
        executor: Optional[Executor] = None,
        image_ref: Optional[str] = None,
    ) -> "Future[ImageBuffer]":
        """
        Decode encoded image bytes and use the result as the source photo.

        The sheet (quad, markers, view, image_ref) is reset only once the
        decoded image is applied. If decoding fails, or another image is
        loaded before it completes, the current sheet is left untouched.

        With an executor, the reset runs on the thread that completes the
        decode.
        """
        future = decode_image_async(data, executor)
        self.cache.load_image(future, on_applied=lambda _: self._start_new_sheet(image_ref))
        return future

    def _start_new_sheet(self, image_ref: Optional[str]) -> None:
        self.image_ref = image_ref
        self.set_quad(self.config.calibration.to_quad())
        self.marker_store.clear()
        self.viewport.reset()
        self._editor = None
        logger.info(f"New sheet started (image_ref={image_ref!r})")

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def set_quad(self, quad: CalibrationQuad) -> None:
        self.quad = quad
        self.cache.set_quad(quad)
        if self._editor is not None:
            self._editor.quad = quad

    def begin_calibration(
        self, container_width: float, container_height: float
    ) -> CalibrationEditor:
        """
        Start corner editing on the source photo shown in a container.

        Raises:
            ValueError: If no source image is loaded yet.
        """
        image = self.cache.image
        if image is None:
            raise ValueError("Cannot calibrate before a source image is loaded")

        self._editor = CalibrationEditor(
            self.quad, image.width, image.height, container_width, container_height
        )
        return self._editor

    def handle_calibration_pointer(self, event: PointerEvent) -> CalibrationQuad:
        """
        Feed a pointer event from the calibration step.

        Returns:
            The current quad after the event.

        Raises:
            ValueError: If ``begin_calibration`` was not called.
        """
        if self._editor is None:
            raise ValueError("Calibration has not been started")

        updated = self._editor.handle_pointer(event)
        if updated is not None:
            self.quad = updated
            self.cache.set_quad(updated)
        return self.quad

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------

    def set_grid_spec(self, rows: Any, cols: Any) -> bool:
        """
        Update the grid from raw user input.

        Invalid input is rejected and the last valid GridSpec retained.
        Existing markers keep their indices.

        Returns:
            True if the grid was updated.
        """
        try:
            self.grid = GridSpec.from_inputs(rows, cols)
        except InvalidGridSpecError as e:
            logger.warning(f"Grid spec rejected, keeping {self.grid}: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Rectified view
    # ------------------------------------------------------------------

    def _sync_viewport(self) -> Optional[np.ndarray]:
        raster = self.cache.raster
        if raster is not None:
            self.viewport.set_raster_size(raster.shape[1], raster.shape[0])
        return raster

    @property
    def raster(self) -> Optional[np.ndarray]:
        """Rectified raster (rebuilt first if the image or quad changed)."""
        return self._sync_viewport()

    @property
    def is_rectification_available(self) -> bool:
        self._sync_viewport()
        return self.cache.is_available

    def set_container_size(self, width: float, height: float) -> None:
        self.viewport.set_container_size(width, height)

    def set_mode(self, mode: InteractionMode) -> None:
        self.viewport.set_mode(mode)

    def zoom(self, scale: float) -> float:
        """Zoom about the viewport center. Returns the applied scale."""
        self._sync_viewport()
        return self.viewport.set_scale(scale)

    def zoom_in(self) -> float:
        return self.zoom(self.viewport.scale + self.config.viewport.zoom_step)

    def zoom_out(self) -> float:
        return self.zoom(self.viewport.scale - self.config.viewport.zoom_step)

    def handle_pointer(self, event: PointerEvent) -> Optional[Marker]:
        """
        Feed a pointer event from the measurement step.

        Returns:
            The committed marker when a measurement gesture ends, otherwise None.
        """
        if self.raster is None:
            logger.debug("Pointer ignored: no rectified raster")
            return None

        committed = self.viewport.handle_pointer(event)
        if committed is None:
            return None

        marker = create_marker(committed[0], committed[1], self.grid)
        self.marker_store.append(marker)
        logger.info(
            f"Marker #{len(self.marker_store)}: row {marker.row}, col {marker.col} "
            f"at ({marker.x:.4f}, {marker.y:.4f})"
        )
        return marker

    @property
    def candidate(self) -> Optional[Tuple[float, float]]:
        return self.viewport.candidate

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------

    @property
    def markers(self) -> Tuple[Marker, ...]:
        return self.marker_store.markers

    def remove_marker(self, index: int) -> Marker:
        return self.marker_store.remove_at(index)

    def remove_last_marker(self) -> Optional[Marker]:
        return self.marker_store.remove_last()

    def render(self, show_labels: bool = True) -> Optional[np.ndarray]:
        """Rectified raster with markers and the live crosshair drawn on it."""
        raster = self.raster
        if raster is None:
            return None
        return annotate_markers(raster, self.markers, self.candidate, show_labels)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def export_session(self) -> SessionData:
        return SessionData(
            format_version=self.config.session.format_version,
            image_ref=self.image_ref,
            quad=self.quad,
            grid=self.grid,
            markers=list(self.markers),
        )

    def import_session(self, session: SessionData) -> None:
        """
        Restore quad, grid and markers from a session.

        The source image itself is resolved from ``session.image_ref`` by the
        caller and loaded separately; loading it afterwards would reset the
        quad, so load the image first.
        """
        self.image_ref = session.image_ref
        self.set_quad(session.quad)
        self.grid = session.grid
        self.marker_store.replace_all(session.markers)
        self.viewport.reset()
        logger.info(
            f"Session imported: {len(session.markers)} markers, "
            f"grid {session.grid.rows}x{session.grid.cols}"
        )

    def save_session(self, file_path: Union[str, Path]) -> Path:
        return save_session(self.export_session(), file_path)

    def load_session(self, file_path: Union[str, Path]) -> SessionData:
        session = load_session(file_path)
        self.import_session(session)
        return session

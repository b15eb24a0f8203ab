"""
Rectification cache.

Holds the straightened raster for the current (source image, calibration quad)
pair. The raster costs O(W*H) to build and nothing to read, so it is rebuilt
only when one of those two inputs changes, never on grid, zoom, pan or marker
edits. Rebuilds are lazy: any number of quad edits followed by one read costs
one rebuild.

Published rasters are read-only and are replaced wholesale. Results of decodes
or background builds that were requested for superseded state are dropped.
Decode and build callbacks may run on executor threads; every check of the
current state and the assignment that depends on it happen under one lock.
"""

import logging
import threading
from concurrent.futures import Executor, Future
from typing import Callable, Hashable, Optional, Tuple, Union

import numpy as np

from kasuri.common.types import CalibrationQuad, GeometryError, ImageBuffer
from kasuri.geometry.homography import inverse_homography
from kasuri.geometry.linear_solver import PIVOT_EPSILON
from kasuri.geometry.quad_metrics import is_convex_quadrilateral
from kasuri.rectification.rectifier import (
    DEFAULT_TARGET_WIDTH,
    calculate_raster_size,
    rectify_image,
)

logger = logging.getLogger(__name__)

CacheKey = Tuple[int, Hashable]
ImageCallback = Callable[[ImageBuffer], None]


class RectificationCache:
    """
    Lazily rebuilt rectified raster keyed to (image generation, quad corners).

    Example:
        >>> cache = RectificationCache(target_width=800)
        >>> cache.set_image(image)
        >>> cache.set_quad(CalibrationQuad.default())
        >>> raster = cache.raster  # built here
        >>> raster is cache.raster  # served from cache
        True
    """

    def __init__(
        self,
        target_width: int = DEFAULT_TARGET_WIDTH,
        pivot_epsilon: float = PIVOT_EPSILON,
    ):
        if target_width < 1:
            raise ValueError(f"target_width must be at least 1, got {target_width}")

        self.target_width = target_width
        self.pivot_epsilon = pivot_epsilon

        # reentrant: a future that is already done runs its callback inline
        self._lock = threading.RLock()

        self._image: Optional[ImageBuffer] = None
        self._image_generation = 0
        self._decode_token = 0
        self._quad: Optional[CalibrationQuad] = None

        self._raster: Optional[np.ndarray] = None
        self._built_key: Optional[CacheKey] = None
        self._attempted_key: Optional[CacheKey] = None

        self.rebuild_count = 0
        self.last_error: Optional[GeometryError] = None

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def image(self) -> Optional[ImageBuffer]:
        return self._image

    @property
    def quad(self) -> Optional[CalibrationQuad]:
        return self._quad

    def set_image(self, image: Union[ImageBuffer, np.ndarray]) -> None:
        """Replace the source image. Pending decodes are superseded."""
        if not isinstance(image, ImageBuffer):
            image = ImageBuffer(data=image)

        with self._lock:
            self._decode_token += 1
            self._image = image
            self._image_generation += 1
            logger.info(
                f"Source image set ({image.width}x{image.height}), "
                f"generation {self._image_generation}"
            )

    def load_image(
        self,
        future: "Future[ImageBuffer]",
        on_applied: Optional[ImageCallback] = None,
    ) -> int:
        """
        Subscribe to a pending image decode.

        The decoded image is applied when the future completes, unless another
        image was set or requested in the meantime. Failed and superseded
        decodes leave the current image in place.

        Args:
            future: Pending (or completed) decode.
            on_applied: Called with the image once it has become the source
                        image, while the cache is still locked. Not called for
                        failed or superseded decodes.

        Returns:
            Token identifying this request.
        """
        with self._lock:
            self._decode_token += 1
            token = self._decode_token
        future.add_done_callback(lambda f: self._on_decoded(token, f, on_applied))
        return token

    def _on_decoded(
        self,
        token: int,
        future: "Future[ImageBuffer]",
        on_applied: Optional[ImageCallback],
    ) -> None:
        with self._lock:
            if token != self._decode_token:
                logger.debug(f"Discarding stale decode result (token {token})")
                return

            error = future.exception()
            if error is not None:
                logger.error(f"Image decode failed, keeping current image: {error}")
                return

            image = future.result()
            self._image = image
            self._image_generation += 1
            logger.info(
                f"Decoded image applied ({image.width}x{image.height}), "
                f"generation {self._image_generation}"
            )

            if on_applied is not None:
                on_applied(image)

    def set_quad(self, quad: CalibrationQuad) -> None:
        """Replace the calibration quad. The raster is rebuilt on next read."""
        with self._lock:
            self._quad = quad

    # ------------------------------------------------------------------
    # Raster
    # ------------------------------------------------------------------

    def _current_key(self) -> Optional[CacheKey]:
        if self._image is None or self._quad is None:
            return None
        return (self._image_generation, self._quad.as_key())

    @property
    def is_stale(self) -> bool:
        """True if the next read would attempt a rebuild."""
        with self._lock:
            key = self._current_key()
            return key is not None and key != self._attempted_key

    @property
    def is_available(self) -> bool:
        """True if a raster exists and the current quad rectifies cleanly."""
        with self._lock:
            return self._raster is not None and self.last_error is None

    @property
    def raster(self) -> Optional[np.ndarray]:
        """
        Current raster, rebuilt first if the image or quad changed.

        On a degenerate quad the previously published raster (possibly None)
        is returned and ``last_error`` is set.
        """
        with self._lock:
            if self.is_stale:
                self._rebuild()
            return self._raster

    @property
    def raster_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the current raster."""
        raster = self.raster
        if raster is None:
            return None
        return (int(raster.shape[1]), int(raster.shape[0]))

    def _reuse_built(self, key: CacheKey) -> bool:
        if key != self._built_key:
            return False
        self._attempted_key = key
        self.last_error = None
        logger.debug("Published raster already matches the current state")
        return True

    def _prepare(self) -> Tuple[np.ndarray, int, int]:
        inverse_h = inverse_homography(self._quad, epsilon=self.pivot_epsilon)
        width, height = calculate_raster_size(self._quad, self.target_width)
        is_convex_quadrilateral(self._quad)
        return inverse_h, width, height

    def _rebuild(self) -> None:
        key = self._current_key()
        if self._reuse_built(key):
            return
        self._attempted_key = key

        try:
            inverse_h, width, height = self._prepare()
        except GeometryError as e:
            self.last_error = e
            logger.warning(f"Rectification unavailable, keeping previous raster: {e}")
            return

        self._publish(key, rectify_image(self._image, inverse_h, width, height))

    def _publish(self, key: CacheKey, raster: np.ndarray) -> bool:
        with self._lock:
            if key != self._current_key():
                logger.debug("Discarding stale rectification result")
                return False

            self._raster = raster
            self._built_key = key
            self._attempted_key = key
            self.last_error = None
            self.rebuild_count += 1
            logger.info(
                f"Rectified raster rebuilt ({raster.shape[1]}x{raster.shape[0]}), "
                f"rebuild #{self.rebuild_count}"
            )
            return True

    def submit_rebuild(self, executor: Executor) -> Optional["Future[np.ndarray]"]:
        """
        Build the raster for the current state on ``executor``.

        The result is published only if the image and quad are still the ones
        the build was requested for. A degenerate quad is handled as in a
        synchronous read and no future is returned.

        Returns:
            Future of the built raster, or None if nothing was submitted.
        """
        with self._lock:
            key = self._current_key()
            if key is None or self._reuse_built(key):
                return None

            self._attempted_key = key
            try:
                inverse_h, width, height = self._prepare()
            except GeometryError as e:
                self.last_error = e
                logger.warning(f"Rectification unavailable, keeping previous raster: {e}")
                return None
            image = self._image

        future = executor.submit(rectify_image, image, inverse_h, width, height)

        def _done(f: "Future[np.ndarray]") -> None:
            if f.exception() is None:
                self._publish(key, f.result())
                return
            logger.error(f"Background rectification failed: {f.exception()}")
            with self._lock:
                if self._attempted_key == key:
                    self._attempted_key = None

        future.add_done_callback(_done)
        return future

"""
Common type definitions for the kasuri measurement engine.

This module provides Pydantic-based type definitions for the data that flows
between the engine and the surrounding application: the decoded source
bitmap, the four calibration corners, the grid granularity, measurement
markers and the serializable session.

These types provide:
- Type validation and conversion
- Immutable values (every edit produces a new object)
- Integration with numpy arrays
- Lossless round-trip through JSON via ``model_dump`` / ``model_validate``
"""

import math
from typing import Any, List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SESSION_FORMAT_VERSION = "1.0"


class GeometryError(ValueError):
    """Calibration quad is degenerate (collinear or coincident corners)."""


class InvalidGridSpecError(ValueError):
    """Row or column count is non-numeric or not positive."""


class ImageBuffer(BaseModel):
    """
    Type-safe wrapper for a decoded source bitmap (numpy.ndarray).

    Attributes:
        data: The underlying numpy array containing image data.
            Shape: (H, W, C) for color images, (H, W) for grayscale.
            Channel order is RGB or RGBA. Dtype: uint8.

    Example:
        >>> buffer = ImageBuffer(data=np.zeros((200, 100, 3), dtype=np.uint8))
        >>> print(buffer.width, buffer.height)  # 100, 200
    """

    data: np.ndarray = Field(..., description="Image data as numpy array")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array is a valid image.

        Raises:
            ValueError: If array is not a valid image format.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if len(v.shape) not in (2, 3):
            raise ValueError(
                f"Expected 2D (grayscale) or 3D (color) image, got shape {v.shape}"
            )

        if len(v.shape) == 3 and v.shape[2] not in (1, 3, 4):
            raise ValueError(
                f"Expected 1, 3, or 4 channels for color image, got {v.shape[2]}"
            )

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return v

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """Get number of channels (1 for grayscale, 3 for RGB, 4 for RGBA)."""
        if len(self.data.shape) == 2:
            return 1
        return int(self.data.shape[2])

    def to_rgb(self) -> np.ndarray:
        """
        Get the pixels as an (H, W, 3) RGB array.

        Grayscale images are replicated across channels and the alpha channel
        of RGBA images is dropped.
        """
        data = self.data
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.shape[2] == 1:
            return np.repeat(data, 3, axis=2)
        return data[:, :, :3]

    def __repr__(self) -> str:
        return f"ImageBuffer(shape={self.data.shape}, dtype={self.data.dtype})"


class Point(BaseModel):
    """
    A 2D point in normalized coordinates.

    Attributes:
        x: Horizontal position as a fraction of the buffer width.
        y: Vertical position as a fraction of the buffer height.
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    @classmethod
    def from_list(cls, coords: Union[list, tuple, np.ndarray]) -> "Point":
        """
        Create Point from a sequence [x, y].

        Raises:
            ValueError: If the sequence does not contain exactly 2 elements.
        """
        if len(coords) != 2:
            raise ValueError(f"Expected list with 2 elements, got {len(coords)}")
        return cls(x=float(coords[0]), y=float(coords[1]))

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def clamped(self) -> "Point":
        """Return a copy with both coordinates clamped to [0, 1]."""
        return Point(x=min(max(self.x, 0.0), 1.0), y=min(max(self.y, 0.0), 1.0))


class CalibrationQuad(BaseModel):
    """
    The four user-marked corners of the artifact in the source photo.

    Slot order is fixed: top-left, top-right, bottom-right, bottom-left.
    Edits relocate a slot in place and never re-sort the points.

    Example:
        >>> quad = CalibrationQuad.default()
        >>> quad.move_nearest(Point(x=0.1, y=0.15)).points[0]
        Point(x=0.1, y=0.15)
    """

    model_config = ConfigDict(frozen=True)

    points: Tuple[Point, Point, Point, Point]

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, v: Any) -> Any:
        """Accept [[x, y], ...] sequences and (4, 2) arrays as well as Points."""
        if isinstance(v, np.ndarray):
            v = v.tolist()
        if isinstance(v, (list, tuple)):
            if len(v) != 4:
                raise ValueError(f"Expected exactly 4 points, got {len(v)}")
            return tuple(
                Point.from_list(p) if isinstance(p, (list, tuple, np.ndarray)) else p
                for p in v
            )
        return v

    @field_validator("points")
    @classmethod
    def _validate_range(cls, v: Tuple[Point, ...]) -> Tuple[Point, ...]:
        for i, p in enumerate(v):
            if not (0.0 <= p.x <= 1.0 and 0.0 <= p.y <= 1.0):
                raise ValueError(
                    f"Point {i} ({p.x:.3f}, {p.y:.3f}) is outside the normalized range [0, 1]"
                )
        return v

    @classmethod
    def default(cls) -> "CalibrationQuad":
        """Centered default quad used when a photo is loaded."""
        return cls(points=[[0.2, 0.2], [0.8, 0.2], [0.8, 0.8], [0.2, 0.8]])

    @classmethod
    def from_list(cls, coords: Union[list, np.ndarray]) -> "CalibrationQuad":
        return cls(points=coords)

    def to_numpy(self) -> np.ndarray:
        """Corners as a float64 array of shape (4, 2)."""
        return np.array([p.to_tuple() for p in self.points], dtype=np.float64)

    def as_key(self) -> Tuple[Tuple[float, float], ...]:
        """Hashable value identifying this geometry."""
        return tuple(p.to_tuple() for p in self.points)

    def nearest_index(self, point: Point) -> int:
        """Index of the corner closest to ``point``."""
        distances = [p.distance_to(point) for p in self.points]
        return int(np.argmin(distances))

    def with_point(self, index: int, point: Point) -> "CalibrationQuad":
        """Return a new quad with slot ``index`` moved to ``point`` (clamped)."""
        if not 0 <= index < 4:
            raise IndexError(f"Corner index {index} out of range")
        points = list(self.points)
        points[index] = point.clamped()
        return CalibrationQuad(points=tuple(points))

    def move_nearest(self, point: Point) -> "CalibrationQuad":
        """Relocate the nearest existing corner to ``point``."""
        return self.with_point(self.nearest_index(point), point)


def _coerce_count(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidGridSpecError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise InvalidGridSpecError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number) or number != int(number):
        raise InvalidGridSpecError(f"{name} must be a whole number, got {value!r}")
    if number <= 0:
        raise InvalidGridSpecError(f"{name} must be positive, got {value!r}")
    return int(number)


class GridSpec(BaseModel):
    """
    Grid granularity of the physical artifact.

    Attributes:
        rows: Total row count (thread-passes).
        cols: Total column count (thread-lanes).
    """

    model_config = ConfigDict(frozen=True)

    rows: int = Field(default=32, gt=0, description="Total row count")
    cols: int = Field(default=80, gt=0, description="Total column count")

    @classmethod
    def from_inputs(cls, rows: Any, cols: Any) -> "GridSpec":
        """
        Build a GridSpec from raw user input (text fields or numbers).

        Raises:
            InvalidGridSpecError: If either value is non-numeric or not positive.

        Example:
            >>> GridSpec.from_inputs("10", 5)
            GridSpec(rows=10, cols=5)
        """
        return cls(rows=_coerce_count(rows, "rows"), cols=_coerce_count(cols, "cols"))


class Marker(BaseModel):
    """
    A measured point in normalized rectified space with its grid cell.

    ``row`` and ``col`` are derived from the position and the GridSpec that was
    active at creation time; they are not updated when the GridSpec changes.
    """

    model_config = ConfigDict(frozen=True)

    x: float = Field(..., ge=0.0, le=1.0, description="Normalized X in rectified space")
    y: float = Field(..., ge=0.0, le=1.0, description="Normalized Y in rectified space")
    row: int = Field(..., ge=0, description="Grid row index")
    col: int = Field(..., ge=0, description="Grid column index")


class SessionData(BaseModel):
    """
    Serializable measurement session.

    Attributes:
        format_version: Version tag of the session layout.
        image_ref: Caller-owned reference to the source image (path or data URL).
        quad: Calibration corners.
        grid: Grid granularity.
        markers: Measured points in creation order.
    """

    model_config = ConfigDict(frozen=True)

    format_version: str = SESSION_FORMAT_VERSION
    image_ref: Optional[str] = None
    quad: CalibrationQuad = Field(default_factory=CalibrationQuad.default)
    grid: GridSpec = Field(default_factory=GridSpec)
    markers: List[Marker] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_version(self) -> "SessionData":
        major = self.format_version.split(".")[0]
        if major != SESSION_FORMAT_VERSION.split(".")[0]:
            raise ValueError(
                f"Unsupported session format version {self.format_version!r} "
                f"(expected {SESSION_FORMAT_VERSION})"
            )
        return self

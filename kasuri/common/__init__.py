"""
Common types shared across all modules.

Provides the validated data model for the measurement engine: source
bitmaps, calibration quads, grid specs, markers and saved sessions.
"""

from kasuri.common.types import (
    CalibrationQuad,
    GeometryError,
    GridSpec,
    ImageBuffer,
    InvalidGridSpecError,
    Marker,
    Point,
    SessionData,
)

__all__ = [
    "CalibrationQuad",
    "GeometryError",
    "GridSpec",
    "ImageBuffer",
    "InvalidGridSpecError",
    "Marker",
    "Point",
    "SessionData",
]

"""
Grid-coordinate measurement on the rectified sheet.

Pipeline stages:
1. Calibration corner editing on the source photo
2. Viewport transform (letterbox fit, zoom, pan)
3. Pointer gestures committed as normalized positions
4. Grid mapping into row/column markers
5. Session export/import
"""

from kasuri.measurement.calibration_editor import CalibrationEditor
from kasuri.measurement.config_loader import KasuriConfig, load_config
from kasuri.measurement.grid_mapper import create_marker, map_to_grid, round_half_up
from kasuri.measurement.marker_store import MarkerStore
from kasuri.measurement.processor import MeasurementProcessor
from kasuri.measurement.session import load_session, save_session
from kasuri.measurement.viewport import (
    FitTransform,
    InteractionMode,
    PointerEvent,
    PointerPhase,
    ViewportTransform,
    compute_fit,
)

__all__ = [
    "CalibrationEditor",
    "FitTransform",
    "InteractionMode",
    "KasuriConfig",
    "MarkerStore",
    "MeasurementProcessor",
    "PointerEvent",
    "PointerPhase",
    "ViewportTransform",
    "compute_fit",
    "create_marker",
    "load_config",
    "load_session",
    "map_to_grid",
    "round_half_up",
    "save_session",
]

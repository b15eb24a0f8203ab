"""
Shared Utilities

File I/O and rendering helpers used across modules.
"""

from kasuri.utils.io import load_json, save_json
from kasuri.utils.visualization import annotate_markers, draw_crosshair

__all__ = [
    "annotate_markers",
    "draw_crosshair",
    "load_json",
    "save_json",
]

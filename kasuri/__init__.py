"""
Kasuri layout-sheet measurement engine.

Rectifies a photographed, perspective-distorted layout sheet from four
user-marked corners and converts taps on the straightened image into
row/column grid coordinates.

Subpackages:
- common: shared data types (quad, grid spec, markers, session)
- geometry: linear solver, homography estimation, quad metrics
- rectification: image decoding, resampling and the rectification cache
- measurement: viewport, grid mapping, marker store and the processor
- utils: file I/O and rendering helpers
"""

__version__ = "0.1.0"

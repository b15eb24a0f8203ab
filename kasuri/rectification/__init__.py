"""
Perspective rectification of the source photo.

Pipeline stages:
1. Decode the source bitmap (optionally off the calling thread)
2. Size the target raster from the calibration quad
3. Resample via the inverse homography (nearest neighbour)
4. Cache the raster until the image or the quad changes
"""

from kasuri.rectification.cache import RectificationCache
from kasuri.rectification.image_loader import decode_image, decode_image_async
from kasuri.rectification.rectifier import calculate_raster_size, rectify_image

__all__ = [
    "RectificationCache",
    "calculate_raster_size",
    "decode_image",
    "decode_image_async",
    "rectify_image",
]

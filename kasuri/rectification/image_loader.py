"""
Source image decoding.

Turns encoded bytes (JPEG, PNG, ...) into an RGB ``ImageBuffer``. Decoding is
the only asynchronous boundary of the engine; ``decode_image_async`` returns a
single-shot future that the rectification cache subscribes to.
"""

import logging
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from kasuri.common.types import ImageBuffer

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> ImageBuffer:
    """
    Decode encoded image bytes into an RGB(A) buffer.

    Args:
        data: Encoded image file contents.

    Returns:
        ImageBuffer with RGB channel order (RGBA if the file has alpha).

    Raises:
        ValueError: If the bytes are empty or cannot be decoded.
    """
    if not data:
        raise ValueError("Could not decode image: no data")

    encoded = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(encoded, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError("Could not decode image: unsupported or corrupt data")

    if image.dtype != np.uint8:
        # 16-bit PNG/TIFF
        image = (image / 257).astype(np.uint8)

    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    elif image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    logger.debug(f"Decoded image {image.shape[1]}x{image.shape[0]}")
    return ImageBuffer(data=image)


def load_image_file(path: Union[str, Path]) -> ImageBuffer:
    """Read and decode an image file from disk."""
    return decode_image(Path(path).read_bytes())


def decode_image_async(
    data: bytes, executor: Optional[Executor] = None
) -> "Future[ImageBuffer]":
    """
    Decode image bytes, delivering the result through a future.

    Args:
        data: Encoded image file contents.
        executor: Executor to decode on. If None, decoding runs immediately
                  on the calling thread and the returned future is already done.

    Returns:
        Future resolving to the decoded ImageBuffer (or holding the decode error).
    """
    if executor is not None:
        return executor.submit(decode_image, data)

    future: "Future[ImageBuffer]" = Future()
    try:
        future.set_result(decode_image(data))
    except ValueError as e:
        future.set_exception(e)
    return future

"""
Unit tests for image_loader module.
"""

import cv2
import numpy as np
import pytest

from kasuri.common.types import ImageBuffer
from kasuri.rectification.image_loader import (
    decode_image,
    decode_image_async,
    load_image_file,
)


def _encode_png(rgb: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    assert ok
    return encoded.tobytes()


class TestDecodeImage:
    """Tests for decode_image function."""

    def test_png_decodes_to_rgb(self, sample_sheet_image):
        """Test that a PNG comes back pixel-identical in RGB order."""
        image = decode_image(_encode_png(sample_sheet_image))

        assert isinstance(image, ImageBuffer)
        assert (image.width, image.height) == (100, 200)
        np.testing.assert_array_equal(image.data, sample_sheet_image)
        assert tuple(image.data[10, 10]) == (255, 0, 0)

    def test_png_with_alpha_keeps_four_channels(self):
        """Test that an RGBA file decodes to RGBA."""
        bgra = np.zeros((4, 4, 4), dtype=np.uint8)
        bgra[:, :, 0] = 255  # blue in BGRA
        bgra[:, :, 3] = 128
        ok, encoded = cv2.imencode(".png", bgra)
        assert ok

        image = decode_image(encoded.tobytes())

        assert image.channels == 4
        assert tuple(image.data[0, 0]) == (0, 0, 255, 128)

    def test_empty_bytes(self):
        """Test that empty input is rejected."""
        with pytest.raises(ValueError, match="no data"):
            decode_image(b"")

    def test_garbage_bytes(self):
        """Test that undecodable input is rejected."""
        with pytest.raises(ValueError, match="Could not decode image"):
            decode_image(b"definitely not an image")


class TestDecodeImageAsync:
    """Tests for decode_image_async function."""

    def test_without_executor_is_done(self, sample_sheet_image):
        """Test that the inline path returns an already-completed future."""
        future = decode_image_async(_encode_png(sample_sheet_image))

        assert future.done()
        assert future.result().width == 100

    def test_without_executor_error_in_future(self):
        """Test that decode errors are delivered through the future."""
        future = decode_image_async(b"")

        assert future.done()
        assert isinstance(future.exception(), ValueError)

    def test_with_executor(self, sample_sheet_image, deferred_executor):
        """Test that decoding waits for the executor."""
        future = decode_image_async(_encode_png(sample_sheet_image), deferred_executor)

        assert not future.done()
        deferred_executor.run_all()
        assert future.result().height == 200


class TestLoadImageFile:
    """Tests for load_image_file function."""

    def test_load_from_disk(self, tmp_path, sample_sheet_image):
        """Test reading an image file."""
        path = tmp_path / "sheet.png"
        path.write_bytes(_encode_png(sample_sheet_image))

        image = load_image_file(path)

        np.testing.assert_array_equal(image.data, sample_sheet_image)

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_image_file(tmp_path / "missing.png")

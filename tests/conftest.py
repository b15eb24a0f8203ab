"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

from concurrent.futures import Executor, Future

import pytest


class DeferredExecutor(Executor):
    """Executor that queues work until ``run_all`` is called."""

    def __init__(self):
        self._pending = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self._pending.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        pending, self._pending = self._pending, []
        for future, fn, args, kwargs in pending:
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:  # delivered through the future
                future.set_exception(e)


@pytest.fixture
def deferred_executor():
    """Fixture providing an executor whose jobs run only on demand."""
    return DeferredExecutor()


@pytest.fixture
def sample_sheet_image():
    """
    Fixture providing a 100x200 (W x H) RGB image split into colored quadrants.

    Top-left red, top-right green, bottom-left blue, bottom-right white.
    """
    import cv2
    import numpy as np

    image = np.zeros((200, 100, 3), dtype=np.uint8)
    cv2.rectangle(image, (0, 0), (49, 99), (255, 0, 0), -1)
    cv2.rectangle(image, (50, 0), (99, 99), (0, 255, 0), -1)
    cv2.rectangle(image, (0, 100), (49, 199), (0, 0, 255), -1)
    cv2.rectangle(image, (50, 100), (99, 199), (255, 255, 255), -1)
    return image


@pytest.fixture
def skewed_quad():
    """Fixture providing a perspective-distorted calibration quad."""
    from kasuri.common.types import CalibrationQuad

    return CalibrationQuad(
        points=[[0.1, 0.15], [0.85, 0.05], [0.9, 0.9], [0.05, 0.8]]
    )


@pytest.fixture
def collinear_quad():
    """Fixture providing a degenerate quad whose first three corners are collinear."""
    from kasuri.common.types import CalibrationQuad

    return CalibrationQuad(points=[[0.1, 0.1], [0.5, 0.1], [0.9, 0.1], [0.1, 0.9]])

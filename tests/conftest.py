"""
Test Configuration
==================

Pytest fixtures and test configuration for MedSight.
"""

import threading
import time

import numpy as np
import pytest


RED = (200, 100, 100)
YELLOW = (220, 210, 50)
WHITE = (230, 230, 230)
BROWN = (150, 100, 30)
GREEN = (30, 200, 30)
BLUE = (30, 30, 200)
DARK = (20, 20, 20)
GRAY = (128, 128, 128)   # matches no rule in either rule set


def build_pixels(groups, total, fill=GRAY) -> np.ndarray:
    """
    Build an (N, 3) pixel list.

    Args:
        groups: Sequence of (color, count) pairs placed first
        total: Total number of pixels
        fill: Color of the remaining pixels
    """
    rows = []
    for color, count in groups:
        rows.extend([color] * count)
    if len(rows) > total:
        raise ValueError("groups exceed total pixel count")
    rows.extend([fill] * (total - len(rows)))
    return np.array(rows, dtype=np.uint8).reshape(-1, 3)


class SlowSpeaker:
    """Speaker whose `speak` blocks like a local speech engine."""

    def __init__(self, seconds: float = 0.3) -> None:
        self.seconds = seconds
        self.spoken = []
        self.threads = []
        self.stopped = False
        self._speaking = threading.Event()

    @property
    def is_speaking(self) -> bool:
        return self._speaking.is_set()

    def speak(self, text: str) -> None:
        self._speaking.set()
        self.threads.append(threading.get_ident())
        try:
            time.sleep(self.seconds)
            self.spoken.append(text)
        finally:
            self._speaking.clear()

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def pixel_frame():
    """Provide the pixel list builder."""
    return build_pixels


@pytest.fixture
def standard_classifier():
    """Provide a classifier with the standard rule set."""
    from medsight.classifier import FrameColorClassifier

    return FrameColorClassifier.from_rule_set("standard")


@pytest.fixture
def basic_classifier():
    """Provide a classifier with the basic rule set."""
    from medsight.classifier import FrameColorClassifier

    return FrameColorClassifier.from_rule_set("basic")


@pytest.fixture
def red_image_b64():
    """Provide a 16x16 base64 PNG that is entirely red-dominant."""
    from medsight.stream import encode_image_base64

    rgb = np.empty((16, 16, 3), dtype=np.uint8)
    rgb[:, :] = RED
    return encode_image_base64(rgb)


@pytest.fixture
def gray_image_b64():
    """Provide a 16x16 base64 PNG that matches no rule."""
    from medsight.stream import encode_image_base64

    rgb = np.empty((16, 16, 3), dtype=np.uint8)
    rgb[:, :] = GRAY
    return encode_image_base64(rgb)

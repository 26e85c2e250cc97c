"""
Frame Sources
=============

Camera capture abstraction for the guidance monitor.

The monitor never talks to a camera directly; it asks a FrameSource for
the current frame as an RGB array. This keeps the analysis loop testable
without hardware.

Implementations:
    - SyntheticFrameSource: Deterministic generated frames (demo, tests)
    - StreamFrameSource: Newest frame from a WebSocket-fed FrameBuffer
"""

import logging
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np

from medsight.stream.buffer import FrameBuffer
from medsight.stream.image_decoder import decode_frame_rgb


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame capture backends.

    `read_frame` returns the current frame as an RGB array of shape
    (H, W, 3), or None when no frame is available yet.
    """

    async def read_frame(self) -> Optional[np.ndarray]:
        ...


class SyntheticFrameSource:
    """
    Generated frames for demos and tests.

    Produces a frame filled with `base_color`, optionally with a centered
    patch of `patch_color` covering `patch_fraction` of the pixels.
    The patch can be changed at runtime to simulate the camera moving
    over a different area.
    """

    def __init__(
        self,
        width: int = 64,
        height: int = 48,
        base_color: Sequence[int] = (128, 128, 128),
        patch_color: Optional[Sequence[int]] = None,
        patch_fraction: float = 0.0,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError("width and height must be >= 1")
        self.width = width
        self.height = height
        self.base_color = tuple(base_color)
        self.frames_generated = 0
        self.set_patch(patch_color, patch_fraction)

    def set_patch(self, color: Optional[Sequence[int]], fraction: float) -> None:
        """Replace the colored patch (None or 0 removes it)."""
        if not 0.0 <= fraction <= 1.0:
            raise ValueError("fraction must be in [0, 1]")
        self.patch_color: Optional[Tuple[int, ...]] = tuple(color) if color is not None else None
        self.patch_fraction = fraction

    def render(self) -> np.ndarray:
        """Build the current frame as an (H, W, 3) uint8 array."""
        frame = np.empty((self.height, self.width, 3), dtype=np.uint8)
        frame[:, :] = self.base_color

        if self.patch_color is not None and self.patch_fraction > 0:
            # Contiguous run of the flattened frame keeps the pixel count exact
            patch_pixels = int(round(self.patch_fraction * self.width * self.height))
            flat = frame.reshape(-1, 3)
            start = (flat.shape[0] - patch_pixels) // 2
            flat[start:start + patch_pixels] = self.patch_color

        return frame

    async def read_frame(self) -> Optional[np.ndarray]:
        self.frames_generated += 1
        return self.render()


class StreamFrameSource:
    """
    Frame source backed by a FrameBuffer filled by a FrameConsumer.

    Each read drains the buffer and decodes only the newest frame, so
    analysis never falls behind the live stream. Returns None until a
    frame has arrived.
    """

    def __init__(self, buffer: FrameBuffer) -> None:
        self.buffer = buffer
        self.last_frame_id: int = -1

    async def read_frame(self) -> Optional[np.ndarray]:
        frame = self.buffer.latest()
        if frame is None:
            return None
        self.last_frame_id = frame.frame_id
        return decode_frame_rgb(frame)

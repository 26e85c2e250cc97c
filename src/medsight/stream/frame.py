"""
Camera Frame
============

One encoded camera frame as received from the frame stream.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Encoded camera frame plus the metadata sent with it.

    Attributes:
        frame_id: Sender's frame counter
        timestamp: Capture time (UNIX seconds)
        fps: Capture rate the sender reports, 0 if not reported
        image_b64: Base64 JPEG/PNG, decoded only when the frame is analyzed
    """

    frame_id: int
    timestamp: float
    fps: int
    image_b64: str

    def __repr__(self) -> str:
        return (
            f"Frame(frame_id={self.frame_id}, timestamp={self.timestamp:.3f}, "
            f"fps={self.fps}, image={len(self.image_b64)} chars)"
        )

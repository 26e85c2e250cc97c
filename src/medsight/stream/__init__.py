"""
Stream Module
=============

Camera frame ingestion components.

    - Frame: Typed frame data model (internal representation)
    - FrameBuffer: Async-safe bounded queue (drops oldest on overflow)
    - FrameConsumer: WebSocket client with validation and reconnection
    - decode_*: The only image decoding entry points

Example:
    from medsight.stream import FrameBuffer, FrameConsumer

    buffer = FrameBuffer(maxsize=5)
    consumer = FrameConsumer(url="ws://localhost:8000/ws/camera", buffer=buffer)
    task = asyncio.create_task(consumer.run())
"""

from medsight.stream.frame import Frame
from medsight.stream.buffer import FrameBuffer
from medsight.stream.consumer import FrameConsumer, FrameConsumerMetrics
from medsight.stream.image_decoder import (
    ImageDecodeError,
    decode_base64_image,
    decode_frame_rgb,
    decode_image_bytes,
    encode_image_base64,
)


__all__ = [
    "Frame",
    "FrameBuffer",
    "FrameConsumer",
    "FrameConsumerMetrics",
    "ImageDecodeError",
    "decode_base64_image",
    "decode_frame_rgb",
    "decode_image_bytes",
    "encode_image_base64",
]

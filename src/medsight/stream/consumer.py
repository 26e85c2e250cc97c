"""
Frame Consumer
==============

WebSocket client that feeds camera frames into a FrameBuffer.

The camera page (or a capture sidecar) publishes JSON messages:

    {"frame_id": 12, "timestamp": 1707321234.5, "fps": 15, "image": "<base64>"}

Design Rules:
    - Image payloads are passed through untouched; decoding happens
      later, and only for the frame that actually gets analyzed
    - Out-of-order frames are counted and kept, malformed ones dropped
    - The connection is re-established after a fixed backoff until
      stop() is called or the attempt limit is reached
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, InvalidHandshake

from medsight.stream.buffer import FrameBuffer
from medsight.stream.frame import Frame


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FrameConsumerMetrics:
    """Counters exposed on /metrics."""

    frames_received: int = 0
    reconnect_count: int = 0
    last_frame_id: int = -1
    last_timestamp: float = 0.0
    validation_warnings: int = 0
    parse_errors: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class FrameConsumer:
    """
    Camera stream client.

    Example:
        buffer = FrameBuffer(maxsize=5)
        consumer = FrameConsumer(url="ws://localhost:8000/ws/camera", buffer=buffer)

        task = asyncio.create_task(consumer.run())
        ...
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        buffer: FrameBuffer,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Args:
            url: WebSocket URL of the camera stream
            buffer: Destination for parsed frames
            reconnect_backoff_ms: Pause between connection attempts
            max_reconnect_attempts: Give up after this many reconnects (0 = never)
        """
        self.url = url
        self.buffer = buffer
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self.metrics = FrameConsumerMetrics()

        self._ws = None
        self._connected = False
        self._stopping = asyncio.Event()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def _attempts_exhausted(self) -> bool:
        limit = self.max_reconnect_attempts
        return limit > 0 and self.metrics.reconnect_count >= limit

    async def run(self) -> None:
        """Consume until stop() is called or reconnects are exhausted."""
        self._stopping.clear()
        logger.info(f"FrameConsumer connecting to {self.url}")

        while not self._stopping.is_set():
            try:
                await self._consume()
            except (OSError, asyncio.TimeoutError, ConnectionClosed, InvalidHandshake) as e:
                if self._stopping.is_set():
                    break
                logger.error(f"Camera stream connection failed: {e}")
            else:
                if self._stopping.is_set():
                    break

            self._connected = False
            if self._attempts_exhausted:
                logger.error(
                    f"Giving up on camera stream after "
                    f"{self.metrics.reconnect_count} reconnect attempts"
                )
                break
            if await self._backoff():
                break

        logger.info("FrameConsumer stopped")

    async def _backoff(self) -> bool:
        """Wait before reconnecting. Returns True if stop() interrupted the wait."""
        self.metrics.reconnect_count += 1
        delay = self.reconnect_backoff_ms / 1000.0
        logger.info(f"Reconnect attempt {self.metrics.reconnect_count} in {delay:.1f}s")
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        logger.info("FrameConsumer stopping...")
        self._stopping.set()
        if self._ws is not None:
            try:
                await self._ws.close()
            except ConnectionClosed:
                pass
        self._connected = False

    async def _consume(self) -> None:
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._ws = ws
            self._connected = True
            logger.info(f"Camera stream connected: {self.url}")
            try:
                async for raw in ws:
                    if self._stopping.is_set():
                        break
                    frame = self.parse_message(raw)
                    if frame is not None:
                        await self._accept(frame)
            except ConnectionClosedOK:
                logger.info("Camera stream closed by server")
            finally:
                self._connected = False
                self._ws = None

    async def _accept(self, frame: Frame) -> None:
        await self.buffer.put(frame)
        self.metrics.frames_received += 1
        self.metrics.last_frame_id = frame.frame_id
        self.metrics.last_timestamp = frame.timestamp

    def parse_message(self, raw: Union[str, bytes]) -> Optional[Frame]:
        """
        Turn one WebSocket message into a Frame.

        Returns:
            The frame, or None if the message is malformed. Frames that
            arrive out of order are still returned.
        """
        try:
            data = json.loads(raw)
            frame = Frame(
                frame_id=int(data["frame_id"]),
                timestamp=float(data["timestamp"]),
                fps=int(data.get("fps", 0)),
                image_b64=str(data["image"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            self.metrics.parse_errors += 1
            logger.error(f"Dropping malformed camera message: {e}")
            return None

        self._check_order(frame)
        return frame

    def _check_order(self, frame: Frame) -> None:
        previous_id = self.metrics.last_frame_id
        previous_ts = self.metrics.last_timestamp

        if previous_id >= 0 and frame.frame_id <= previous_id:
            self.metrics.validation_warnings += 1
            logger.warning(f"Frame {frame.frame_id} arrived after frame {previous_id}")

        if previous_ts > 0 and frame.timestamp < previous_ts:
            self.metrics.validation_warnings += 1
            logger.warning(
                f"Frame {frame.frame_id} timestamp {frame.timestamp:.3f} "
                f"is older than {previous_ts:.3f}"
            )

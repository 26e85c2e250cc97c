"""
Frame Buffer
============

Bounded hand-off between the camera stream consumer and the guidance
monitor.

The monitor only ever analyzes the newest frame, so when the buffer is
full the oldest frame is discarded to make room. Memory use is capped
at `maxsize` frames no matter how slowly analysis runs.
"""

import asyncio
import logging
from typing import Optional

from medsight.stream.frame import Frame


logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Drop-oldest frame queue.

    Example:
        buffer = FrameBuffer(maxsize=5)
        await buffer.put(frame)      # producer
        newest = buffer.latest()     # monitor
    """

    def __init__(self, maxsize: int = 5) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        self._maxsize = maxsize
        self._queue: asyncio.Queue[Frame] = asyncio.Queue(maxsize=maxsize)
        self._dropped = 0
        self._total_put = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def size(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        """Frames discarded because the buffer was full."""
        return self._dropped

    @property
    def total_put(self) -> int:
        return self._total_put

    async def put(self, frame: Frame) -> bool:
        """
        Enqueue a frame.

        Returns:
            False if an older frame had to be discarded, True otherwise.
        """
        self._total_put += 1
        evicted = self._queue.full() and self.get_nowait() is not None
        if evicted:
            self._dropped += 1
            logger.debug(f"Frame buffer full, evicted oldest ({self._dropped} dropped so far)")
        self._queue.put_nowait(frame)
        return not evicted

    async def get(self, timeout: Optional[float] = None) -> Optional[Frame]:
        """Oldest buffered frame, waiting up to `timeout` seconds (None waits forever)."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> Optional[Frame]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def latest(self) -> Optional[Frame]:
        """Empty the buffer and return the newest frame (None if it was empty)."""
        newest = None
        while (frame := self.get_nowait()) is not None:
            newest = frame
        return newest

    def clear(self) -> int:
        """Discard everything buffered. Returns the number of frames removed."""
        removed = 0
        while self.get_nowait() is not None:
            removed += 1
        return removed

    def metrics(self) -> dict:
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "dropped_count": self._dropped,
            "total_put": self._total_put,
        }

"""
Stream Ingestion Tests
======================

Frame buffer policy, message parsing and image decoding.
"""

import asyncio
import base64
import json

import numpy as np
import pytest

from medsight.stream import (
    Frame,
    FrameBuffer,
    FrameConsumer,
    ImageDecodeError,
    decode_base64_image,
    decode_frame_rgb,
    decode_image_bytes,
    encode_image_base64,
)

from conftest import GRAY, RED


def _frame(frame_id: int, image_b64: str = "") -> Frame:
    return Frame(frame_id=frame_id, timestamp=1700000000.0 + frame_id, fps=15, image_b64=image_b64)


class TestFrame:

    def test_repr_hides_image(self):
        frame = _frame(3, image_b64="A" * 1000)
        assert "AAAA" not in repr(frame)
        assert "frame_id=3" in repr(frame)


class TestFrameBuffer:
    """Drop-oldest bounded queue."""

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError):
            FrameBuffer(maxsize=0)

    def test_drops_oldest_on_overflow(self):
        async def scenario():
            buffer = FrameBuffer(maxsize=2)
            results = [await buffer.put(_frame(i)) for i in range(4)]
            first = await buffer.get(timeout=0.1)
            return buffer, results, first

        buffer, results, first = asyncio.run(scenario())

        assert results == [True, True, False, False]
        assert buffer.dropped_count == 2
        assert buffer.total_put == 4
        assert first.frame_id == 2

    def test_latest_drains_buffer(self):
        async def scenario():
            buffer = FrameBuffer(maxsize=5)
            for i in range(3):
                await buffer.put(_frame(i))
            return buffer, buffer.latest()

        buffer, newest = asyncio.run(scenario())

        assert newest.frame_id == 2
        assert buffer.size == 0
        assert buffer.latest() is None

    def test_get_timeout_returns_none(self):
        async def scenario():
            return await FrameBuffer().get(timeout=0.01)

        assert asyncio.run(scenario()) is None

    def test_clear(self):
        async def scenario():
            buffer = FrameBuffer(maxsize=5)
            for i in range(3):
                await buffer.put(_frame(i))
            return buffer.clear(), buffer.metrics()

        cleared, metrics = asyncio.run(scenario())

        assert cleared == 3
        assert metrics["size"] == 0
        assert metrics["total_put"] == 3


class TestFrameConsumerParsing:
    """Message validation without a network connection."""

    @pytest.fixture
    def consumer(self):
        return FrameConsumer(url="ws://localhost:9/ws/camera", buffer=FrameBuffer())

    def test_valid_message(self, consumer):
        raw = json.dumps({"frame_id": 7, "timestamp": 1700000000.5, "fps": 15, "image": "abc"})

        frame = consumer.parse_message(raw)

        assert frame == Frame(frame_id=7, timestamp=1700000000.5, fps=15, image_b64="abc")
        assert consumer.metrics.parse_errors == 0

    def test_fps_is_optional(self, consumer):
        frame = consumer.parse_message(json.dumps({"frame_id": 1, "timestamp": 1.0, "image": "x"}))
        assert frame.fps == 0

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps({"timestamp": 1.0, "image": "x"}),
            json.dumps({"frame_id": "seven", "timestamp": 1.0, "image": "x"}),
            json.dumps([1, 2, 3]),
        ],
    )
    def test_invalid_messages_are_dropped(self, consumer, raw):
        assert consumer.parse_message(raw) is None
        assert consumer.metrics.parse_errors == 1

    def test_out_of_order_frames_are_kept_with_warning(self, consumer):
        consumer.metrics.last_frame_id = 10
        consumer.metrics.last_timestamp = 100.0

        frame = consumer.parse_message(json.dumps({"frame_id": 9, "timestamp": 99.0, "image": "x"}))

        assert frame is not None
        assert consumer.metrics.validation_warnings == 2

    def test_not_connected_initially(self, consumer):
        assert not consumer.connected


class TestFrameConsumerReconnect:
    """Connection loop against an address where nothing is listening."""

    UNREACHABLE = "ws://127.0.0.1:9/ws/camera"

    def test_gives_up_after_max_attempts(self):
        consumer = FrameConsumer(
            url=self.UNREACHABLE,
            buffer=FrameBuffer(),
            reconnect_backoff_ms=10,
            max_reconnect_attempts=2,
        )

        asyncio.run(asyncio.wait_for(consumer.run(), timeout=5))

        assert consumer.metrics.reconnect_count == 2
        assert consumer.metrics.frames_received == 0
        assert not consumer.connected

    def test_stop_interrupts_backoff(self):
        consumer = FrameConsumer(
            url=self.UNREACHABLE,
            buffer=FrameBuffer(),
            reconnect_backoff_ms=10_000,
        )

        async def scenario():
            task = asyncio.create_task(consumer.run())
            while consumer.metrics.reconnect_count == 0:
                await asyncio.sleep(0.01)
            await consumer.stop()
            await asyncio.wait_for(task, timeout=2)

        asyncio.run(asyncio.wait_for(scenario(), timeout=5))

        assert consumer.metrics.reconnect_count == 1
        assert not consumer.connected


class TestImageDecoder:
    """Base64 / bytes decoding to RGB."""

    def _image(self, color, shape=(4, 6)) -> np.ndarray:
        rgb = np.empty((*shape, 3), dtype=np.uint8)
        rgb[:, :] = color
        return rgb

    def test_png_round_trip_keeps_rgb_order(self):
        encoded = encode_image_base64(self._image(RED))

        decoded = decode_base64_image(encoded)

        assert decoded.shape == (4, 6, 3)
        assert decoded.dtype == np.uint8
        assert tuple(decoded[0, 0]) == RED

    def test_data_url_prefix(self):
        encoded = "data:image/png;base64," + encode_image_base64(self._image(GRAY))

        assert tuple(decode_base64_image(encoded)[2, 3]) == GRAY

    def test_decode_frame(self):
        frame = _frame(5, image_b64=encode_image_base64(self._image(RED)))

        assert decode_frame_rgb(frame).shape == (4, 6, 3)

    def test_invalid_base64(self):
        with pytest.raises(ImageDecodeError):
            decode_base64_image("not base64 at all!!")

    def test_base64_of_non_image(self):
        with pytest.raises(ImageDecodeError):
            decode_base64_image(base64.b64encode(b"hello world").decode())

    def test_empty_bytes(self):
        with pytest.raises(ImageDecodeError):
            decode_image_bytes(b"")

    def test_error_names_the_frame(self):
        with pytest.raises(ImageDecodeError, match="frame 42"):
            decode_frame_rgb(_frame(42, image_b64=base64.b64encode(b"junk").decode()))

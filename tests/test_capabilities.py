"""
Capability Backend Tests
========================

Frame sources, speakers and transcribers.
"""

import asyncio
import threading

import numpy as np
import pytest

from medsight.capabilities import (
    LoggingSpeaker,
    ScriptedTranscriber,
    StreamFrameSource,
    SyntheticFrameSource,
    create_speaker,
    speak_in_thread,
)
from medsight.stream import Frame, FrameBuffer, encode_image_base64

from conftest import GRAY, RED, SlowSpeaker


class TestSyntheticFrameSource:

    def test_plain_frame(self):
        source = SyntheticFrameSource(width=8, height=6, base_color=GRAY)

        frame = asyncio.run(source.read_frame())

        assert frame.shape == (6, 8, 3)
        assert frame.dtype == np.uint8
        assert np.all(frame == GRAY)
        assert source.frames_generated == 1

    def test_patch_pixel_count_is_exact(self):
        source = SyntheticFrameSource(width=64, height=48, patch_color=RED, patch_fraction=0.25)

        frame = source.render()

        red_pixels = np.all(frame.reshape(-1, 3) == RED, axis=1).sum()
        assert red_pixels == 768

    def test_patch_classifies_as_red(self, standard_classifier):
        source = SyntheticFrameSource(patch_color=RED, patch_fraction=0.25)

        result = standard_classifier.classify(source.render())

        assert result.code.value == "RED_DOMINANT"
        assert result.coverage == pytest.approx(25.0)

    def test_set_patch_can_remove_patch(self, standard_classifier):
        source = SyntheticFrameSource(patch_color=RED, patch_fraction=0.5)
        source.set_patch(None, 0.0)

        assert not standard_classifier.classify(source.render()).detected

    @pytest.mark.parametrize("fraction", [-0.1, 1.5])
    def test_set_patch_rejects_bad_fraction(self, fraction):
        with pytest.raises(ValueError):
            SyntheticFrameSource().set_patch(RED, fraction)

    def test_rejects_empty_dimensions(self):
        with pytest.raises(ValueError):
            SyntheticFrameSource(width=0)


class TestStreamFrameSource:

    def test_empty_buffer_returns_none(self):
        async def scenario():
            return await StreamFrameSource(FrameBuffer()).read_frame()

        assert asyncio.run(scenario()) is None

    def test_decodes_newest_frame(self):
        red = np.empty((4, 4, 3), dtype=np.uint8)
        red[:, :] = RED
        gray = np.empty((4, 4, 3), dtype=np.uint8)
        gray[:, :] = GRAY

        async def scenario():
            buffer = FrameBuffer(maxsize=5)
            await buffer.put(Frame(1, 1.0, 15, encode_image_base64(gray)))
            await buffer.put(Frame(2, 2.0, 15, encode_image_base64(red)))
            source = StreamFrameSource(buffer)
            return source, await source.read_frame()

        source, frame = asyncio.run(scenario())

        assert source.last_frame_id == 2
        assert tuple(frame[0, 0]) == RED


class TestSpeech:

    def test_logging_speaker_records_utterances(self):
        speaker = LoggingSpeaker(max_history=2)

        speaker.speak("one")
        speaker.speak("")
        speaker.speak("two")
        speaker.speak("three")

        assert [u.text for u in speaker.utterances] == ["two", "three"]
        assert speaker.last_utterance.text == "three"
        assert not speaker.is_speaking

    def test_logging_speaker_never_reports_playback(self):
        speaker = LoggingSpeaker()

        speaker.speak("Apply pressure to the wound")
        assert not speaker.is_speaking

        speaker.stop()
        assert not speaker.is_speaking
        assert speaker.last_utterance.text == "Apply pressure to the wound"

    def test_speak_in_thread_runs_off_the_loop(self):
        speaker = SlowSpeaker(seconds=0.05)

        async def scenario():
            loop_thread = threading.get_ident()
            await speak_in_thread(speaker, "check pulse")
            return loop_thread

        loop_thread = asyncio.run(scenario())

        assert speaker.spoken == ["check pulse"]
        assert speaker.threads and speaker.threads[0] != loop_thread

    def test_scripted_transcriber(self):
        transcriber = ScriptedTranscriber("check pulse")

        assert asyncio.run(transcriber.transcribe(b"")) == "check pulse"

    def test_create_log_speaker(self):
        assert isinstance(create_speaker("log"), LoggingSpeaker)

    def test_create_unknown_speaker(self):
        with pytest.raises(ValueError):
            create_speaker("espeak-ng")

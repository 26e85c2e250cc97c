"""
Speech Capabilities
===================

Text-to-speech and speech-to-text abstractions.

Speech is a host-platform capability. The service depends only on the
two protocols below so the voice and guidance logic can run headless
and under test.

Implementations:
    - LoggingSpeaker: Records and logs utterances; clients read them
      from the API and speak them with their own synthesis engine
    - Pyttsx3Speaker: Local offline synthesis (requires pyttsx3)
    - ScriptedTranscriber: Returns a fixed transcript, used when no
      speech recognizer is available

`speak()` may block for as long as playback lasts (pyttsx3). Async
callers go through `speak_in_thread` so the event loop keeps running.
"""

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Protocol


logger = logging.getLogger(__name__)


class SpeechSpeaker(Protocol):
    """Protocol for text-to-speech backends."""

    @property
    def is_speaking(self) -> bool:
        ...

    def speak(self, text: str) -> None:
        ...

    def stop(self) -> None:
        ...


class AudioTranscriber(Protocol):
    """Protocol for speech recognition backends."""

    async def transcribe(self, audio: bytes) -> str:
        ...


@dataclass(frozen=True, slots=True)
class Utterance:
    """One piece of text handed to a speaker."""

    text: str
    timestamp: float

    def to_dict(self) -> dict:
        return {"text": self.text, "timestamp": round(self.timestamp, 3)}


class LoggingSpeaker:
    """
    Speaker that logs utterances and keeps the most recent ones.

    Nothing is played locally: `speak` returns as soon as the utterance
    is recorded, so `is_speaking` is always False.

    Attributes:
        max_history: Number of utterances retained
    """

    def __init__(self, max_history: int = 20) -> None:
        self._history: Deque[Utterance] = deque(maxlen=max_history)

    @property
    def is_speaking(self) -> bool:
        return False

    @property
    def utterances(self) -> List[Utterance]:
        """Utterances, oldest first."""
        return list(self._history)

    @property
    def last_utterance(self) -> Optional[Utterance]:
        return self._history[-1] if self._history else None

    def speak(self, text: str) -> None:
        if not text:
            return
        self._history.append(Utterance(text=text, timestamp=time.time()))
        logger.info(f"Speaking: {text}")

    def stop(self) -> None:
        logger.debug("LoggingSpeaker stop requested (nothing playing)")


class Pyttsx3Speaker:
    """
    Offline text-to-speech through pyttsx3.

    `rate` is relative to the engine's default words-per-minute, matching
    the browser SpeechSynthesis convention (1.0 = normal).
    """

    def __init__(self, rate: float = 0.8, volume: float = 1.0) -> None:
        import pyttsx3

        self._engine = pyttsx3.init()
        base_rate = self._engine.getProperty("rate")
        self._engine.setProperty("rate", int(base_rate * rate))
        self._engine.setProperty("volume", volume)
        self._speaking = False
        # pyttsx3 engines are not safe to drive from two threads at once
        self._lock = threading.Lock()

        logger.info(f"Pyttsx3Speaker initialized: rate={rate}, volume={volume}")

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    def speak(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self._speaking = True
            try:
                self._engine.say(text)
                self._engine.runAndWait()
            finally:
                self._speaking = False

    def stop(self) -> None:
        self._engine.stop()
        self._speaking = False


async def speak_in_thread(speaker: SpeechSpeaker, text: str) -> None:
    """Run a possibly blocking `speaker.speak` off the event loop."""
    await asyncio.to_thread(speaker.speak, text)


class ScriptedTranscriber:
    """
    Transcriber that always "hears" a configured phrase.

    Mirrors the behaviour of hosts without speech recognition: after a
    short listening delay a fixed transcript is returned.
    """

    def __init__(self, transcript: str = "chest compression", delay_seconds: float = 0.0) -> None:
        self.transcript = transcript
        self.delay_seconds = delay_seconds

    async def transcribe(self, audio: bytes) -> str:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        return self.transcript


def create_speaker(backend: str, rate: float = 0.8, volume: float = 1.0):
    """
    Create a speaker for the configured backend.

    Raises:
        ValueError: If the backend name is unknown
        RuntimeError: If pyttsx3 is requested but not installed
    """
    if backend == "log":
        return LoggingSpeaker()

    if backend == "pyttsx3":
        try:
            return Pyttsx3Speaker(rate=rate, volume=volume)
        except ImportError:
            raise RuntimeError(
                "pyttsx3 backend requested but pyttsx3 not installed. "
                "Install with: pip install 'medsight[speech]'"
            )

    raise ValueError(f"Unknown speech backend: {backend}")

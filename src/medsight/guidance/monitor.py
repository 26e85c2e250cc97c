"""
Guidance Monitor
================

Timer-driven caller of the frame color classifier.

While recording, the monitor samples its FrameSource every
`interval_seconds`, classifies the frame and publishes the result.
Newly detected conditions are read aloud through a SpeechSpeaker.

Concurrency:
    - At most one analysis is in flight per monitor. A tick that fires
      while the previous analysis is still running is skipped.
    - Classification runs in a worker thread; the classifier is pure,
      so no extra locking is needed around it.
    - Speech runs in a worker thread after the analysis lock is released,
      so a slow speech engine never stalls the event loop or the next tick.
    - Frame source, classification and speech errors are logged and
      counted; none of them stop the loop.
"""

import asyncio
import logging
import time
from typing import Optional, Set

from medsight.capabilities.frame_source import FrameSource
from medsight.capabilities.speech import SpeechSpeaker, speak_in_thread
from medsight.classifier.frame_classifier import FrameColorClassifier
from medsight.models.classification import ClassificationResult, NO_CONDITION
from medsight.models.condition_codes import ConditionCode


logger = logging.getLogger(__name__)


class GuidanceMonitorMetrics:
    """Counters for GuidanceMonitor observability."""

    __slots__ = (
        "frames_analyzed",
        "detections",
        "skipped_ticks",
        "empty_reads",
        "source_errors",
        "classify_errors",
        "announcements",
        "speech_errors",
    )

    def __init__(self) -> None:
        self.frames_analyzed: int = 0
        self.detections: int = 0
        self.skipped_ticks: int = 0
        self.empty_reads: int = 0
        self.source_errors: int = 0
        self.classify_errors: int = 0
        self.announcements: int = 0
        self.speech_errors: int = 0

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__slots__}


class GuidanceMonitor:
    """
    Periodic frame analysis with spoken alerts.

    Attributes:
        classifier: Frame color classifier
        frame_source: Where frames come from
        speaker: Speech output, or None for silent operation
        interval_seconds: Seconds between analyses
        speak_results: Whether detections are read aloud

    Example:
        monitor = GuidanceMonitor(classifier, SyntheticFrameSource(), LoggingSpeaker())
        await monitor.start()
        ...
        print(monitor.latest)
        await monitor.stop()
    """

    def __init__(
        self,
        classifier: FrameColorClassifier,
        frame_source: FrameSource,
        speaker: Optional[SpeechSpeaker] = None,
        interval_seconds: float = 3.0,
        speak_results: bool = True,
        log_every_n_frames: int = 20,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.classifier = classifier
        self.frame_source = frame_source
        self.speaker = speaker
        self.interval_seconds = interval_seconds
        self.speak_results = speak_results
        self.log_every_n_frames = log_every_n_frames

        self._recording: bool = False
        self._paused: bool = False
        self._loop_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._analysis_lock = asyncio.Lock()

        self._latest: ClassificationResult = NO_CONDITION
        self._last_analysis_time: Optional[float] = None
        self._last_spoken: Optional[ConditionCode] = None

        self.metrics = GuidanceMonitorMetrics()

        logger.info(
            f"GuidanceMonitor initialized: interval={interval_seconds}s, "
            f"speak_results={speak_results}"
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def latest(self) -> ClassificationResult:
        """Most recent classification (NO_CONDITION before the first one)."""
        return self._latest

    @property
    def analysis_in_flight(self) -> bool:
        return self._analysis_lock.locked()

    def status(self) -> dict:
        """Snapshot of monitor state for the API."""
        return {
            "recording": self._recording,
            "paused": self._paused,
            "interval_seconds": self.interval_seconds,
            "analysis_in_flight": self.analysis_in_flight,
            "last_analysis_time": self._last_analysis_time,
            "latest": self._latest.to_dict(),
            "metrics": self.metrics.to_dict(),
        }

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Begin periodic analysis. No-op if already recording."""
        if self._recording:
            return
        self._recording = True
        self._paused = False
        self._loop_task = asyncio.create_task(self._run(), name="guidance_monitor")
        logger.info("Guidance monitor started")

    async def stop(self) -> None:
        """Stop periodic analysis and cancel any analysis in flight."""
        self._recording = False
        self._paused = False

        for task in (self._loop_task, *self._pending):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._loop_task = None
        self._pending.clear()
        if self.speaker is not None:
            self.speaker.stop()
        logger.info("Guidance monitor stopped")

    def pause(self) -> None:
        """Suspend analysis ticks without stopping the loop."""
        if self._recording:
            self._paused = True
            logger.info("Guidance monitor paused")

    def resume(self) -> None:
        if self._recording and self._paused:
            self._paused = False
            logger.info("Guidance monitor resumed")

    async def reset(self) -> None:
        """Stop, forget previous results and start again."""
        await self.stop()
        self._latest = NO_CONDITION
        self._last_spoken = None
        self._last_analysis_time = None
        await self.start()

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    async def analyze_once(self) -> Optional[ClassificationResult]:
        """
        Run one read -> classify -> publish cycle.

        Returns:
            The classification, or None if the cycle was skipped (analysis
            already in flight, no frame available, frame source error or
            unclassifiable frame).
        """
        if self._analysis_lock.locked():
            self.metrics.skipped_ticks += 1
            logger.warning("Previous analysis still running, skipping tick")
            return None

        async with self._analysis_lock:
            try:
                frame = await self.frame_source.read_frame()
            except Exception as e:
                self.metrics.source_errors += 1
                logger.error(f"Frame source error: {e}")
                return None

            if frame is None:
                self.metrics.empty_reads += 1
                logger.debug("No frame available yet")
                return None

            try:
                result = await asyncio.to_thread(self.classifier.classify, frame)
            except Exception as e:
                self.metrics.classify_errors += 1
                logger.error(f"Frame classification failed: {e}")
                return None

            announce = self._record(result)

        if announce:
            await self._announce(result)
        return result

    def _record(self, result: ClassificationResult) -> bool:
        """Publish a result. Returns True if it should be announced."""
        self._latest = result
        self._last_analysis_time = time.time()
        self.metrics.frames_analyzed += 1

        announce = False
        if result.detected:
            self.metrics.detections += 1
            if result.code != self._last_spoken:
                logger.info(
                    f"Condition detected: {result.condition} "
                    f"({result.coverage:.1f}% of frame)"
                )
                self._last_spoken = result.code
                announce = True
        else:
            self._last_spoken = None

        if self.metrics.frames_analyzed % self.log_every_n_frames == 0:
            logger.info(
                f"Guidance [frame {self.metrics.frames_analyzed}]: "
                f"latest={self._latest!r}, detections={self.metrics.detections}, "
                f"skipped={self.metrics.skipped_ticks}"
            )
        return announce

    async def _announce(self, result: ClassificationResult) -> None:
        if not self.speak_results or self.speaker is None:
            return
        try:
            await speak_in_thread(self.speaker, result.message)
        except Exception as e:
            self.metrics.speech_errors += 1
            logger.error(f"Speech output failed: {e}")
            return
        self.metrics.announcements += 1

    async def _run(self) -> None:
        """Timer loop: launch one analysis per tick while recording."""
        try:
            while self._recording:
                if not self._paused:
                    if self._analysis_lock.locked():
                        self.metrics.skipped_ticks += 1
                        logger.warning("Previous analysis still running, skipping tick")
                    else:
                        task = asyncio.create_task(
                            self.analyze_once(),
                            name="guidance_analysis",
                        )
                        self._pending.add(task)
                        task.add_done_callback(self._pending.discard)
                await asyncio.sleep(self.interval_seconds)
        except asyncio.CancelledError:
            logger.debug("Guidance loop cancelled")
            raise

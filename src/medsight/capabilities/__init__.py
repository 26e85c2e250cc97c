"""
Capabilities Module
===================

Host-platform capability abstractions (camera, speech).

Components:
    - FrameSource: Protocol for frame capture
    - SyntheticFrameSource / StreamFrameSource: Frame source backends
    - SpeechSpeaker / AudioTranscriber: Speech protocols
    - LoggingSpeaker / Pyttsx3Speaker / ScriptedTranscriber: Speech backends
"""

from medsight.capabilities.frame_source import (
    FrameSource,
    StreamFrameSource,
    SyntheticFrameSource,
)
from medsight.capabilities.speech import (
    AudioTranscriber,
    LoggingSpeaker,
    Pyttsx3Speaker,
    ScriptedTranscriber,
    SpeechSpeaker,
    Utterance,
    create_speaker,
    speak_in_thread,
)

__all__ = [
    "FrameSource",
    "SyntheticFrameSource",
    "StreamFrameSource",
    "SpeechSpeaker",
    "AudioTranscriber",
    "Utterance",
    "LoggingSpeaker",
    "Pyttsx3Speaker",
    "ScriptedTranscriber",
    "create_speaker",
    "speak_in_thread",
]

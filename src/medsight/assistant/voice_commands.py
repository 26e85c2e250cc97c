"""
Voice Commands
==============

Maps recognized speech to canned procedure guidance.

Matching rules:
    - Case-insensitive
    - A command matches when the transcript contains the command phrase
      OR the command phrase contains the transcript
    - Commands are tested in table order; the first match wins
    - No match yields a fixed fallback response
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional, Sequence, Tuple

from medsight.capabilities.speech import SpeechSpeaker, speak_in_thread


logger = logging.getLogger(__name__)


class CommandCategory(str, Enum):
    """Voice command categories."""

    PROCEDURE = "procedure"
    DIAGNOSTIC = "diagnostic"
    EMERGENCY = "emergency"
    MEDICATION = "medication"


@dataclass(frozen=True, slots=True)
class VoiceCommand:
    """Canned command phrase and its spoken response."""

    command: str
    response: str
    category: CommandCategory

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "response": self.response,
            "category": self.category.value,
        }


@dataclass(frozen=True, slots=True)
class CommandMatch:
    """Result of interpreting one transcript."""

    transcript: str
    response: str
    command: Optional[VoiceCommand] = None

    @property
    def matched(self) -> bool:
        return self.command is not None


FALLBACK_RESPONSE = (
    "I didn't understand that command. Please try asking about chest compressions, "
    "blood pressure, wound assessment, medications, or emergency protocols."
)


MEDICAL_COMMANDS: Tuple[VoiceCommand, ...] = (
    VoiceCommand(
        command="start chest compression",
        response=(
            "Beginning chest compressions. Place the heel of your hand on the center of "
            "the chest between the nipples. Push hard and fast at least 2 inches deep. "
            "Compress at 100 to 120 compressions per minute. Count: one, two, three..."
        ),
        category=CommandCategory.EMERGENCY,
    ),
    VoiceCommand(
        command="blood pressure reading",
        response=(
            "For blood pressure measurement: Place cuff on upper arm, 1-2 inches above "
            "elbow. Pump cuff 20-30 mmHg above expected systolic. Release slowly at 2-3 "
            "mmHg per second. Note first sound for systolic, last sound for diastolic pressure."
        ),
        category=CommandCategory.PROCEDURE,
    ),
    VoiceCommand(
        command="wound assessment",
        response=(
            "Wound assessment protocol: Examine size using ruler, assess depth and edges. "
            "Check for signs of infection including redness, warmth, swelling, purulent "
            "drainage. Document location, appearance, and surrounding tissue condition."
        ),
        category=CommandCategory.DIAGNOSTIC,
    ),
    VoiceCommand(
        command="medication dosage",
        response=(
            "For medication administration, always verify the five rights: right patient, "
            "right drug, right dose, right route, right time. Calculate pediatric doses "
            "based on weight. Double-check high-risk medications with another provider."
        ),
        category=CommandCategory.MEDICATION,
    ),
    VoiceCommand(
        command="emergency protocol",
        response=(
            "Emergency response activated. Assess scene safety first. Check patient "
            "responsiveness. Call for help if needed. Begin primary assessment: airway, "
            "breathing, circulation. Provide appropriate interventions based on findings."
        ),
        category=CommandCategory.EMERGENCY,
    ),
    VoiceCommand(
        command="IV insertion",
        response=(
            "IV insertion procedure: Select appropriate vein, usually cephalic or basilic. "
            "Clean site with alcohol. Insert at 15-30 degree angle. Watch for flashback in "
            "catheter. Advance catheter, remove needle. Secure and connect tubing."
        ),
        category=CommandCategory.PROCEDURE,
    ),
)


class VoiceCommandInterpreter:
    """Stateless transcript-to-command matcher."""

    def __init__(self, commands: Sequence[VoiceCommand] = MEDICAL_COMMANDS) -> None:
        self.commands = tuple(commands)

    def interpret(self, transcript: str) -> CommandMatch:
        spoken = transcript.strip().lower()
        if spoken:
            for cmd in self.commands:
                phrase = cmd.command.lower()
                if phrase in spoken or spoken in phrase:
                    return CommandMatch(transcript=transcript, response=cmd.response, command=cmd)
        return CommandMatch(transcript=transcript, response=FALLBACK_RESPONSE)

    def by_category(self, category: Optional[str] = None) -> List[VoiceCommand]:
        """Commands in a category, or all of them for None / 'all'."""
        if category is None or category == "all":
            return list(self.commands)
        wanted = CommandCategory(category)
        return [cmd for cmd in self.commands if cmd.category == wanted]


class VoiceSession:
    """
    Per-user voice interaction state.

    Holds the last response and a short history of matched commands
    (newest first) and speaks responses when voice output is enabled.
    """

    def __init__(
        self,
        interpreter: VoiceCommandInterpreter,
        speaker: Optional[SpeechSpeaker] = None,
        voice_enabled: bool = True,
        history_size: int = 5,
    ) -> None:
        self.interpreter = interpreter
        self.speaker = speaker
        self.voice_enabled = voice_enabled
        self.last_response: str = ""
        self.last_transcript: str = ""
        self._history: Deque[VoiceCommand] = deque(maxlen=history_size)

    @property
    def history(self) -> List[VoiceCommand]:
        """Matched commands, newest first."""
        return list(self._history)

    async def process(self, transcript: str) -> CommandMatch:
        """Interpret a transcript, record it and speak the response."""
        match = self.interpreter.interpret(transcript)
        self.last_transcript = transcript
        self.last_response = match.response

        if match.matched:
            self._history.appendleft(match.command)
            logger.info(f"Voice command matched: {match.command.command!r}")
        else:
            logger.info(f"Voice command not understood: {transcript!r}")

        await self._speak(match.response)
        return match

    async def repeat(self) -> bool:
        """Speak the last response again. Returns whether anything was spoken."""
        if not self.last_response:
            return False
        return await self._speak(self.last_response)

    def stop_speaking(self) -> None:
        if self.speaker is not None:
            self.speaker.stop()

    async def _speak(self, text: str) -> bool:
        if not (self.voice_enabled and self.speaker is not None):
            return False
        await speak_in_thread(self.speaker, text)
        return True

"""
Medical Chatbot
===============

Scripted assistant that answers free text with keyword-matched replies.

Lookup order:
    1. Topic keywords (first keyword contained in the message wins)
    2. Related-term groups (pain, medication, infection)
    3. Default help reply

No language model is involved; every reply is pre-authored.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Display style of a bot reply."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


@dataclass(frozen=True, slots=True)
class CannedReply:
    text: str
    type: MessageType


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One message in a chat transcript."""

    id: int
    text: str
    sender: str
    timestamp: float
    type: Optional[MessageType] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender,
            "type": self.type.value if self.type else None,
            "timestamp": round(self.timestamp, 3),
        }


GREETING = (
    "Hello! I'm your medical assistant. I can help you with clinical protocols, drug "
    "interactions, emergency procedures, and humanitarian guidelines. How can I assist "
    "you today?"
)


TOPIC_REPLIES: Dict[str, CannedReply] = {
    "chest pain": CannedReply(
        text=(
            "For chest pain assessment:\n\n"
            "1. **Immediate actions:**\n"
            "   - Check vital signs\n"
            "   - Obtain 12-lead ECG within 10 minutes\n"
            "   - Administer oxygen if SpO2 <90%\n"
            "   - Establish IV access\n\n"
            "2. **History questions:**\n"
            "   - PQRST assessment\n"
            "   - Associated symptoms (nausea, sweating, dyspnea)\n"
            "   - Previous cardiac history\n\n"
            "3. **Red flags requiring immediate intervention:**\n"
            "   - ST elevation on ECG\n"
            "   - Hemodynamic instability\n"
            "   - Severe, crushing chest pain\n\n"
            "**Emergency protocol:** If STEMI suspected, activate cardiac catheterization "
            "team immediately."
        ),
        type=MessageType.WARNING,
    ),
    "wound care": CannedReply(
        text=(
            "Wound care protocol:\n\n"
            "1. **Assessment:**\n"
            "   - Size, depth, location\n"
            "   - Signs of infection (redness, warmth, pus)\n"
            "   - Tetanus status\n\n"
            "2. **Cleaning:**\n"
            "   - Irrigate with normal saline\n"
            "   - Remove debris gently\n"
            "   - Don't use hydrogen peroxide on wounds\n\n"
            "3. **Dressing selection:**\n"
            "   - Dry wounds: Hydrocolloid or hydrogel\n"
            "   - Infected wounds: Antimicrobial dressing\n"
            "   - Deep wounds: Alginate or foam\n\n"
            "4. **Follow-up:**\n"
            "   - Monitor for signs of infection\n"
            "   - Change dressing per protocol\n"
            "   - Document wound progress"
        ),
        type=MessageType.SUCCESS,
    ),
    "drug interaction": CannedReply(
        text=(
            "Common critical drug interactions to monitor:\n\n"
            "**Warfarin interactions:**\n"
            "- Antibiotics (increase INR)\n"
            "- NSAIDs (bleeding risk)\n"
            "- Aspirin (bleeding risk)\n\n"
            "**Digoxin interactions:**\n"
            "- Amiodarone (increases digoxin levels)\n"
            "- Loop diuretics (hypokalemia increases toxicity)\n\n"
            "**Always check:**\n"
            "- Patient's complete medication list\n"
            "- Renal and hepatic function\n"
            "- Use interaction checker tools\n"
            "- Monitor for adverse effects\n\n"
            "**Emergency contacts:** Pharmacist consultation available 24/7 for complex "
            "interactions."
        ),
        type=MessageType.WARNING,
    ),
    "emergency protocol": CannedReply(
        text=(
            "**Emergency Response Protocol:**\n\n"
            "**Code Blue (Cardiac Arrest):**\n"
            "1. Call for help immediately\n"
            "2. Start CPR (30:2 ratio)\n"
            "3. Attach defibrillator\n"
            "4. Follow ACLS algorithm\n\n"
            "**Code Red (Fire):**\n"
            "1. Rescue patients in immediate danger\n"
            "2. Activate alarm\n"
            "3. Contain fire if safe\n"
            "4. Evacuate if necessary\n\n"
            "**Mass Casualty:**\n"
            "1. Activate incident command\n"
            "2. Triage patients (START method)\n"
            "3. Establish treatment areas\n"
            "4. Coordinate with emergency services\n\n"
            "**Communication:** Use designated emergency frequencies and report to "
            "incident commander."
        ),
        type=MessageType.WARNING,
    ),
    "humanitarian guidelines": CannedReply(
        text=(
            "**Humanitarian Medical Guidelines:**\n\n"
            "**Core Principles:**\n"
            "- Humanity: Alleviate suffering\n"
            "- Neutrality: No sides in conflicts\n"
            "- Impartiality: Based on need alone\n"
            "- Independence: Autonomous action\n\n"
            "**Medical Priorities:**\n"
            "1. Life-threatening conditions\n"
            "2. Preventable diseases\n"
            "3. Communicable disease control\n"
            "4. Reproductive health\n"
            "5. Mental health support\n\n"
            "**Resource Management:**\n"
            "- Prioritize essential medicines\n"
            "- Maintain cold chain for vaccines\n"
            "- Ensure safe water and sanitation\n"
            "- Document all activities"
        ),
        type=MessageType.INFO,
    ),
}


RELATED_REPLIES: Tuple[Tuple[Tuple[str, ...], CannedReply], ...] = (
    (
        ("pain", "hurt"),
        CannedReply(
            text=(
                "For pain assessment, use the PQRST method:\n\n"
                "**P** - Provocation/Palliation\n"
                "**Q** - Quality\n"
                "**R** - Region/Radiation\n"
                "**S** - Severity (1-10 scale)\n"
                "**T** - Timing\n\n"
                "Consider underlying causes and appropriate pain management protocols. "
                "Document thoroughly for continuity of care."
            ),
            type=MessageType.INFO,
        ),
    ),
    (
        ("medication", "dosage"),
        CannedReply(
            text=(
                "For medication administration:\n\n"
                "1. **Five Rights:**\n"
                "   - Right patient\n"
                "   - Right drug\n"
                "   - Right dose\n"
                "   - Right route\n"
                "   - Right time\n\n"
                "2. **Documentation:**\n"
                "   - Record all medications given\n"
                "   - Note patient response\n"
                "   - Report adverse reactions\n\n"
                "**Always verify with pharmacist if unsure.**"
            ),
            type=MessageType.WARNING,
        ),
    ),
    (
        ("infection", "sepsis"),
        CannedReply(
            text=(
                "**Infection Control & Sepsis Protocol:**\n\n"
                "**Early Recognition:**\n"
                "- Fever, chills, altered mental status\n"
                "- Increased heart rate, respiratory rate\n"
                "- Decreased blood pressure\n\n"
                "**Sepsis Bundle (1-hour):**\n"
                "1. Measure lactate\n"
                "2. Obtain blood cultures\n"
                "3. Administer broad-spectrum antibiotics\n"
                "4. Begin fluid resuscitation\n\n"
                "**Escalation:** Contact infectious disease specialist for severe cases."
            ),
            type=MessageType.WARNING,
        ),
    ),
)


DEFAULT_REPLY = CannedReply(
    text=(
        "I can help with:\n\n"
        "• Clinical protocols and procedures\n"
        "• Drug interactions and dosing\n"
        "• Emergency response guidelines\n"
        "• Humanitarian medical standards\n"
        "• Infection control measures\n"
        "• Patient assessment techniques\n\n"
        "Could you be more specific about what you need help with?"
    ),
    type=MessageType.INFO,
)


QUICK_ACTIONS: List[Dict[str, str]] = [
    {"label": "Emergency Protocols", "query": "emergency protocol"},
    {"label": "Drug Interactions", "query": "drug interaction"},
    {"label": "Wound Care", "query": "wound care"},
    {"label": "Chest Pain", "query": "chest pain"},
    {"label": "Humanitarian Guidelines", "query": "humanitarian guidelines"},
]


def generate_reply(message: str) -> CannedReply:
    """Pick the canned reply for a user message."""
    text = message.lower()

    for keyword, reply in TOPIC_REPLIES.items():
        if keyword in text:
            return reply

    for terms, reply in RELATED_REPLIES:
        if any(term in text for term in terms):
            return reply

    return DEFAULT_REPLY


class ChatSession:
    """Chat transcript with sequential message ids, seeded with a greeting."""

    def __init__(self) -> None:
        self._messages: List[ChatMessage] = [
            ChatMessage(id=1, text=GREETING, sender="bot", timestamp=time.time(), type=MessageType.INFO)
        ]

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def send(self, text: str) -> Optional[ChatMessage]:
        """
        Add a user message and the bot's reply.

        Returns:
            The bot reply, or None for blank input.
        """
        if not text.strip():
            return None

        self._append(text=text, sender="user")
        reply = generate_reply(text)
        logger.debug(f"Chat reply type={reply.type.value} for {text!r}")
        return self._append(text=reply.text, sender="bot", type=reply.type)

    def _append(self, text: str, sender: str, type: Optional[MessageType] = None) -> ChatMessage:
        message = ChatMessage(
            id=len(self._messages) + 1,
            text=text,
            sender=sender,
            timestamp=time.time(),
            type=type,
        )
        self._messages.append(message)
        return message

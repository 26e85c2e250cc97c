"""
Assistant Module
================

Scripted assistant features: voice commands, chatbot, mock diagnostics
and emergency protocol checklists.

All replies are pre-authored; nothing here runs a model.
"""

from medsight.assistant.chatbot import (
    ChatMessage,
    ChatSession,
    MessageType,
    QUICK_ACTIONS,
    generate_reply,
)
from medsight.assistant.diagnostics import (
    DiagnosticResult,
    SPECIALIZATIONS,
    analyze_image,
    lookup_result,
)
from medsight.assistant.protocols import (
    EMERGENCY_CONTACTS,
    EmergencyProtocol,
    PROCEDURES,
    PROTOCOLS,
    Procedure,
    ProtocolCategory,
    ProtocolChecklist,
    ProtocolSeverity,
    ProtocolStep,
    get_procedure,
    get_protocol,
    protocols_by_category,
)
from medsight.assistant.voice_commands import (
    CommandCategory,
    CommandMatch,
    FALLBACK_RESPONSE,
    MEDICAL_COMMANDS,
    VoiceCommand,
    VoiceCommandInterpreter,
    VoiceSession,
)

__all__ = [
    "ChatMessage",
    "ChatSession",
    "MessageType",
    "QUICK_ACTIONS",
    "generate_reply",
    "DiagnosticResult",
    "SPECIALIZATIONS",
    "analyze_image",
    "lookup_result",
    "EMERGENCY_CONTACTS",
    "EmergencyProtocol",
    "PROCEDURES",
    "PROTOCOLS",
    "Procedure",
    "ProtocolCategory",
    "ProtocolChecklist",
    "ProtocolSeverity",
    "ProtocolStep",
    "get_procedure",
    "get_protocol",
    "protocols_by_category",
    "CommandCategory",
    "CommandMatch",
    "FALLBACK_RESPONSE",
    "MEDICAL_COMMANDS",
    "VoiceCommand",
    "VoiceCommandInterpreter",
    "VoiceSession",
]

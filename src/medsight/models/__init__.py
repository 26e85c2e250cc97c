"""
Data Models
===========

Data models for MedSight.

This module re-exports all data models for convenient access.

Models:
    Classification:
        - ConditionCode: Enum of color-signature rule codes
        - ColorRule: Static color rule definition
        - ClassificationResult: Outcome of one classification

    API:
        - ClassifyRequest / ClassifyResponse
        - VoiceCommandRequest / VoiceCommandResponse
        - ChatRequest / ChatMessageModel
        - DiagnosticsRequest / DiagnosticsResponse
"""

from medsight.models.condition_codes import ConditionCode
from medsight.models.classification import ClassificationResult, ColorRule, NO_CONDITION
from medsight.models.api import (
    ChatMessageModel,
    ChatRequest,
    ClassifyRequest,
    ClassifyResponse,
    DiagnosticsRequest,
    DiagnosticsResponse,
    VoiceCommandRequest,
    VoiceCommandResponse,
)

__all__ = [
    # Classification
    "ConditionCode",
    "ColorRule",
    "ClassificationResult",
    "NO_CONDITION",
    # API
    "ClassifyRequest",
    "ClassifyResponse",
    "VoiceCommandRequest",
    "VoiceCommandResponse",
    "ChatRequest",
    "ChatMessageModel",
    "DiagnosticsRequest",
    "DiagnosticsResponse",
]

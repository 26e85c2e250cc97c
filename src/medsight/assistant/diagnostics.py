"""
Mock Image Diagnostics
======================

Canned "AI diagnostics" for uploaded images.

The upload is decoded to make sure it is a real image, then the
pre-authored result for the chosen specialization is returned.
There is no model; results do not depend on image content.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from medsight.stream.image_decoder import decode_base64_image


logger = logging.getLogger(__name__)


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class DiagnosticResult:
    """Canned diagnostic outcome."""

    condition: str
    confidence: int
    severity: Severity
    recommendations: Tuple[str, ...]
    referral: bool

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "confidence": self.confidence,
            "severity": self.severity.value,
            "recommendations": list(self.recommendations),
            "referral": self.referral,
        }


SPECIALIZATIONS: List[Dict[str, str]] = [
    {"id": "general", "name": "General Medicine"},
    {"id": "dermatology", "name": "Dermatology"},
    {"id": "radiology", "name": "Radiology"},
    {"id": "wounds", "name": "Wound Care"},
    {"id": "eyes", "name": "Ophthalmology"},
]


MOCK_RESULTS: Dict[str, DiagnosticResult] = {
    "dermatology": DiagnosticResult(
        condition="Probable Contact Dermatitis",
        confidence=87,
        severity=Severity.MEDIUM,
        recommendations=(
            "Apply topical corticosteroid (mild potency)",
            "Avoid known allergens and irritants",
            "Keep area clean and dry",
            "Monitor for signs of infection",
        ),
        referral=False,
    ),
    "radiology": DiagnosticResult(
        condition="Normal Chest X-ray",
        confidence=92,
        severity=Severity.LOW,
        recommendations=(
            "No acute pathology detected",
            "Continue routine monitoring",
            "Maintain healthy lifestyle",
            "Follow up if symptoms persist",
        ),
        referral=False,
    ),
    "wounds": DiagnosticResult(
        condition="Stage 2 Pressure Ulcer",
        confidence=89,
        severity=Severity.HIGH,
        recommendations=(
            "Immediate pressure relief",
            "Wound cleaning with saline",
            "Apply appropriate dressing",
            "Nutritional support required",
        ),
        referral=True,
    ),
    "general": DiagnosticResult(
        condition="Possible Cellulitis",
        confidence=78,
        severity=Severity.HIGH,
        recommendations=(
            "Start empirical antibiotic therapy",
            "Monitor for systemic symptoms",
            "Elevate affected limb",
            "Consider hospitalization if severe",
        ),
        referral=True,
    ),
}


def lookup_result(specialization: str) -> DiagnosticResult:
    """Canned result for a specialization, falling back to general."""
    return MOCK_RESULTS.get(specialization, MOCK_RESULTS["general"])


def analyze_image(image_b64: str, specialization: str = "general") -> DiagnosticResult:
    """
    Validate an uploaded image and return the mock diagnosis.

    Raises:
        ImageDecodeError: If the upload is not a decodable image
    """
    rgb = decode_base64_image(image_b64, label="diagnostic upload")
    result = lookup_result(specialization)
    logger.info(
        f"Mock diagnostics: specialization={specialization}, "
        f"image={rgb.shape[1]}x{rgb.shape[0]}, condition={result.condition!r}"
    )
    return result

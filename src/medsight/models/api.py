"""
API Schemas
===========

Pydantic models for the HTTP request and response bodies.

Request Contract (/classify):
    {
        "image": "<base64 JPEG or PNG>"
    }
    or
    {
        "pixels": [[200, 100, 100], [128, 128, 128], ...]
    }

Response Contract (/classify):
    {
        "detected": true,
        "code": "RED_DOMINANT",
        "condition": "Inflammation or Infection",
        "advisory": "...",
        "coverage": 31.25,
        "rule_coverage": {"RED_DOMINANT": 31.25, ...},
        "pixel_count": 3072
    }
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class ClassifyRequest(BaseModel):
    """
    Frame to classify.

    Exactly one of `image` or `pixels` must be provided.

    Attributes:
        image: Base64-encoded image
        pixels: Flat list of [r, g, b] samples
    """

    image: Optional[str] = Field(
        default=None,
        description="Base64-encoded JPEG or PNG frame",
    )
    pixels: Optional[List[List[int]]] = Field(
        default=None,
        description="Flat list of [r, g, b] pixel samples in 0..255",
    )

    @model_validator(mode="after")
    def _exactly_one_input(self) -> "ClassifyRequest":
        if (self.image is None) == (self.pixels is None):
            raise ValueError("provide exactly one of 'image' or 'pixels'")
        if self.pixels is not None:
            for sample in self.pixels:
                if len(sample) < 3 or any(not 0 <= v <= 255 for v in sample[:3]):
                    raise ValueError("each pixel must be [r, g, b] with values in 0..255")
        return self

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "pixels": [[200, 100, 100], [128, 128, 128]],
            }
        }


class ClassifyResponse(BaseModel):
    """Classification outcome plus per-rule coverage."""

    detected: bool = Field(..., description="Whether a condition was flagged")
    code: Optional[str] = Field(default=None, description="Matched rule code")
    condition: Optional[str] = Field(default=None, description="Condition label")
    advisory: Optional[str] = Field(default=None, description="Advisory text")
    coverage: float = Field(default=0.0, ge=0.0, le=100.0, description="Matched percentage")
    rule_coverage: Dict[str, float] = Field(
        default_factory=dict,
        description="Percentage of the frame matching each rule",
    )
    pixel_count: int = Field(..., ge=0, description="Number of pixels analyzed")


class VoiceCommandRequest(BaseModel):
    """Recognized speech to interpret."""

    transcript: str = Field(..., description="Recognized speech text")


class VoiceCommandResponse(BaseModel):
    """Interpreted voice command."""

    matched: bool
    command: Optional[str] = None
    category: Optional[str] = None
    response: str
    spoken: bool = False


class ChatRequest(BaseModel):
    """User chat message."""

    message: str = Field(..., min_length=1, description="User message text")


class ChatMessageModel(BaseModel):
    """One message in the chat transcript."""

    id: int
    text: str
    sender: str
    type: Optional[str] = None
    timestamp: float


class DiagnosticsRequest(BaseModel):
    """Image upload for mock diagnostics."""

    image: str = Field(..., description="Base64-encoded JPEG or PNG image")
    specialization: str = Field(default="general", description="Medical specialization")


class DiagnosticsResponse(BaseModel):
    """Mock diagnostic result."""

    specialization: str
    condition: str
    confidence: int = Field(..., ge=0, le=100)
    severity: str
    recommendations: List[str]
    referral: bool

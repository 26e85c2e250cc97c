"""
MedSight
========

Camera color heuristics and scripted guidance for a medical-training app.

The service classifies camera frames by color signature, reads findings
aloud, answers canned voice commands and chat questions, and serves mock
image diagnostics.

Components:
    - classifier: Frame color classifier and rule sets
    - stream: Camera frame ingestion and image decoding
    - capabilities: Frame source and speech abstractions
    - guidance: Timer-driven frame analysis
    - assistant: Voice commands, chatbot, mock diagnostics

Example:
    from medsight.classifier import FrameColorClassifier

    classifier = FrameColorClassifier.from_rule_set("standard")
    result = classifier.classify(rgb_frame)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]

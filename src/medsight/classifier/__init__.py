"""
Classifier Module
=================

Color-signature classification of camera frames.

Components:
    - FrameColorClassifier: Priority-ordered, stateless frame classifier
    - STANDARD_RULES / BASIC_RULES: Built-in rule sets
    - get_rule_set: Rule set lookup by name
"""

from medsight.classifier.frame_classifier import FrameColorClassifier, to_channels
from medsight.classifier.rules import (
    BASIC_RULES,
    RULE_SETS,
    STANDARD_RULES,
    UnknownRuleSetError,
    get_rule_set,
)

__all__ = [
    "FrameColorClassifier",
    "to_channels",
    "STANDARD_RULES",
    "BASIC_RULES",
    "RULE_SETS",
    "UnknownRuleSetError",
    "get_rule_set",
]

"""
Frame Color Classifier
======================

Heuristic condition flagging from the color distribution of one frame.

For each rule in priority order the classifier computes

    coverage = matching_pixels * 100 / total_pixels

and returns the first rule whose coverage is strictly greater than its
threshold. Priority decides, not the largest coverage.

Design Rules:
    - Pure function over the pixel data (no I/O, no hidden state)
    - Safe to call concurrently from multiple callers
    - Empty frames yield "no condition detected"
    - RGBA input is accepted; the alpha channel is ignored
"""

import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from medsight.classifier.rules import STANDARD_RULES, get_rule_set
from medsight.models.classification import ClassificationResult, ColorRule, NO_CONDITION


logger = logging.getLogger(__name__)


PixelInput = Union[np.ndarray, Sequence[Sequence[int]]]


def to_channels(pixels: PixelInput) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Split a pixel grid into flat float r, g, b arrays.

    Accepts an (H, W, C) image, an (N, C) sample list or a sequence of
    triples, with C = 3 (RGB) or C = 4 (RGBA, alpha ignored).

    Raises:
        ValueError: If the input cannot be read as RGB samples
    """
    arr = np.asarray(pixels)
    if arr.size == 0:
        empty = np.empty(0, dtype=np.float64)
        return empty, empty, empty

    if arr.ndim not in (2, 3) or arr.shape[-1] not in (3, 4):
        raise ValueError(
            f"Expected RGB or RGBA pixel data, got shape {arr.shape}"
        )

    flat = arr.reshape(-1, arr.shape[-1])[:, :3].astype(np.float64)
    return flat[:, 0], flat[:, 1], flat[:, 2]


class FrameColorClassifier:
    """
    Priority-ordered color-signature classifier.

    Attributes:
        rules: Rules in evaluation order

    Example:
        classifier = FrameColorClassifier.from_rule_set("standard")
        result = classifier.classify(rgb_frame)
        if result.detected:
            print(result.condition, result.advisory)
    """

    def __init__(self, rules: Optional[Iterable[ColorRule]] = None) -> None:
        """
        Initialize classifier.

        Args:
            rules: Rules to evaluate. Defaults to the standard rule set.
        """
        ordered = tuple(sorted(rules if rules is not None else STANDARD_RULES,
                               key=lambda rule: rule.priority))
        if not ordered:
            raise ValueError("classifier requires at least one rule")
        self._rules = ordered

    @classmethod
    def from_rule_set(cls, name: str) -> "FrameColorClassifier":
        """Build a classifier from a registered rule set name."""
        classifier = cls(get_rule_set(name))
        logger.info(
            f"FrameColorClassifier initialized: rule_set={name}, "
            f"rules={[rule.code.value for rule in classifier.rules]}"
        )
        return classifier

    @property
    def rules(self) -> Tuple[ColorRule, ...]:
        return self._rules

    def classify(self, pixels: PixelInput) -> ClassificationResult:
        """
        Classify one frame.

        Args:
            pixels: RGB pixel grid (see `to_channels`)

        Returns:
            The first rule exceeding its threshold, or NO_CONDITION
        """
        r, g, b = to_channels(pixels)
        total = r.size
        if total == 0:
            return NO_CONDITION

        for rule in self._rules:
            matched = int(np.count_nonzero(rule.matches(r, g, b)))
            coverage = matched * 100.0 / total
            if coverage > rule.threshold:
                return ClassificationResult(
                    code=rule.code,
                    condition=rule.condition,
                    advisory=rule.advisory,
                    coverage=coverage,
                )

        return NO_CONDITION

    def coverage(self, pixels: PixelInput) -> Dict[str, float]:
        """
        Percentage of the frame matching each rule.

        Diagnostic only; does not affect classification.
        """
        r, g, b = to_channels(pixels)
        total = r.size
        if total == 0:
            return {rule.code.value: 0.0 for rule in self._rules}

        return {
            rule.code.value: int(np.count_nonzero(rule.matches(r, g, b))) * 100.0 / total
            for rule in self._rules
        }

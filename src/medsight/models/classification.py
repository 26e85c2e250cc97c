"""
Classification Models
=====================

Data models for the frame color classifier.

ColorRule is static configuration; ClassificationResult is produced once
per classification and never mutated.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from medsight.models.condition_codes import ConditionCode


# Vectorized predicate over float channel arrays (r, g, b) -> boolean mask
ChannelPredicate = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


@dataclass(frozen=True, slots=True)
class ColorRule:
    """
    Named color signature used to flag a possible condition.

    Attributes:
        code: Stable machine-readable rule code
        priority: Evaluation rank (lower is tested first)
        threshold: Percentage of the frame that must be exceeded
        condition: Human-readable condition label
        advisory: Guidance text shown and read aloud on a match
        predicate: Membership test over the r, g, b channel arrays
    """

    code: ConditionCode
    priority: int
    threshold: float
    condition: str
    advisory: str
    predicate: ChannelPredicate

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not 0 <= self.threshold < 100:
            raise ValueError("threshold must be in [0, 100)")

    def matches(self, r: np.ndarray, g: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Return the boolean membership mask for the given channels."""
        return np.asarray(self.predicate(r, g, b), dtype=bool)


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """
    Outcome of classifying one frame.

    Either "no condition detected" (all fields None) or a matched rule's
    condition label and advisory text.

    Attributes:
        code: Code of the matched rule, None if nothing matched
        condition: Condition label, None if nothing matched
        advisory: Advisory text, None if nothing matched
        coverage: Percentage of the frame matching the rule
    """

    code: Optional[ConditionCode] = None
    condition: Optional[str] = None
    advisory: Optional[str] = None
    coverage: float = 0.0

    @property
    def detected(self) -> bool:
        """Whether a condition was flagged."""
        return self.condition is not None

    @property
    def message(self) -> str:
        """Text suitable for being read aloud verbatim."""
        if not self.detected:
            return "No condition detected."
        return f"{self.condition} detected. {self.advisory}"

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "detected": self.detected,
            "code": self.code.value if self.code else None,
            "condition": self.condition,
            "advisory": self.advisory,
            "coverage": round(self.coverage, 2),
        }

    def __repr__(self) -> str:
        if not self.detected:
            return "ClassificationResult(no condition)"
        return (
            f"ClassificationResult(code={self.code.value}, "
            f"coverage={self.coverage:.1f}%)"
        )


NO_CONDITION = ClassificationResult()

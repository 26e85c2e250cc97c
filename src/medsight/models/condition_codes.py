"""
Condition Codes
===============

Fixed set of machine-readable codes for color-signature rules.

Each classification result carries at most ONE code identifying the
rule that fired. Codes are stable across rule sets so that callers can
match on them regardless of which variant is configured.
"""

from enum import Enum


class ConditionCode(str, Enum):
    """
    Machine-readable color-signature codes.

    Attributes:
        RED_DOMINANT: Red channel dominates green and blue
        YELLOW: Bright red and green with little blue
        WHITE: All channels bright
        BROWN: Warm mid-tones ordered r > g > b
        GREEN: Green dominant with dark red and blue
        BLUE_PURPLE: Blue dominant with dark red and green
        DARK: All channels dark
    """

    RED_DOMINANT = "RED_DOMINANT"
    YELLOW = "YELLOW"
    WHITE = "WHITE"
    BROWN = "BROWN"
    GREEN = "GREEN"
    BLUE_PURPLE = "BLUE_PURPLE"
    DARK = "DARK"

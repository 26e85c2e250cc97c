"""
Color Rule Sets
===============

Static color-signature rules used by the frame classifier.

Two rule sets exist:
    - standard: seven signatures, finer thresholds (default)
    - basic: the older two-signature variant (red-dominant and dark)

Predicates operate on float channel arrays in the 0-255 range and must
return a boolean mask of the same shape. Rules are listed in priority
order; the first rule whose coverage exceeds its threshold wins.
"""

from typing import Dict, Tuple

import numpy as np

from medsight.models.classification import ColorRule
from medsight.models.condition_codes import ConditionCode


class UnknownRuleSetError(KeyError):
    """Raised when a rule set name is not registered."""
    pass


# Shared advisory texts
INFLAMMATION_ADVICE = (
    "Redness detected over the area. Check for warmth, swelling and pain, "
    "clean the site and monitor for spreading infection."
)
BRUISING_DAMAGE_ADVICE = (
    "Dark discoloration detected. Assess for bruising or tissue damage, "
    "apply a cold compress and check circulation around the area."
)


STANDARD_RULES: Tuple[ColorRule, ...] = (
    ColorRule(
        code=ConditionCode.RED_DOMINANT,
        priority=1,
        threshold=12.0,
        condition="Inflammation or Infection",
        advisory=INFLAMMATION_ADVICE,
        predicate=lambda r, g, b: (r > 150) & (r > 1.3 * g) & (r > 1.3 * b),
    ),
    ColorRule(
        code=ConditionCode.YELLOW,
        priority=2,
        threshold=7.0,
        condition="Pus or Discharge",
        advisory=(
            "Yellow discharge detected. Do not squeeze the wound, irrigate with "
            "sterile saline and consider a wound culture."
        ),
        predicate=lambda r, g, b: (r > 180) & (g > 180) & (b < 100) & (np.abs(r - g) < 40),
    ),
    ColorRule(
        code=ConditionCode.WHITE,
        priority=3,
        threshold=8.0,
        condition="Fungal Infection or Necrosis",
        advisory=(
            "Pale or white tissue detected. Check for fungal growth or necrotic "
            "tissue and refer for debridement if tissue is non-viable."
        ),
        predicate=lambda r, g, b: (r > 200) & (g > 200) & (b > 200),
    ),
    ColorRule(
        code=ConditionCode.BROWN,
        priority=4,
        threshold=8.0,
        condition="Scab or Old Wound",
        advisory=(
            "Brown crust detected. Leave the scab intact, keep the area clean "
            "and moist, and watch for renewed bleeding."
        ),
        predicate=lambda r, g, b: (r > 90) & (g > 60) & (b < 50) & (r > g) & (g > b),
    ),
    ColorRule(
        code=ConditionCode.GREEN,
        priority=5,
        threshold=5.0,
        condition="Possible Gangrene or Severe Infection",
        advisory=(
            "Green discoloration detected. This may indicate gangrene or severe "
            "infection. Seek urgent medical evaluation."
        ),
        predicate=lambda r, g, b: (g > 120) & (r < 100) & (b < 100),
    ),
    ColorRule(
        code=ConditionCode.BLUE_PURPLE,
        priority=6,
        threshold=7.0,
        condition="Cyanosis or Bruising",
        advisory=(
            "Blue or purple tint detected. Check oxygen saturation and capillary "
            "refill, and assess airway and breathing."
        ),
        predicate=lambda r, g, b: (b > 120) & (r < 100) & (g < 100),
    ),
    ColorRule(
        code=ConditionCode.DARK,
        priority=7,
        threshold=15.0,
        condition="Bruising or Tissue Damage",
        advisory=BRUISING_DAMAGE_ADVICE,
        predicate=lambda r, g, b: (r < 80) & (g < 80) & (b < 80),
    ),
)


BASIC_RULES: Tuple[ColorRule, ...] = (
    ColorRule(
        code=ConditionCode.RED_DOMINANT,
        priority=1,
        threshold=15.0,
        condition="Inflammation or Infection",
        advisory=INFLAMMATION_ADVICE,
        predicate=lambda r, g, b: (r > 150) & (r > 1.5 * g) & (r > 1.5 * b),
    ),
    ColorRule(
        code=ConditionCode.DARK,
        priority=2,
        threshold=20.0,
        condition="Bruising or Tissue Damage",
        advisory=BRUISING_DAMAGE_ADVICE,
        predicate=lambda r, g, b: (r < 100) & (g < 100) & (b < 100),
    ),
)


RULE_SETS: Dict[str, Tuple[ColorRule, ...]] = {
    "standard": STANDARD_RULES,
    "basic": BASIC_RULES,
}


def get_rule_set(name: str) -> Tuple[ColorRule, ...]:
    """
    Look up a registered rule set by name.

    Args:
        name: Rule set name ('standard' or 'basic')

    Returns:
        Rules sorted by priority

    Raises:
        UnknownRuleSetError: If no rule set has that name
    """
    try:
        rules = RULE_SETS[name.lower()]
    except KeyError:
        raise UnknownRuleSetError(
            f"Unknown rule set: {name!r} (available: {', '.join(sorted(RULE_SETS))})"
        )
    return tuple(sorted(rules, key=lambda rule: rule.priority))

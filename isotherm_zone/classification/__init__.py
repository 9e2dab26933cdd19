"""
Classification Layer
====================

Bounded Context: Threshold-rule palettes.

Responsibilities:
- Rule representation (immutable)
- First-match classification with neutral fallback
- NO sampling, NO rendering
"""

from isotherm_zone.classification.rules import (
    NEUTRAL_COLOR,
    DEFAULT_TEMPERATURE_RULES,
    Operator,
    ThresholdRule,
    classify,
    legend,
)

__all__ = [
    "NEUTRAL_COLOR",
    "DEFAULT_TEMPERATURE_RULES",
    "Operator",
    "ThresholdRule",
    "classify",
    "legend",
]

"""
Threshold Classification Module
===============================

Maps an aggregate value to a color through an ordered rule list.

Design:
- Pure function (no state, deterministic)
- Rules evaluated top-to-bottom, first match wins
- Absent aggregate short-circuits to the neutral color
- `=` is exact numeric equality against the computed mean
"""

import operator as _op
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

NEUTRAL_COLOR = "#cccccc"


class Operator(str, Enum):
    """Relational operator of a threshold rule."""
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    EQ = "="


_COMPARATORS: Dict[Operator, Callable[[float, float], bool]] = {
    Operator.LT: _op.lt,
    Operator.LE: _op.le,
    Operator.GT: _op.gt,
    Operator.GE: _op.ge,
    Operator.EQ: _op.eq,
}


@dataclass(frozen=True)
class ThresholdRule:
    """
    Immutable predicate-to-color mapping.

    Attributes:
        operator: Relational operator
        value: Threshold compared against the aggregate
        color: Color string returned on match (e.g. "#FF0000")
        label: Optional legend label

    Example:
        >>> rule = ThresholdRule(Operator.LT, 10.0, "#FF0000", "Cold")
        >>> rule.matches(9.5)
        True
    """
    operator: Operator
    value: float
    color: str
    label: Optional[str] = None

    def __post_init__(self):
        """Validate invariants."""
        if not isinstance(self.operator, Operator):
            object.__setattr__(self, 'operator', Operator(self.operator))
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValueError(f"ThresholdRule value must be numeric, got {self.value!r}")
        if not self.color:
            raise ValueError("ThresholdRule color cannot be empty")

    def matches(self, aggregate: float) -> bool:
        """Evaluate this rule's predicate against an aggregate."""
        return _COMPARATORS[self.operator](aggregate, self.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        data = {
            'operator': self.operator.value,
            'value': self.value,
            'color': self.color,
        }
        if self.label is not None:
            data['label'] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ThresholdRule':
        """Deserialize from dict.

        Args:
            data: Dictionary with keys: operator, value, color, label (optional)

        Returns:
            ThresholdRule instance

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                operator=Operator(data['operator']),
                value=data['value'],
                color=str(data['color']),
                label=data.get('label'),
            )
        except KeyError as e:
            raise ValueError(f"Missing required ThresholdRule field: {e}")


def classify(aggregate: Optional[float], rules: Sequence[ThresholdRule]) -> str:
    """
    Resolve the color for an aggregate.

    Args:
        aggregate: Mean of present samples, or None when no data
        rules: Ordered rules, evaluated top-to-bottom

    Returns:
        Color of the first matching rule, NEUTRAL_COLOR otherwise
    """
    if aggregate is None:
        return NEUTRAL_COLOR

    for rule in rules:
        if rule.matches(aggregate):
            return rule.color

    return NEUTRAL_COLOR


def legend(rules: Sequence[ThresholdRule]) -> List[Tuple[str, str]]:
    """(color, label) pairs for display, labels defaulting to the predicate."""
    return [
        (rule.color, rule.label or f"{rule.operator.value} {rule.value:g}")
        for rule in rules
    ]


DEFAULT_TEMPERATURE_RULES: Tuple[ThresholdRule, ...] = (
    ThresholdRule(Operator.LT, 10, "#FF0000", "Cold"),
    ThresholdRule(Operator.GE, 10, "#0000FF", "Moderate"),
    ThresholdRule(Operator.GE, 25, "#00FF00", "Warm"),
)

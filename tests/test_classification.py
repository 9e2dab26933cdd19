"""
Tests for threshold rules and classification.
"""

import pytest

from isotherm_zone.classification import (
    DEFAULT_TEMPERATURE_RULES,
    NEUTRAL_COLOR,
    Operator,
    ThresholdRule,
    classify,
    legend,
)

A, B, C = "#AA0000", "#00BB00", "#0000CC"

RULES = (
    ThresholdRule(Operator.LT, 10, A),
    ThresholdRule(Operator.LT, 25, B),
    ThresholdRule(Operator.GE, 25, C),
)


@pytest.mark.unit
class TestClassify:

    @pytest.mark.parametrize("value,expected", [
        (9.999, A),
        (10.0, B),
        (24.999, B),
        (25.0, C),
        (-40.0, A),
    ])
    def test_boundaries(self, value, expected):
        assert classify(value, RULES) == expected

    def test_absent_aggregate_is_neutral(self):
        assert classify(None, RULES) == NEUTRAL_COLOR

    def test_no_match_is_neutral(self):
        rules = (ThresholdRule(Operator.GT, 100, A),)
        assert classify(50.0, rules) == NEUTRAL_COLOR

    def test_empty_rules_is_neutral(self):
        assert classify(12.0, ()) == NEUTRAL_COLOR

    def test_first_match_wins(self):
        # >=25 is shadowed by >=10 in the default palette
        assert classify(30.0, DEFAULT_TEMPERATURE_RULES) == "#0000FF"
        assert classify(5.0, DEFAULT_TEMPERATURE_RULES) == "#FF0000"

    @pytest.mark.parametrize("op,value,aggregate,expected", [
        ("<=", 10, 10.0, True),
        (">", 10, 10.0, False),
        ("=", 10, 10.0, True),
        ("=", 10, 10.0001, False),
    ])
    def test_operators(self, op, value, aggregate, expected):
        assert ThresholdRule(op, value, A).matches(aggregate) is expected


@pytest.mark.unit
class TestThresholdRule:

    def test_operator_coerced_from_string(self):
        rule = ThresholdRule(">=", 5, A)
        assert rule.operator is Operator.GE

    def test_unknown_operator_rejected(self):
        with pytest.raises(ValueError):
            ThresholdRule("!=", 5, A)

    def test_non_numeric_value_rejected(self):
        with pytest.raises(ValueError):
            ThresholdRule("<", "ten", A)

    def test_empty_color_rejected(self):
        with pytest.raises(ValueError):
            ThresholdRule("<", 10, "")

    def test_from_dict(self):
        rule = ThresholdRule.from_dict({"operator": "<", "value": 10, "color": A, "label": "Cold"})

        assert rule == ThresholdRule(Operator.LT, 10, A, "Cold")
        assert rule.to_dict() == {"operator": "<", "value": 10, "color": A, "label": "Cold"}

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError, match="color"):
            ThresholdRule.from_dict({"operator": "<", "value": 10})


@pytest.mark.unit
class TestLegend:

    def test_labels_default_to_predicate(self):
        rules = (ThresholdRule("<", 10, A, "Cold"), ThresholdRule(">=", 10.5, B))

        assert legend(rules) == [(A, "Cold"), (B, ">= 10.5")]

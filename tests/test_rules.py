"""
Tests for the single-column rules

Covers:
1. Bead physics helpers
2. SimpleRule available actions
3. Brother pair table and BrothersRule actions
4. Rule registry

Usage:
    pytest tests/test_rules.py
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from abacus.generator import (
    BrotherAction,
    BrothersRule,
    ColumnAction,
    Example,
    FormulaMove,
    RandomSource,
    RuleConfig,
    SimpleRule,
    Step,
    create_rule,
    get_rule_info,
    get_rule_names,
    register_rule,
)
from abacus.generator.base import (
    allows_value,
    can_minus_digit,
    can_plus_digit,
    filter_repeats,
    lower_beads,
    upper_bead,
)
from abacus.generator.rules.brothers import build_brother_formula, build_brother_pairs


def test_bead_decomposition():
    """Every state is 5*U + L."""
    for state in range(10):
        assert 5 * upper_bead(state) + lower_beads(state) == state
    assert upper_bead(4) == 0
    assert upper_bead(5) == 1
    assert lower_beads(8) == 3


def test_direct_moves():
    """Only moves expressible without bridging are direct."""
    assert can_plus_digit(0, 4)
    assert not can_plus_digit(1, 4)  # needs the five bridge
    assert can_plus_digit(3, 5)
    assert not can_plus_digit(5, 5)
    assert can_plus_digit(2, 7)
    assert not can_plus_digit(3, 7)
    assert can_minus_digit(8, 3)
    assert not can_minus_digit(5, 1)  # needs the five bridge
    assert can_minus_digit(9, 9)
    assert not can_plus_digit(0, 0)
    assert not can_minus_digit(9, 10)


def test_simple_first_action_is_positive():
    rule = SimpleRule(RuleConfig(), rng=RandomSource(seed=1))
    assert rule.get_available_actions(0, True) == [1, 2, 3, 4]


def test_simple_actions_from_state():
    rule = SimpleRule(RuleConfig(), rng=RandomSource(seed=1))
    assert rule.get_available_actions(3) == [1, -1, -2, -3]
    assert rule.get_available_actions(7) == [1, 2, -1, -2]


def test_simple_without_five_caps_state():
    rule = SimpleRule(RuleConfig(selected_digits=(1, 2, 5), include_five=False))
    assert rule.config.max_state == 4
    assert rule.config.selected_digits == (1, 2)
    assert rule.get_available_actions(3) == [1, -1, -2]


def test_simple_direction_restrictions():
    only_add = SimpleRule(RuleConfig(only_addition=True))
    assert only_add.get_available_actions(3) == [1]

    only_sub = SimpleRule(RuleConfig(only_subtraction=True))
    assert only_sub.get_available_actions(3) == [-1, -2, -3]
    # An empty column can only be started by adding
    assert only_sub.get_available_actions(0, True) == [1, 2, 3, 4]


def test_simple_repeat_filter():
    rule = SimpleRule(RuleConfig())
    assert rule.get_available_actions(3, history=[2]) == [1, -1, -3]


def test_repeat_filter_relaxes_to_dead_end_avoidance():
    """With only a reversal available the reversal is kept."""
    rule = SimpleRule(RuleConfig(selected_digits=(3,)))
    assert rule.get_available_actions(3, history=[3]) == [-3]
    assert filter_repeats([1, 2], [Step(action=2, from_state=0, to_state=2)]) == [1]


def test_allows_value():
    assert allows_value(3, [])
    assert not allows_value(3, [3])
    assert not allows_value(-3, [3])
    assert allows_value(2, [3, 3])


def test_list_state_with_position():
    rule = SimpleRule(RuleConfig())
    assert rule.get_available_actions([0, 3], position=1) == [1, -1, -2, -3]
    assert rule.apply_action([0, 3], ColumnAction(position=1, value=-2)) == [0, 1]
    assert rule.apply_action([1, 1], (ColumnAction(0, 2), ColumnAction(1, 3))) == [3, 4]
    with pytest.raises(TypeError):
        rule.apply_action([0, 0], "x")


def test_state_to_number_and_format_are_pure():
    rule = SimpleRule(RuleConfig())
    assert rule.state_to_number([3, 2, 1]) == 123
    assert rule.state_to_number([3, 2, 1]) == 123
    assert rule.format_action(-4) == "-4"
    assert rule.format_action(3) == "+3"
    vector = (ColumnAction(0, 1), ColumnAction(1, 2))
    assert rule.format_action(vector) == "+21"
    assert rule.format_action(vector) == "+21"


def test_validate_example_replays():
    rule = SimpleRule(RuleConfig())
    good = Example(start=0, steps=[Step(3, 0, 3), Step(-1, 3, 2)], answer=2)
    wrong_answer = Example(start=0, steps=[Step(3, 0, 3)], answer=4)
    out_of_bounds = Example(start=0, steps=[Step(-1, 0, -1)], answer=-1)
    assert rule.validate_example(good)
    assert not rule.validate_example(wrong_answer)
    assert not rule.validate_example(out_of_bounds)


def test_brother_pairs_for_four():
    pairs = build_brother_pairs((4,))
    assert pairs == frozenset({
        (1, 5, 4), (2, 6, 4), (3, 7, 4), (4, 8, 4),
        (5, 1, 4), (6, 2, 4), (7, 3, 4), (8, 4, 4),
    })


def test_brother_pairs_respect_bead_state():
    for from_state, to_state, n in build_brother_pairs((1, 2, 3, 4)):
        if to_state > from_state:
            assert upper_bead(from_state) == 0
            assert lower_beads(from_state) >= 5 - n
        else:
            assert upper_bead(from_state) == 1
            assert lower_beads(from_state) + (5 - n) <= 4
        assert abs(to_state - from_state) == n


def test_brother_formula():
    assert build_brother_formula(1, 4) == (FormulaMove("+", 5), FormulaMove("-", 1))
    assert build_brother_formula(-1, 3) == (FormulaMove("-", 5), FormulaMove("+", 2))
    assert sum(m.signed for m in build_brother_formula(1, 2)) == 2


def test_brothers_priority_returns_only_bridges():
    rule = BrothersRule(RuleConfig(selected_digits=(4,), brother_priority=1.0),
                        rng=RandomSource(seed=3))
    actions = rule.get_available_actions(1)
    assert len(actions) == 1
    assert isinstance(actions[0], BrotherAction)
    assert actions[0].value == 4
    assert actions[0].brother_n == 4


def test_brothers_mixes_plain_moves():
    rule = BrothersRule(RuleConfig(selected_digits=(4,), brother_priority=0.0),
                        rng=RandomSource(seed=3))
    actions = rule.get_available_actions(1)
    plain = [a for a in actions if not isinstance(a, BrotherAction)]
    assert plain == [1, 2, 3, 5, -1]
    assert any(isinstance(a, BrotherAction) for a in actions)


def test_brothers_first_action_has_no_negative_bridge():
    rule = BrothersRule(RuleConfig(selected_digits=(4,), brother_priority=0.0))
    actions = rule.get_available_actions(5, True)
    assert all(getattr(a, "value", a) > 0 for a in actions)


def test_brothers_digits_are_normalized():
    rule = BrothersRule(RuleConfig(selected_digits=(7, 9)))
    assert rule.config.selected_digits == (4,)
    assert rule.find_brother(1, 5) == 4
    assert rule.find_brother(0, 4) is None


def test_brothers_validation_requires_bridge():
    rule = BrothersRule(RuleConfig(selected_digits=(4,)))
    plain = Example(start=0, steps=[Step(2, 0, 2)], answer=2)
    bridged = Example(
        start=0,
        steps=[
            Step(1, 0, 1),
            Step(BrotherAction(4, 4, build_brother_formula(1, 4)), 1, 5),
        ],
        answer=5,
    )
    assert not rule.validate_example(plain)
    assert not rule.validate_example(Example(start=0, steps=[], answer=0))
    assert rule.validate_example(bridged)


def test_registry():
    assert {"simple", "brothers"} <= set(get_rule_names())
    names = {info["name"] for info in get_rule_info()}
    assert "brothers" in names

    rule = create_rule("simple", RuleConfig(), max_steps=6)
    assert isinstance(rule, SimpleRule)
    assert rule.config.max_steps == 6

    with pytest.raises(ValueError, match="Unknown rule"):
        create_rule("friends")


def test_config_normalizes_inverted_steps():
    config = RuleConfig(min_steps=5, max_steps=2)
    assert (config.min_steps, config.max_steps) == (2, 5)
    with pytest.raises(ValueError):
        RuleConfig(min_steps=-1)


def test_registry_lookup_by_class_and_case():
    assert isinstance(create_rule("Brothers", RuleConfig(selected_digits=(4,))), BrothersRule)
    assert isinstance(create_rule(SimpleRule), SimpleRule)
    info = {item["name"]: item for item in get_rule_info()}
    assert info["simple"]["composite"] is False


def test_registry_rejects_duplicate_names():
    class OtherSimple(SimpleRule):
        name = "simple"

    with pytest.raises(ValueError, match="already used"):
        register_rule(OtherSimple)
    assert register_rule(SimpleRule) is SimpleRule

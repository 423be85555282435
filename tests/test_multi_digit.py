"""
Tests for MultiDigitGenerator

Usage:
    pytest tests/test_multi_digit.py
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from abacus.generator import (
    BrothersRule,
    ExampleGenerator,
    GenerationError,
    MultiDigitGenerator,
    MultiDigitStep,
    RandomSource,
    RareEventBudget,
    RuleConfig,
    SimpleRule,
)


def _multi(seed, digits=2, **overrides):
    return MultiDigitGenerator(SimpleRule, digits, RuleConfig(**overrides),
                               rng=RandomSource(seed=seed))


def test_construction():
    gen = _multi(0, digits=3)
    assert gen.is_composite
    assert gen.display_digit_count == 3
    assert gen.max_digit_count == 4
    assert gen.base_rule.config.digit_count == 1
    assert gen.generate_start_state() == [0, 0, 0, 0]
    assert "multi-digit 3" in gen.name

    assert _multi(0, digits=20).display_digit_count == 9
    assert _multi(0, digits=0).display_digit_count == 1


def test_first_step_two_digit_scenario():
    """Two columns of 1-5: first number is 11..54 from the selected digits."""
    for seed in range(30):
        gen = _multi(seed, selected_digits=(1, 2, 3, 4, 5), duplicate_digit_probability=0.0)
        example = gen.generate_example()
        first = example.steps[0].action
        assert 11 <= first <= 54
        tens, units = divmod(first, 10)
        assert tens in (1, 2, 3, 4, 5)
        assert units in (1, 2, 3, 4, 5)


def test_examples_validate_and_replay():
    for seed in range(20):
        gen = _multi(seed, digits=3, min_steps=3, max_steps=5)
        example = gen.generate_example()
        assert example.steps
        assert all(isinstance(step, MultiDigitStep) for step in example.steps)
        assert gen.validate_example(example)

        state = gen.generate_start_state()
        for step in example.steps:
            state = gen.apply_action(state, step)
            assert list(step.states) == state
        assert gen.state_to_number(state) == gen.state_to_number(example.answer)
        # carry column is never drawn
        assert state[-1] == 0


def test_leading_digit_never_zero():
    for seed in range(20):
        gen = _multi(seed, digits=3, variable_digit_counts=True, min_steps=4, max_steps=6)
        example = gen.generate_example()
        for step in example.steps:
            used = [d for d in step.digits if d != 0]
            assert used
            highest = max(i for i, d in enumerate(step.digits) if d != 0)
            assert len(str(abs(step.action))) == highest + 1


def test_signed_int_apply_matches_digits():
    gen = _multi(0)
    assert gen.apply_action([0, 0, 0], 21) == [1, 2, 0]
    assert gen.apply_action([5, 5, 0], -23) == [2, 3, 0]
    assert gen.state_to_number([3, 2, 0]) == 23
    assert gen.state_to_number([3, 2, 7]) == 23
    assert gen.format_action(-12) == "-12"


def test_zero_digit_budget():
    gen = _multi(0, selected_digits=(1,))
    budget = RareEventBudget()

    # units can only add, tens can only subtract
    action = gen._generate_digits([0, 4, 0], 2, False, [], budget)
    assert action is not None
    assert action.signed_value == -10
    assert action.digits == (0, -1, 0)
    assert budget.zero_digits_used == 1

    assert gen._generate_digits([0, 4, 0], 2, False, [], budget) is None


def test_choose_digit_count():
    fixed = _multi(0, digits=3)
    assert all(fixed._choose_digit_count(False) == 3 for _ in range(20))

    variable = _multi(0, digits=3, variable_digit_counts=True)
    assert variable._choose_digit_count(True) == 3
    widths = {variable._choose_digit_count(False) for _ in range(200)}
    assert widths == {2, 3}


def test_validate_rejects_bad_examples():
    gen = _multi(0)
    example = gen.generate_example()
    answer = list(example.answer)
    answer[0] = (answer[0] + 1) % 10
    example.answer = answer
    assert not gen.validate_example(example)

    negative_first = gen.generate_example()
    negative_first.steps = [MultiDigitStep(action=-11, states=(0, 0, 0), digits=(-1, -1, 0))]
    assert not gen.validate_example(negative_first)


def test_example_generator_delegates():
    gen = _multi(4, digits=2, selected_digits=(1, 2, 3))
    generator = ExampleGenerator(gen)
    formatted = generator.to_trainer_format(generator.generate())
    assert formatted["start"] == 0
    assert all(isinstance(step, str) for step in formatted["steps"])
    assert sum(int(step) for step in formatted["steps"]) == formatted["answer"]


def test_brothers_base_rule():
    gen = MultiDigitGenerator(BrothersRule, 2, RuleConfig(selected_digits=(4,)),
                              rng=RandomSource(seed=9))
    example = gen.generate_example()
    assert gen.validate_example(example)
    assert gen.base_rule.config.selected_digits == (4,)


def test_no_steps_is_a_generation_error():
    gen = _multi(0, selected_digits=())
    assert gen.generate_example().steps == []
    with pytest.raises(GenerationError):
        ExampleGenerator(gen).generate()

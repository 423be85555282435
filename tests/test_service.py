"""
Tests for the public generate_example() entry point

Usage:
    pytest tests/test_service.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from abacus.generator import RandomSource
from abacus.service import (
    FALLBACK_EXAMPLE,
    fallback_example,
    generate_example,
    generate_examples,
)
from abacus.settings import TrainerSettings


def _replay(example):
    total = example["start"]
    for step in example["steps"]:
        total += int(step["step"] if isinstance(step, dict) else step)
    return total


def test_default_settings():
    example = generate_example(None, rng=RandomSource(seed=1))
    assert example["start"] == 0
    assert 2 <= len(example["steps"]) <= 4
    assert not example["steps"][0].startswith("-")
    assert _replay(example) == example["answer"]


def test_single_digit_three():
    settings = {"blocks": {"simple": {"digits": [3]}}, "actions": {"min": 2, "max": 2}}
    example = generate_example(settings, rng=RandomSource(seed=7))
    assert example == {"start": 0, "steps": ["+3", "-3"], "answer": 0}


def test_failure_returns_fallback():
    settings = {"blocks": {"simple": {"digits": []}}}
    example = generate_example(settings, rng=RandomSource(seed=0))
    assert example == FALLBACK_EXAMPLE

    example["steps"].append("+9")
    assert fallback_example() == FALLBACK_EXAMPLE


def test_brothers_steps_are_dicts():
    settings = {
        "blocks": {"brothers": {"digits": [4]}},
        "actions": {"min": 5, "max": 5},
    }
    example = generate_example(settings, rng=RandomSource(seed=3))
    bridges = [s for s in example["steps"] if isinstance(s, dict)]
    assert bridges
    assert set(bridges[0]) == {"step", "isBrother", "brotherN", "formula"}
    assert _replay(example) == example["answer"]


def test_multi_digit_steps():
    settings = TrainerSettings.from_dict({"digits": 2, "actions": {"min": 3, "max": 3}})
    for seed in range(10):
        example = generate_example(settings, rng=RandomSource(seed=seed))
        assert example["start"] == 0
        first = int(example["steps"][0])
        assert 10 <= first <= 99
        assert _replay(example) == example["answer"]
        assert 0 <= example["answer"] <= 99


def test_generate_examples_shares_source():
    examples = generate_examples({}, 6, rng=RandomSource(seed=11))
    assert len(examples) == 6
    again = generate_examples({}, 6, rng=RandomSource(seed=11))
    assert examples == again


def test_malformed_sections_use_defaults():
    for settings in (
        {"actions": 5},
        {"blocks": {"simple": [1, 2]}},
        {"blocks": ["simple"]},
        {"blocks": {"brothers": "4", "friends": 3}, "examples": [10]},
    ):
        example = generate_example(settings, rng=RandomSource(seed=2))
        assert example != FALLBACK_EXAMPLE
        assert _replay(example) == example["answer"]


def test_non_dict_settings_never_raise():
    for settings in (5, "abc", [1, 2]):
        example = generate_example(settings, rng=RandomSource(seed=2))
        assert _replay(example) == example["answer"]

"""
Generator Package - Constraint-driven abacus example generation.

This package synthesizes sequences of signed operations ("+3", "-12", ...)
that are physically executable on a bead abacus, follow the trained
technique and stay within column bounds at every step.

Public API:
    - Rule: Abstract base for single-column rules
    - SimpleRule / BrothersRule: Built-in rules
    - MultiDigitGenerator: Composes a rule across several columns
    - ExampleGenerator: Bounded-retry driver and output formatting
    - RuleConfig: Immutable rule configuration
    - RandomSource: Injectable entropy source
    - create_rule(): Factory function
    - get_rule_names() / get_rule_info(): Registry listing

Usage:
    from abacus.generator import ExampleGenerator, RandomSource, RuleConfig, create_rule

    rule = create_rule("simple", RuleConfig(selected_digits=(1, 2, 3)),
                       rng=RandomSource(seed=7))
    generator = ExampleGenerator(rule)
    example = generator.generate()
    print(generator.format_for_display(example))
"""

# Core data structures
from .actions import (
    BrotherAction,
    ColumnAction,
    FormulaMove,
    MultiDigitAction,
    action_value,
    format_signed,
)
from .config import RuleConfig, normalize_digits
from .example import DeadEndError, Example, GenerationError, MultiDigitStep, Step
from .random_source import RandomSource

# Rule framework
from .base import Rule
from .factory import (
    create_rule,
    get_rule_class,
    get_rule_info,
    get_rule_names,
    register_rule,
)

# Import rules to register them
from . import rules
from .rules import BrothersRule, SimpleRule

from .multi_digit import MultiDigitGenerator, RareEventBudget
from .example_generator import ExampleGenerator

__all__ = [
    # Data structures
    "BrotherAction",
    "ColumnAction",
    "FormulaMove",
    "MultiDigitAction",
    "action_value",
    "format_signed",
    "RuleConfig",
    "normalize_digits",
    "DeadEndError",
    "Example",
    "GenerationError",
    "MultiDigitStep",
    "Step",
    "RandomSource",
    # Rule framework
    "Rule",
    "create_rule",
    "get_rule_class",
    "get_rule_info",
    "get_rule_names",
    "register_rule",
    "BrothersRule",
    "SimpleRule",
    "MultiDigitGenerator",
    "RareEventBudget",
    "ExampleGenerator",
]

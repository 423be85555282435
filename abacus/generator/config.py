"""
Rule Config Module - Immutable configuration snapshot for one generation session.
"""

from dataclasses import dataclass, replace
from typing import Any, Iterable, Tuple


DEFAULT_SIMPLE_DIGITS: Tuple[int, ...] = (1, 2, 3, 4)
DEFAULT_AUXILIARY_DIGITS: Tuple[int, ...] = (1, 2, 3, 4, 5)


def normalize_digits(values: Iterable[Any], low: int = 1, high: int = 9) -> Tuple[int, ...]:
    """
    Parse, filter and sort a digit selection.

    Unparseable entries and digits outside [low, high] are dropped;
    duplicates are removed.

    Args:
        values: Raw digit values (ints or numeric strings)
        low: Smallest accepted digit
        high: Largest accepted digit

    Returns:
        Sorted tuple of unique digits
    """
    digits = set()
    for value in values:
        try:
            digit = int(value)
        except (TypeError, ValueError):
            continue
        if low <= digit <= high:
            digits.add(digit)
    return tuple(sorted(digits))


@dataclass(frozen=True)
class RuleConfig:
    """
    Configuration shared by every rule variant.

    Attributes:
        selected_digits: Digits the rule trains (plain digits for
            SimpleRule, brother digits 1-4 for BrothersRule)
        min_state: Lowest legal column state
        max_state: Highest legal column state (4 without the five bead)
        min_steps: Minimum number of steps per example
        max_steps: Maximum number of steps per example
        only_addition: Only positive trained moves
        only_subtraction: Only negative trained moves
        digit_count: Number of columns the rule is asked to drive
        combine_levels: One step moves all columns at once
        include_five: Upper bead usable
        first_action_must_be_positive: No leading negative step
        auxiliary_digits: Plain digits BrothersRule mixes in as scaffolding
        brother_priority: Probability of offering only bridging moves
        variable_digit_counts: Multi-digit numbers may vary in width
        duplicate_digit_probability: Chance a multi-digit number may repeat a digit
        max_duplicate_digits: Numbers with repeated digits allowed per example
        max_zero_digits: Numbers with zero digits allowed per example
    """
    selected_digits: Tuple[int, ...] = DEFAULT_SIMPLE_DIGITS
    min_state: int = 0
    max_state: int = 9
    min_steps: int = 2
    max_steps: int = 4
    only_addition: bool = False
    only_subtraction: bool = False
    digit_count: int = 1
    combine_levels: bool = False
    include_five: bool = True
    first_action_must_be_positive: bool = True
    auxiliary_digits: Tuple[int, ...] = DEFAULT_AUXILIARY_DIGITS
    brother_priority: float = 0.5
    variable_digit_counts: bool = False
    duplicate_digit_probability: float = 0.1
    max_duplicate_digits: int = 1
    max_zero_digits: int = 1

    def __post_init__(self):
        if self.min_steps < 0 or self.max_steps < 0:
            raise ValueError("Step counts must be non-negative")
        if self.min_steps > self.max_steps:
            # Swap instead of failing: the UI can send inverted bounds
            low, high = self.max_steps, self.min_steps
            object.__setattr__(self, "min_steps", low)
            object.__setattr__(self, "max_steps", high)
        object.__setattr__(self, "selected_digits", tuple(self.selected_digits))
        object.__setattr__(self, "auxiliary_digits", tuple(self.auxiliary_digits))

    def with_overrides(self, **changes: Any) -> "RuleConfig":
        """Return a copy with the named fields replaced."""
        return replace(self, **changes)

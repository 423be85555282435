"""
Multi-Digit Generator - Composes a single-column rule across several columns.

Each column follows the physics of the wrapped base rule independently;
one step draws a delta per column with a shared sign and reads the
result as one multi-digit number, e.g. "+21 +34 -12 +51".

The abacus always has one more column than the displayed numbers: the
most significant column is reserved for carries and is never drawn.
Carries are avoided rather than propagated: a combination that would
push any column past 9 is never produced.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Set, Type

from .actions import MultiDigitAction, action_value, format_signed
from .base import Rule
from .config import RuleConfig
from .example import Example, MultiDigitStep
from .random_source import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class RareEventBudget:
    """
    Per-example counters for rare but permitted anomalies.

    Created fresh by every generate_example() call.

    Attributes:
        duplicates_used: Numbers with a repeated digit so far (e.g. +22)
        zero_digits_used: Numbers containing a zero digit so far (e.g. +20)
    """
    duplicates_used: int = 0
    zero_digits_used: int = 0


class MultiDigitGenerator(Rule):
    """
    Rule-shaped adapter driving N columns of a base rule at once.

    Attributes:
        base_rule: Single-column rule instance applied to every column
        display_digit_count: Width of the numbers shown to the learner
        max_digit_count: Abacus columns (display + one carry guard)
    """
    name = "multi_digit"
    description = "Multi-digit numbers composed from a single-column rule"
    is_composite = True

    MAX_TOTAL_ATTEMPTS = 1000
    MAX_ACTION_ATTEMPTS = 100
    HIGH_STATE_MEAN = 7.5
    LOW_STATE_MEAN = 1.5

    def __init__(self, rule_class: Type[Rule], max_digit_count: int,
                 config: Optional[RuleConfig] = None,
                 rng: Optional[RandomSource] = None):
        """
        Args:
            rule_class: Base rule class (SimpleRule, BrothersRule, ...)
            max_digit_count: Displayed number width, clamped to 1-9
            config: Configuration for the base rule (selected digits etc.)
            rng: Shared random source
        """
        rng = rng or RandomSource()
        config = config or RuleConfig()
        self.base_rule = rule_class(config.with_overrides(digit_count=1), rng=rng)

        self.display_digit_count = max(1, min(9, max_digit_count))
        self.max_digit_count = self.display_digit_count + 1

        super().__init__(
            self.base_rule.config.with_overrides(
                digit_count=self.display_digit_count, min_state=0, max_state=9
            ),
            rng,
        )
        self.name = f"{self.base_rule.name} (multi-digit {self.display_digit_count})"

        logger.info(
            f"MultiDigitGenerator: base={self.base_rule.name}, "
            f"display={self.display_digit_count}, abacus={self.max_digit_count}, "
            f"digits={list(self.base_rule.config.selected_digits)}, "
            f"variable={self.config.variable_digit_counts}, "
            f"duplicates={self.config.duplicate_digit_probability:.0%}, "
            f"maxZero={self.config.max_zero_digits}"
        )

    def generate_start_state(self) -> List[int]:
        return [0] * self.max_digit_count

    def generate_steps_count(self) -> int:
        return self.base_rule.generate_steps_count()

    def get_available_actions(
        self,
        state: Any,
        is_first_action: bool = False,
        history: Optional[Sequence[Any]] = None,
        position: Optional[int] = None,
    ) -> List[MultiDigitAction]:
        """One freshly drawn multi-digit action from state, or none."""
        action = self._generate_multi_digit_action(
            list(state), is_first_action, list(history or ()), RareEventBudget()
        )
        return [action] if action is not None else []

    # ----- example generation -----

    def generate_example(self) -> Example:
        """
        Build one example under a global attempt budget.

        Returns however many steps were achieved if the budget runs out;
        callers must accept fewer steps than requested.
        """
        states = self.generate_start_state()
        steps_count = self.generate_steps_count()
        steps: List[MultiDigitStep] = []
        budget = RareEventBudget()

        logger.debug(
            f"Multi-digit example: {steps_count} steps, "
            f"{self.display_digit_count} digits (abacus {self.max_digit_count})"
        )

        attempts = 0
        while len(steps) < steps_count and attempts < self.MAX_TOTAL_ATTEMPTS:
            attempts += 1
            is_first = len(steps) == 0

            action = self._generate_multi_digit_action(states, is_first, steps, budget)
            if action is None:
                if attempts % 50 == 0:
                    logger.warning(f"Attempt {attempts}: no action for step {len(steps) + 1}")
                continue

            new_states = list(states)
            for pos in range(self.display_digit_count):
                new_states[pos] += action.digits[pos]

            if any(not 0 <= new_states[pos] <= 9 for pos in range(self.display_digit_count)):
                logger.warning(f"Rejected {action.signed_value}: states {new_states} out of range")
                continue

            steps.append(MultiDigitStep(
                action=action.signed_value,
                states=tuple(new_states),
                digits=action.digits,
            ))
            states = new_states

            logger.debug(
                f"Step {len(steps)}/{steps_count}: {format_signed(action.signed_value)}, "
                f"states {states[:self.display_digit_count]}"
            )

        if len(steps) < steps_count:
            logger.warning(
                f"Only {len(steps)} of {steps_count} steps generated in {attempts} attempts"
            )

        return Example(start=self.generate_start_state(), steps=steps, answer=list(states))

    def _generate_multi_digit_action(
        self,
        states: List[int],
        is_first: bool,
        history: Sequence[MultiDigitStep],
        budget: RareEventBudget,
    ) -> Optional[MultiDigitAction]:
        """Up to MAX_ACTION_ATTEMPTS tries at one multi-digit number."""
        for _ in range(self.MAX_ACTION_ATTEMPTS):
            digit_count = self._choose_digit_count(is_first)
            result = self._generate_digits(states, digit_count, is_first, history, budget)
            if result is not None:
                return result

        logger.warning(
            f"No action after {self.MAX_ACTION_ATTEMPTS} attempts, states {states}"
        )
        return None

    def _choose_digit_count(self, is_first: bool) -> int:
        """
        Width of the next number.

        Full width for the first step and in fixed-width mode; otherwise
        display-1 or display digits, weighted by width.
        """
        if is_first or not self.config.variable_digit_counts:
            return self.display_digit_count

        min_digits = max(1, self.display_digit_count - 1)
        max_digits = self.display_digit_count
        if min_digits == max_digits:
            return max_digits

        counts = list(range(min_digits, max_digits + 1))
        return self.rng.weighted_choice(counts, counts)

    def _column_values(self, states: List[int], digit_count: int) -> List[List[int]]:
        """Nonzero signed deltas the base rule offers for each used column."""
        per_position = []
        for pos in range(digit_count):
            current = states[pos]
            # The first-move restriction follows the column's bead state
            available = self.base_rule.get_available_actions(
                current, is_first_action=(current == 0)
            )
            values = [v for v in (action_value(a) for a in available) if v != 0]
            per_position.append(values)
            logger.debug(f"  column {pos} (state {current}): {values}")
        return per_position

    def _preferred_sign(self, states: List[int], is_first: bool,
                        history: Sequence[MultiDigitStep],
                        possible_signs: Set[int]) -> Optional[int]:
        """
        Sign-balancing heuristics, first match wins:
        near saturation subtract, near empty add, after two equal signs flip.
        """
        used = states[:self.display_digit_count]
        mean = sum(used) / self.display_digit_count

        if mean >= self.HIGH_STATE_MEAN and -1 in possible_signs:
            return -1
        if mean <= self.LOW_STATE_MEAN and 1 in possible_signs and not is_first:
            return 1
        if len(history) >= 2:
            last = _sign(history[-1].action)
            prev = _sign(history[-2].action)
            if last == prev and last != 0:
                return -last
        return None

    def _generate_digits(
        self,
        states: List[int],
        digit_count: int,
        is_first: bool,
        history: Sequence[MultiDigitStep],
        budget: RareEventBudget,
    ) -> Optional[MultiDigitAction]:
        """
        Draw one delta per column with a shared sign.

        Returns:
            Accepted MultiDigitAction, or None when every sign fails
        """
        cfg = self.config
        allow_duplicates = (
            self.rng.random() < cfg.duplicate_digit_probability
            and budget.duplicates_used < cfg.max_duplicate_digits
        )

        per_position = self._column_values(states, digit_count)
        possible_signs = {_sign(v) for values in per_position for v in values}
        if not possible_signs:
            logger.debug("  no column can move")
            return None

        preferred = self._preferred_sign(states, is_first, history, possible_signs)
        if preferred is not None and preferred in possible_signs:
            signs = [preferred] + [s for s in sorted(possible_signs) if s != preferred]
        else:
            signs = self.rng.shuffled(sorted(possible_signs))

        for target_sign in signs:
            if is_first and target_sign < 0 and cfg.first_action_must_be_positive:
                continue

            digits = [0] * self.max_digit_count
            used_digits: List[int] = []

            for pos in range(digit_count):
                candidates = [v for v in per_position[pos] if _sign(v) == target_sign]
                if not candidates:
                    # Column has no move of this sign: it stays at 0
                    continue
                if not allow_duplicates:
                    unique = [v for v in candidates if abs(v) not in used_digits]
                    if unique:
                        candidates = unique
                chosen = self.rng.choice(candidates)
                digits[pos] = chosen
                used_digits.append(abs(chosen))

            if not any(digits):
                continue
            if digits[digit_count - 1] == 0:
                logger.debug(f"  sign {target_sign}: leading digit is 0, rejected")
                continue

            has_zero = any(d == 0 for d in digits[:digit_count])
            if has_zero and budget.zero_digits_used >= cfg.max_zero_digits:
                continue

            # Without the opt-in, a repeat only happens when no unique digit was left
            if allow_duplicates and len(set(used_digits)) < len(used_digits):
                budget.duplicates_used += 1
            if has_zero:
                budget.zero_digits_used += 1

            value = 0
            sign = 0
            for pos in range(self.display_digit_count):
                d = digits[pos]
                if d != 0:
                    value += abs(d) * 10 ** pos
                    if sign == 0:
                        sign = _sign(d)

            return MultiDigitAction(
                value=value,
                sign=sign,
                digits=tuple(digits),
                digit_count=digit_count,
                used_digits=tuple(sorted(set(used_digits))),
            )

        return None

    # ----- rule interface -----

    def apply_action(self, state: Any, action: Any) -> List[int]:
        """
        Add a per-column digit vector (or a decomposed signed int) to state.
        """
        new_state = list(state)
        digits = getattr(action, "digits", None)
        if digits is not None:
            for pos in range(self.max_digit_count):
                new_state[pos] += digits[pos] if pos < len(digits) else 0
            return new_state

        signed = action_value(action)
        sign = _sign(signed)
        magnitude = abs(signed)
        for pos in range(self.max_digit_count):
            new_state[pos] += sign * (magnitude % 10)
            magnitude //= 10
        return new_state

    def is_valid_state(self, state: Any) -> bool:
        if not isinstance(state, (list, tuple)):
            return False
        return all(0 <= digit <= 9 for digit in state)

    def state_to_number(self, state: Any) -> int:
        """Number shown by the display columns (carry column excluded)."""
        if not isinstance(state, (list, tuple)):
            return 0
        return sum(
            state[i] * 10 ** i
            for i in range(min(self.display_digit_count, len(state)))
        )

    def format_action(self, action: Any) -> str:
        return format_signed(action_value(getattr(action, "action", action)))

    def validate_example(self, example: Example) -> bool:
        """
        Zero start, non-negative first step, every column in [0, 9]
        throughout, and the replayed number equals the answer.
        """
        start = example.start
        if not isinstance(start, (list, tuple)) or any(s != 0 for s in start):
            logger.error("Multi-digit start state must be all zeros")
            return False

        states = list(start)
        for index, step in enumerate(example.steps):
            if index == 0 and step.action < 0:
                logger.error("Multi-digit first step must be positive")
                return False
            states = self.apply_action(states, step)
            if not self.is_valid_state(states):
                logger.error(f"Step {index + 1} produced invalid state {states}")
                return False

        final_number = self.state_to_number(states)
        answer_number = self.state_to_number(example.answer)
        if final_number != answer_number:
            logger.error(f"Final {final_number} != answer {answer_number}")
            return False

        return True


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)

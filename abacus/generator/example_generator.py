"""
Example Generator - Bounded-retry search for one valid example using a Rule.
"""

import itertools
import logging
from typing import Any, Dict, List, Optional, Union

from .actions import (
    BrotherAction,
    ColumnAction,
    Vector,
    action_value,
    format_signed,
    formula_to_dicts,
)
from .base import Rule
from .example import DeadEndError, Example, GenerationError, Step

logger = logging.getLogger(__name__)

TrainerStep = Union[str, Dict[str, Any]]


class ExampleGenerator:
    """
    Drives a rule through repeated generation attempts.

    Composite rules (MultiDigitGenerator) build examples themselves and
    are delegated to directly. For plain rules a single column is
    generated step by step; several columns without a composite wrapper
    use the legacy shared-sign vector search.

    Attributes:
        rule: Rule describing legal moves and validation
    """

    STEP_WEIGHT_PER_UNIT = 0.3

    def __init__(self, rule: Rule):
        self.rule = rule
        logger.info(f"Generator created with rule: {rule.name}")

    @property
    def digit_count(self) -> int:
        return self.rule.config.digit_count or 1

    def max_attempts(self) -> int:
        """Attempt budget scaled by column count."""
        digit_count = self.digit_count
        if digit_count == 1:
            attempts = 100
        elif digit_count <= 3:
            attempts = 200
        else:
            attempts = 250
        if digit_count > 1 and not self.rule.config.combine_levels:
            attempts *= 2
        return attempts

    def generate(self) -> Example:
        """
        Generate one valid example.

        Returns:
            Example with start, steps and answer

        Raises:
            GenerationError: If no valid example is found within the budget
        """
        if self.rule.is_composite:
            example = self.rule.generate_example()
            if not example.steps:
                raise GenerationError(f"{self.rule.name} produced no steps", attempts=1)
            return example

        digit_count = self.digit_count
        combine_levels = self.rule.config.combine_levels
        max_attempts = self.max_attempts()

        logger.debug(
            f"Generating: digitCount={digit_count}, combineLevels={combine_levels}, "
            f"attempts={max_attempts}"
        )

        for attempt in range(1, max_attempts + 1):
            try:
                if digit_count == 1:
                    example = self._generate_single_digit_attempt()
                else:
                    example = self._generate_multi_digit_attempt_vector_based()
            except DeadEndError as e:
                logger.warning(f"Attempt {attempt} failed: {e}")
                continue

            example = self._trim(example)

            if digit_count > 1 and not combine_levels:
                if not self._validate_intermediate_states(example):
                    logger.warning(f"Attempt {attempt}: intermediate states out of range")
                    continue

            if not self.rule.validate_example(example):
                logger.warning(
                    f"Attempt {attempt}: validation failed ({example.step_count} steps)"
                )
                if attempt % 20 == 0:
                    logger.debug(
                        f"  attempt {attempt} details: start={example.start}, "
                        f"answer={example.answer}, actions={example.actions}"
                    )
                continue

            logger.info(f"Example generated (attempt {attempt})")
            return example

        raise GenerationError(
            f"No valid example after {max_attempts} attempts", attempts=max_attempts
        )

    def generate_multiple(self, count: int) -> List[Example]:
        """Generate several examples sequentially."""
        return [self.generate() for _ in range(count)]

    def validate(self, example: Example) -> bool:
        return self.rule.validate_example(example)

    def _trim(self, example: Example) -> Example:
        """Cut overshooting examples to max_steps and recompute the answer."""
        max_steps = self.rule.config.max_steps
        if example.step_count <= max_steps:
            return example

        logger.warning(f"Generated {example.step_count} steps, limit {max_steps}; trimming")
        steps = example.steps[:max_steps]
        state = example.start
        for step in steps:
            state = self.rule.apply_action(state, step.action)
        return Example(start=example.start, steps=steps, answer=state)

    # ----- single column -----

    def _step_weight(self, action: Any) -> float:
        return 1 + self.STEP_WEIGHT_PER_UNIT * abs(action_value(action))

    def _generate_single_digit_attempt(self) -> Example:
        """
        One sequential attempt on a single column.

        Stops early (keeping the steps collected) on a mid-sequence dead
        end; short examples are never padded.

        Raises:
            DeadEndError: If the very first step has no legal move
        """
        start = self.rule.generate_start_state()
        steps_count = max(self.rule.generate_steps_count(), self.rule.config.min_steps)

        steps: List[Step] = []
        state = start

        for i in range(steps_count):
            is_first = len(steps) == 0
            actions = self.rule.get_available_actions(state, is_first, steps)

            if not actions:
                if i == 0:
                    raise DeadEndError(f"No first step possible from state {state}")
                logger.warning(f"Step {i + 1}: no actions from state {state}, stopping early")
                break

            logger.debug(f"Step {i + 1}: {len(actions)} actions from state {state}")

            # Larger digits are drawn more often without excluding small ones
            weights = [self._step_weight(a) for a in actions]
            action = self.rule.rng.weighted_choice(actions, weights)

            if isinstance(action, BrotherAction):
                logger.debug(f"Bridging step chosen: {action.value} (brother {action.brother_n})")

            new_state = self.rule.apply_action(state, action)
            steps.append(Step(action=action, from_state=state, to_state=new_state))
            state = new_state

        return Example(start=start, steps=steps, answer=state)

    # ----- legacy vector mode -----

    def _generate_multi_digit_attempt_vector_based(self) -> Example:
        """
        One attempt where every step moves all columns with a shared sign.

        Kept for rules configured with several columns but not wrapped in
        MultiDigitGenerator.
        """
        steps_count = self.rule.generate_steps_count()

        state = self.rule.generate_start_state()
        if isinstance(state, int):
            state = [state]
        start = list(state)
        steps: List[Step] = []

        for _ in range(steps_count):
            is_first = len(steps) == 0
            signs = [1] if is_first else [1, -1]

            chosen: Optional[Vector] = None
            for sign in signs:
                vectors = self._build_candidate_vectors_for_sign(state, sign, is_first)
                if vectors:
                    chosen = self.rule.rng.choice(vectors)
                    break

            if chosen is None:
                break

            new_state = self.rule.apply_action(state, chosen)
            steps.append(Step(action=chosen, from_state=state, to_state=new_state))
            state = new_state

        return Example(start=start, steps=steps, answer=state)

    def _build_candidate_vectors_for_sign(self, state: List[int], sign: int,
                                          is_first: bool) -> List[Vector]:
        """
        Every combination of per-column legal deltas with the given sign
        that keeps all columns in [0, 9].
        """
        per_column: List[List[ColumnAction]] = []
        for pos in range(self.digit_count):
            local = self.rule.get_available_actions(state, is_first, position=pos)
            matching = [
                ColumnAction(position=pos, value=action_value(a))
                for a in local
                if (action_value(a) > 0 if sign > 0 else action_value(a) < 0)
            ]
            if not matching:
                return []
            per_column.append(matching)

        vectors = []
        for combo in itertools.product(*per_column):
            new_state = self.rule.apply_action(state, combo)
            if all(0 <= d <= 9 for d in new_state):
                vectors.append(tuple(combo))
        return vectors

    def _validate_intermediate_states(self, example: Example) -> bool:
        """Every column stays in [0, 9] after every step."""
        for i, step in enumerate(example.steps):
            state = step.to_state
            if isinstance(state, list) and any(d < 0 or d > 9 for d in state):
                logger.warning(f"Step {i + 1}: state {state} has an invalid digit")
                return False
        answer = example.answer
        if isinstance(answer, list) and any(d < 0 or d > 9 for d in answer):
            logger.warning(f"Final state {answer} has an invalid digit")
            return False
        return True

    # ----- output -----

    def format_for_display(self, example: Example) -> str:
        """Human-readable one-liner, e.g. "+3 +1 -4 = 0"."""
        steps = " ".join(self.rule.format_action(step.action) for step in example.steps)
        start = self.rule.state_to_number(example.start)
        answer = self.rule.state_to_number(example.answer)
        if start == 0:
            return f"{steps} = {answer}"
        return f"{start} {steps} = {answer}"

    def to_trainer_format(self, example: Example) -> Dict[str, Any]:
        """
        Convert to the external {start, steps, answer} shape.

        Bridging steps become {"step", "isBrother", "brotherN", "formula"}
        dicts; every other step becomes a "+N" / "-N" string.
        """
        if self.rule.is_composite:
            return {
                "start": 0,
                "steps": [format_signed(step.action) for step in example.steps],
                "answer": self.rule.state_to_number(example.answer),
            }

        steps: List[TrainerStep] = []
        for step in example.steps:
            action = step.action
            if isinstance(action, BrotherAction):
                steps.append({
                    "step": format_signed(action.value),
                    "isBrother": True,
                    "brotherN": action.brother_n,
                    "formula": formula_to_dicts(action.formula),
                })
            else:
                steps.append(self.rule.format_action(action))

        return {
            "start": self.rule.state_to_number(example.start),
            "steps": steps,
            "answer": self.rule.state_to_number(example.answer),
        }

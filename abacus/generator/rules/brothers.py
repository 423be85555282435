"""
Brothers Rule - Five-bridging ("brothers of five") moves plus plain scaffolding.

A brother move expresses a small delta n through the upper bead:
    +n = +5 - (5 - n)    when the upper bead is free
    -n = -5 + (5 - n)    when the upper bead is active

Plain moves from an auxiliary digit pool are mixed in so that the column
can be steered into states where the trained bridge is possible.
"""

import logging
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple

from ..actions import BrotherAction, FormulaMove
from ..base import (
    Rule,
    can_minus_digit,
    can_plus_digit,
    filter_repeats,
    lower_beads,
    upper_bead,
)
from ..config import RuleConfig, normalize_digits
from ..example import Example
from ..factory import register_rule
from ..random_source import RandomSource

logger = logging.getLogger(__name__)

BrotherPair = Tuple[int, int, int]  # (from_state, to_state, brother_n)


def build_brother_pairs(digits: Sequence[int]) -> FrozenSet[BrotherPair]:
    """
    Precompute every column transition achievable through a five-bridge.

    Args:
        digits: Brother digits (1-4) being trained

    Returns:
        Frozen set of (from_state, to_state, brother_n) triples
    """
    pairs = set()
    for n in digits:
        complement = 5 - n

        # Up: v -> v+n as +5 then -(5-n)
        for v in range(10):
            if upper_bead(v) == 0 and lower_beads(v) >= complement and v + n <= 9:
                pairs.add((v, v + n, n))

        # Down: v -> v-n as -5 then +(5-n)
        for v in range(10):
            if upper_bead(v) == 1 and lower_beads(v) + complement <= 4 and v - n >= 0:
                pairs.add((v, v - n, n))

    return frozenset(pairs)


def build_brother_formula(direction: int, brother_n: int) -> Tuple[FormulaMove, ...]:
    """Primitive bead moves for a bridge of brother_n in the given direction."""
    complement = 5 - brother_n
    if direction > 0:
        return (FormulaMove("+", 5), FormulaMove("-", complement))
    return (FormulaMove("-", 5), FormulaMove("+", complement))


@register_rule
class BrothersRule(Rule):
    """
    Bridging moves for the selected brother digits, plus plain moves.

    Direction restrictions (only addition / only subtraction) apply to
    bridging moves only; plain moves from the auxiliary pool are always
    offered with both signs. With probability brother_priority only the
    bridging moves are returned whenever at least one exists.

    Attributes:
        brother_pairs: Precomputed (from, to, n) transition table
    """
    name = "brothers"
    description = "Brothers - bridging through five (+n = +5 - (5-n))"

    def __init__(self, config: Optional[RuleConfig] = None,
                 rng: Optional[RandomSource] = None):
        config = config or RuleConfig(selected_digits=(4,))
        brothers = normalize_digits(config.selected_digits, 1, 4) or (4,)
        auxiliary = normalize_digits(config.auxiliary_digits, 1, 9)
        config = config.with_overrides(
            selected_digits=brothers,
            auxiliary_digits=auxiliary,
            min_state=0,
            max_state=9,
        )
        super().__init__(config, rng)

        self.brother_pairs = build_brother_pairs(brothers)

        logger.info(
            f"BrothersRule: brothers={list(brothers)}, simple={list(auxiliary)}, "
            f"onlyAdd={self.config.only_addition}, onlySub={self.config.only_subtraction}, "
            f"{len(self.brother_pairs)} bridge transitions"
        )

    def find_brother(self, from_state: int, to_state: int) -> Optional[int]:
        """Brother digit bridging from_state -> to_state, or None."""
        for n in self.config.selected_digits:
            if (from_state, to_state, n) in self.brother_pairs:
                return n
        return None

    def get_available_actions(
        self,
        state: Any,
        is_first_action: bool = False,
        history: Optional[Sequence[Any]] = None,
        position: Optional[int] = None,
    ) -> List[Any]:
        """
        Bridging and plain moves from state.

        Args:
            state: Column state (or list of columns with position)
            is_first_action: Forbid negative moves when configured
            history: Previous steps for repeat avoidance
            position: Column index into a list state

        Returns:
            BrotherAction and int actions, possibly empty
        """
        cfg = self.config
        v = self.column_state(state, position)
        no_minus = is_first_action and cfg.first_action_must_be_positive
        actions: List[Any] = []

        for target in range(cfg.min_state, cfg.max_state + 1):
            delta = target - v
            if delta == 0:
                continue
            if cfg.only_addition and delta < 0:
                continue
            if cfg.only_subtraction and delta > 0:
                continue
            if no_minus and delta < 0:
                continue

            brother_n = self.find_brother(v, target)
            if brother_n is not None:
                actions.append(BrotherAction(
                    value=delta,
                    brother_n=brother_n,
                    formula=build_brother_formula(delta, brother_n),
                ))

        for digit in cfg.auxiliary_digits:
            if can_plus_digit(v, digit) and v + digit <= cfg.max_state:
                actions.append(digit)

        if not no_minus:
            for digit in cfg.auxiliary_digits:
                if can_minus_digit(v, digit) and v - digit >= cfg.min_state:
                    actions.append(-digit)

        actions = filter_repeats(actions, history)
        brother_actions = [a for a in actions if isinstance(a, BrotherAction)]

        if brother_actions and self.rng.random() < cfg.brother_priority:
            logger.debug(f"Bridging priority from {v}: {len(brother_actions)} actions")
            return brother_actions

        logger.debug(
            f"State {v}: {len(brother_actions)} bridging, "
            f"{len(actions) - len(brother_actions)} plain"
        )
        return actions

    def validate_example(self, example: Example) -> bool:
        """Base checks plus at least one bridging step."""
        if not example.steps:
            logger.warning("validate_example: no steps")
            return False
        if not super().validate_example(example):
            return False
        if not any(isinstance(step.action, BrotherAction) for step in example.steps):
            logger.warning("validate_example: no bridging steps")
            return False
        return True

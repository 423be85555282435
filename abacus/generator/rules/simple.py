"""
Simple Rule - Plain +/- digit moves on one column.

Every step is a direct bead move: no bridging through five or ten.
Without the five bead the column lives in [0, 4].
"""

import logging
from typing import Any, List, Optional, Sequence

from ..base import Rule, can_minus_digit, can_plus_digit, filter_repeats
from ..config import RuleConfig
from ..factory import register_rule
from ..random_source import RandomSource

logger = logging.getLogger(__name__)


@register_rule
class SimpleRule(Rule):
    """
    Direct moves of the selected digits.

    An action +d / -d is offered when the bead move is physically possible
    from the current state, the result stays in bounds, the direction
    restriction allows it and it does not repeat the recent steps.
    """
    name = "simple"
    description = "Simple - direct bead moves of the selected digits"

    def __init__(self, config: Optional[RuleConfig] = None,
                 rng: Optional[RandomSource] = None):
        config = config or RuleConfig()
        if not config.include_five:
            config = config.with_overrides(
                max_state=min(config.max_state, 4),
                selected_digits=tuple(d for d in config.selected_digits if d < 5),
            )
        super().__init__(config, rng)

        logger.info(
            f"SimpleRule: digits={list(self.config.selected_digits)}, "
            f"range=[{self.config.min_state}, {self.config.max_state}], "
            f"onlyAdd={self.config.only_addition}, onlySub={self.config.only_subtraction}"
        )

    def get_available_actions(
        self,
        state: Any,
        is_first_action: bool = False,
        history: Optional[Sequence[Any]] = None,
        position: Optional[int] = None,
    ) -> List[int]:
        """
        Signed deltas of the selected digits legal from state.

        Args:
            state: Column state (or list of columns with position)
            is_first_action: Forbid negative moves when configured
            history: Previous steps for repeat avoidance
            position: Column index into a list state

        Returns:
            List of signed ints, possibly empty
        """
        cfg = self.config
        current = self.column_state(state, position)
        actions: List[int] = []

        for digit in cfg.selected_digits:
            if self._direction_allows(digit, is_first_action):
                target = current + digit
                if can_plus_digit(current, digit) and cfg.min_state <= target <= cfg.max_state:
                    actions.append(digit)

        for digit in cfg.selected_digits:
            if is_first_action and cfg.first_action_must_be_positive:
                break
            if self._direction_allows(-digit, is_first_action):
                target = current - digit
                if can_minus_digit(current, digit) and cfg.min_state <= target <= cfg.max_state:
                    actions.append(-digit)

        return filter_repeats(actions, history)

    def _direction_allows(self, value: int, is_first_action: bool) -> bool:
        if self.config.only_addition and value < 0:
            return False
        # An empty column can only be started by adding
        if self.config.only_subtraction and value > 0 and not is_first_action:
            return False
        return True

"""
Base Rule Module - Abstract base class for generation rules.

A rule describes the physics and pedagogy of one abacus column: the legal
state range, which signed moves are available from a state, how a move is
applied and how a finished example is validated.

Column state S in [0, 9] decomposes as S = 5*U + L where U is the upper
(heaven) bead and L the number of active lower (earth) beads.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from .actions import ColumnAction, action_value, format_signed
from .config import RuleConfig
from .example import Example
from .random_source import RandomSource

logger = logging.getLogger(__name__)


# ===== Bead physics of a single column =====

def upper_bead(state: int) -> int:
    """1 if the upper bead is active, else 0."""
    return 1 if state >= 5 else 0


def lower_beads(state: int) -> int:
    """Number of active lower beads."""
    return state - 5 * upper_bead(state)


def can_plus_lower(state: int, value: int) -> bool:
    """Can `value` (1-4) lower beads be added directly?"""
    if value < 1 or value > 4:
        return False
    if upper_bead(state) == 0:
        return lower_beads(state) + value <= 4
    return state + value <= 9


def can_minus_lower(state: int, value: int) -> bool:
    """Can `value` (1-4) lower beads be removed directly?"""
    if value < 1 or value > 4:
        return False
    return lower_beads(state) >= value


def can_plus_digit(state: int, digit: int) -> bool:
    """
    Is +digit a direct bead move from state (no bridging)?

    Digits 6-9 are the upper bead plus a lower move and need both.
    """
    if 1 <= digit <= 4:
        return can_plus_lower(state, digit)
    if digit == 5:
        return upper_bead(state) == 0 and state <= 4
    if 6 <= digit <= 9:
        return (upper_bead(state) == 0
                and can_plus_lower(state, digit - 5)
                and state + digit <= 9)
    return False


def can_minus_digit(state: int, digit: int) -> bool:
    """Is -digit a direct bead move from state (no bridging)?"""
    if 1 <= digit <= 4:
        return can_minus_lower(state, digit)
    if digit == 5:
        return upper_bead(state) == 1
    if 6 <= digit <= 9:
        return (upper_bead(state) == 1
                and can_minus_lower(state, digit - 5)
                and state - digit >= 0)
    return False


def history_values(history: Optional[Sequence[Any]]) -> List[int]:
    """Signed values of previous steps (Step objects or bare actions)."""
    values = []
    for step in history or ():
        action = getattr(step, "action", step)
        values.append(action_value(action))
    return values


def allows_value(value: int, previous: List[int]) -> bool:
    """
    Repeat-avoidance check against the previous step value.

    Rejects an exact repeat of the last value and an immediate reversal
    of it, which also rules out three consecutive uses of one absolute value.
    """
    if not previous:
        return True
    return abs(value) != abs(previous[-1])


def filter_repeats(actions: List[Any], history: Optional[Sequence[Any]]) -> List[Any]:
    """
    Drop actions that would repeat recent steps.

    When filtering leaves nothing the unfiltered list is returned: a
    repeat is preferable to a dead end.
    """
    previous = history_values(history)
    if not previous:
        return actions
    kept = [a for a in actions if allows_value(action_value(a), previous)]
    if not kept and actions:
        logger.debug(f"Repeat filter relaxed, only repeats available: {actions}")
        return actions
    return kept


class Rule(ABC):
    """
    Abstract base class for all generation rules.

    Subclasses implement get_available_actions() and define name and
    description class attributes.

    Attributes:
        name: Short identifier used by the rule registry
        description: Human-readable description
        is_composite: True for rules that generate whole examples themselves
    """
    name: str = "base"
    description: str = "Base rule"
    is_composite: bool = False

    def __init__(self, config: Optional[RuleConfig] = None,
                 rng: Optional[RandomSource] = None):
        self.config = config or RuleConfig()
        self.rng = rng or RandomSource()

    # ----- state -----

    def is_valid_state(self, state: Any) -> bool:
        low, high = self.config.min_state, self.config.max_state
        if isinstance(state, int):
            return low <= state <= high
        if isinstance(state, (list, tuple)):
            return all(low <= digit <= high for digit in state)
        return False

    def generate_start_state(self) -> Any:
        """0 for one column, a zero-filled list for several."""
        if self.config.digit_count <= 1:
            return 0
        return [0] * self.config.digit_count

    def generate_steps_count(self) -> int:
        """Uniform draw from [min_steps, max_steps]."""
        return self.rng.randint(self.config.min_steps, self.config.max_steps)

    # ----- actions -----

    @abstractmethod
    def get_available_actions(
        self,
        state: Any,
        is_first_action: bool = False,
        history: Optional[Sequence[Any]] = None,
        position: Optional[int] = None,
    ) -> List[Any]:
        """
        List every legal action from state.

        Args:
            state: Column state, or a multi-column list with `position`
            is_first_action: No leading negative move when configured
            history: Previous steps, for repeat avoidance
            position: Column index when state is a list

        Returns:
            Available actions; empty means a dead end, not an error
        """
        pass

    def apply_action(self, state: Any, action: Any) -> Any:
        """
        Apply an action without bounds checking.

        Supports int + delta, list + ColumnAction and list + vector of
        ColumnActions.
        """
        if isinstance(state, int):
            return state + action_value(action)

        new_state = list(state)
        if isinstance(action, ColumnAction):
            new_state[action.position] += action.value
            return new_state
        if isinstance(action, (list, tuple)):
            for part in action:
                new_state[part.position] += part.value
            return new_state

        raise TypeError(f"Unsupported action {action!r} for state {state!r}")

    # ----- validation -----

    def replay(self, example: Example) -> Optional[Any]:
        """
        Replay an example from its start.

        Returns:
            Final state, or None if any intermediate state left bounds
        """
        state = example.start
        for index, step in enumerate(example.steps):
            state = self.apply_action(state, getattr(step, "action", step))
            if not self.is_valid_state(state):
                logger.warning(f"Step {index + 1} left bounds: {state}")
                return None
        return state

    def validate_example(self, example: Example) -> bool:
        """Bounds never violated and the replayed state equals the answer."""
        final = self.replay(example)
        if final is None:
            return False
        if self.state_to_number(final) != self.state_to_number(example.answer):
            logger.warning(f"Answer mismatch: {final} != {example.answer}")
            return False
        return True

    # ----- presentation -----

    def column_state(self, state: Any, position: Optional[int]) -> int:
        """Get one column's value from an int or list state."""
        if isinstance(state, int):
            return state if not position else 0
        return state[position or 0]

    def format_action(self, action: Any) -> str:
        if isinstance(action, (list, tuple)):
            by_position = {part.position: part.value for part in action}
            sign = next((v for v in by_position.values() if v != 0), 0)
            width = max(by_position) + 1 if by_position else 0
            magnitude = "".join(
                str(abs(by_position.get(p, 0))) for p in range(width - 1, -1, -1)
            )
            return ("+" if sign >= 0 else "-") + magnitude
        return format_signed(action_value(action))

    def state_to_number(self, state: Any) -> int:
        """Column list (least significant first) or int to an integer."""
        if isinstance(state, int):
            return state
        if isinstance(state, (list, tuple)):
            return sum(digit * 10 ** index for index, digit in enumerate(state))
        return 0

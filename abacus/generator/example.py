"""
Example Module - Generated steps, examples and generation errors.
"""

from dataclasses import dataclass, field
from typing import Any, List, Tuple


class GenerationError(RuntimeError):
    """
    No valid example could be built within the attempt budget.

    Attributes:
        attempts: Number of attempts made before giving up
    """

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class DeadEndError(GenerationError):
    """The very first step of an attempt had no legal move."""


@dataclass(frozen=True)
class Step:
    """
    An applied action with the state before and after it.

    Attributes:
        action: Applied action (int, BrotherAction or a ColumnAction vector)
        from_state: State before the action
        to_state: State after the action
    """
    action: Any
    from_state: Any
    to_state: Any


@dataclass(frozen=True)
class MultiDigitStep:
    """
    One step of a MultiDigitGenerator example.

    Attributes:
        action: Signed multi-digit value (e.g. 21, -34)
        states: Column states after the step, least significant first
        digits: Signed per-column deltas that produced the step
    """
    action: int
    states: Tuple[int, ...]
    digits: Tuple[int, ...]


@dataclass
class Example:
    """
    One generated practice problem.

    Attributes:
        start: Initial state (int for one column, list for several)
        steps: Applied steps in order
        answer: Final state after replaying all steps
    """
    start: Any
    steps: List[Any] = field(default_factory=list)
    answer: Any = 0

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def actions(self) -> List[Any]:
        return [step.action for step in self.steps]

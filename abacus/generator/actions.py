"""
Actions Module - Value types describing one move on the abacus.

An action is one of:
    - int: signed delta on a single column ("+3", "-7")
    - ColumnAction: one column's delta inside a multi-column vector
    - BrotherAction: a delta performed through the five-bead bridge
    - MultiDigitAction: a whole multi-digit number moving several columns
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union


@dataclass(frozen=True)
class FormulaMove:
    """
    One primitive bead move of a bridging formula.

    Attributes:
        op: "+" or "-"
        val: Bead amount moved (5 for the upper bead, 1-4 for lower beads)
    """
    op: str
    val: int

    @property
    def signed(self) -> int:
        return self.val if self.op == "+" else -self.val

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "val": self.val}


@dataclass(frozen=True)
class BrotherAction:
    """
    Delta executed as a compensated five-bead move (e.g. +4 = +5 -1).

    Attributes:
        value: Net signed delta on the column
        brother_n: Trained brother digit (1-4)
        formula: Ordered primitive moves whose net effect equals value
    """
    value: int
    brother_n: int
    formula: Tuple[FormulaMove, ...]

    is_brother = True

    @property
    def label(self) -> str:
        return f"via 5 (brother {self.brother_n})"


@dataclass(frozen=True)
class ColumnAction:
    """Delta applied to a single column of a multi-column state."""
    position: int
    value: int


@dataclass(frozen=True)
class MultiDigitAction:
    """
    One multi-digit number produced by MultiDigitGenerator.

    Attributes:
        value: Magnitude (sum of |digit| * 10^position)
        sign: +1 or -1
        digits: Signed per-column deltas, least significant first,
                one entry per abacus column (carry column included)
        digit_count: Width requested for this number
        used_digits: Distinct absolute digit values used
    """
    value: int
    sign: int
    digits: Tuple[int, ...]
    digit_count: int
    used_digits: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def signed_value(self) -> int:
        return self.sign * self.value


Action = Union[int, ColumnAction, BrotherAction, MultiDigitAction]
Vector = Tuple[ColumnAction, ...]


def action_value(action: Any) -> int:
    """
    Extract the signed numeric delta of any action shape.

    Args:
        action: int, ColumnAction, BrotherAction or MultiDigitAction

    Returns:
        Signed delta
    """
    if isinstance(action, MultiDigitAction):
        return action.signed_value
    if isinstance(action, (ColumnAction, BrotherAction)):
        return action.value
    return int(action)


def format_signed(value: int) -> str:
    """Render a signed integer as "+N" / "-N"."""
    return f"+{value}" if value >= 0 else f"-{abs(value)}"


def formula_to_dicts(formula: Tuple[FormulaMove, ...]) -> List[Dict[str, Any]]:
    return [move.to_dict() for move in formula]

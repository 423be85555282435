"""
Random Source Module - Single injectable entropy source for generation.

All random draws made by rules and generators go through one RandomSource
so that tests can seed the whole pipeline deterministically.
"""

from typing import List, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource:
    """
    Thin wrapper around numpy's Generator.

    Attributes:
        seed: Seed the generator was created with (None = OS entropy)
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._rng.random())

    def randint(self, low: int, high: int) -> int:
        """
        Uniform integer in [low, high], both ends inclusive.

        Args:
            low: Lower bound
            high: Upper bound (inclusive)

        Returns:
            Drawn integer
        """
        if high <= low:
            return low
        return int(self._rng.integers(low, high + 1))

    def choice(self, items: Sequence[T]) -> T:
        """Pick one element uniformly. Raises IndexError on empty input."""
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[int(self._rng.integers(0, len(items)))]

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy of items."""
        return [items[int(i)] for i in self._rng.permutation(len(items))]

    def weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """
        Pick one element with probability proportional to its weight.

        Uses a cumulative-weight table and binary search instead of
        replicating items into a flat pool.

        Args:
            items: Candidates
            weights: Non-negative weight per candidate

        Returns:
            Chosen element

        Raises:
            IndexError: If items is empty
            ValueError: If lengths differ or total weight is not positive
        """
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        if len(items) != len(weights):
            raise ValueError("items and weights must have the same length")

        cumulative = np.cumsum(np.asarray(weights, dtype=float))
        total = cumulative[-1]
        if total <= 0:
            raise ValueError("Total weight must be positive")

        point = self._rng.random() * total
        index = int(np.searchsorted(cumulative, point, side="right"))
        return items[min(index, len(items) - 1)]

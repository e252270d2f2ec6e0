"""Uniformly distributed random integers over a closed range."""

from __future__ import annotations

import random


class RandomInt:
    """Callable drawing integers uniformly from ``[lower, upper]``."""

    def __init__(self, lower: int, upper: int) -> None:
        if lower > upper:
            raise ValueError(f"lower bound {lower} exceeds upper bound {upper}")
        self.lower = lower
        self.upper = upper
        self._rng = random.Random()

    def __call__(self) -> int:
        return self._rng.randint(self.lower, self.upper)
"""Closed real intervals used as basis and quadrature domains."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from dynprog.core.errors import InvariantViolation


@dataclass(frozen=True)
class Interval:
    """Closed interval ``[lo, hi]``. Either end may be infinite."""

    lo: float
    hi: float

    def __post_init__(self) -> None:
        if math.isnan(self.lo) or math.isnan(self.hi):
            raise InvariantViolation("Interval endpoints must not be NaN.")
        if self.lo > self.hi:
            raise InvariantViolation(
                f"Interval lower end {self.lo} exceeds upper end {self.hi}."
            )

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lo) and math.isfinite(self.hi)

    @property
    def diameter(self) -> float:
        return self.hi - self.lo

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.lo + self.hi)

    def contains(self, x: float) -> bool:
        return self.lo <= x <= self.hi

    def clamp(self, x):
        """Clamp a scalar or array of points into the interval."""
        if np.ndim(x) == 0:
            return min(max(float(x), self.lo), self.hi)
        return np.clip(np.asarray(x, dtype=np.float64), self.lo, self.hi)

    def linspace(self, n: int) -> np.ndarray:
        if not self.is_finite:
            raise InvariantViolation("Cannot space points over an infinite interval.")
        return np.linspace(self.lo, self.hi, n)

    def __str__(self) -> str:
        return f"[{self.lo}, {self.hi}]"

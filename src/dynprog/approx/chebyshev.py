"""Chebyshev polynomial basis on [-1, 1]."""

from __future__ import annotations

import numpy as np

from dynprog.approx.basis import Basis, as_points, finish_values
from dynprog.core.errors import DomainError, InvariantViolation
from dynprog.core.interval import Interval

# Slack allowed past +-1 so remapped collocation points still pass the bounds check.
_BOUNDS_SLACK = float(np.sqrt(np.finfo(np.float64).eps))


class ChebyshevBasis(Basis):
    """First ``n`` Chebyshev polynomials T_0 .. T_{n-1}, collocated at the roots of T_n.

    With ``stretch`` the roots are scaled so the outermost ones sit exactly
    at -1 and 1. With ``extrapolate`` the polynomial is evaluated outside
    [-1, 1] by continuing the recurrence instead of raising ``DomainError``.
    """

    def __init__(self, n: int, *, stretch: bool = False, extrapolate: bool = False) -> None:
        if n < 1:
            raise InvariantViolation(f"Chebyshev basis needs n >= 1, got {n}.")
        self.n = int(n)
        self.stretch = bool(stretch)
        self.extrapolate = bool(extrapolate)

    def domain(self) -> Interval:
        return Interval(-1.0, 1.0)

    def collocation_points(self) -> np.ndarray:
        i = np.arange(self.n, 0, -1)
        zs = np.cos((i - 0.5) * np.pi / self.n)
        if self.stretch:
            zs = zs * (1.0 / zs[-1])
        return zs

    def degrees_of_freedom(self) -> int:
        return self.n

    def basis_matrix(self, points=None) -> np.ndarray:
        if points is None:
            points = self.collocation_points()
        x, _ = as_points(points)
        if not self.extrapolate and np.any(np.abs(x) > 1.0 + _BOUNDS_SLACK):
            outside = x[np.abs(x) > 1.0 + _BOUNDS_SLACK][0]
            raise DomainError(f"Point {outside} is outside the Chebyshev domain [-1, 1].")

        matrix = np.empty((len(x), self.n), dtype=np.float64)
        matrix[:, 0] = 1.0
        if self.n > 1:
            matrix[:, 1] = x
        for k in range(2, self.n):
            matrix[:, k] = 2.0 * x * matrix[:, k - 1] - matrix[:, k - 2]
        return matrix

    def evaluate(self, coefficients: np.ndarray, x):
        points, scalar = as_points(x)
        values = self.basis_matrix(points) @ np.asarray(coefficients, dtype=np.float64)
        return finish_values(values, scalar)

    def __repr__(self) -> str:
        flags = []
        if self.stretch:
            flags.append("stretch=True")
        if self.extrapolate:
            flags.append("extrapolate=True")
        extra = "".join(f", {flag}" for flag in flags)
        return f"ChebyshevBasis({self.n}{extra})"

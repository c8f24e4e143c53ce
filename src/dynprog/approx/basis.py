"""Common interface for approximation bases and the interpolant value type.

A basis is a finite-dimensional function space with a fixed set of
collocation points. Coefficients map to function values through the basis
matrix, whose rows are the basis functions evaluated at a set of points
(the collocation points by default). Fitting a function means solving the
square system ``basis_matrix() @ alpha = values``.

Concrete bases live in sibling modules:

* ``ChebyshevBasis``       - Chebyshev polynomials on [-1, 1]
* ``PiecewiseLinearBasis`` - hat functions on an ascending node sequence
* ``IntervalRemap``        - affine remap of an inner basis onto [a, b]
* ``ExtrapolationWrapper`` - clamps evaluation into the inner domain
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import scipy.linalg

from dynprog.core.errors import InvariantViolation, NumericFailure
from dynprog.core.interval import Interval


def as_points(x) -> tuple[np.ndarray, bool]:
    """Return ``x`` as a 1-D float array, and whether it was a scalar."""
    scalar = np.ndim(x) == 0
    return np.atleast_1d(np.asarray(x, dtype=np.float64)), scalar


def finish_values(values: np.ndarray, scalar: bool):
    """Undo :func:`as_points` on a vector of evaluated values."""
    if scalar:
        return float(values[0])
    return values


class Basis(ABC):
    """Interpolation space with collocation points and a basis matrix."""

    @abstractmethod
    def domain(self) -> Interval:
        """Closed interval on which the basis is defined."""

    @abstractmethod
    def collocation_points(self) -> np.ndarray:
        """Ascending sample points at which coefficients are fit."""

    @abstractmethod
    def basis_matrix(self, points=None) -> np.ndarray:
        """Basis functions at ``points`` (default: collocation points), one row per point."""

    @abstractmethod
    def evaluate(self, coefficients: np.ndarray, x):
        """Evaluate the approximation with ``coefficients`` at scalar or array ``x``."""

    def degrees_of_freedom(self) -> int:
        return len(self.collocation_points())

    def linspace(self, n: int) -> np.ndarray:
        """``n`` evenly spaced points spanning the domain."""
        return self.domain().linspace(n)

    def solve_coefficients(self, values) -> np.ndarray:
        """Coefficients that interpolate ``values`` at the collocation points."""
        values = self._check_values(values)
        try:
            return scipy.linalg.solve(self.basis_matrix(), values)
        except np.linalg.LinAlgError as exc:
            raise NumericFailure(f"Singular basis matrix for {self}.") from exc

    def collocation_values(self, coefficients: np.ndarray) -> np.ndarray:
        return self.basis_matrix() @ np.asarray(coefficients, dtype=np.float64)

    def interpolate(self, values) -> InterpolatedFunction:
        """Interpolant through ``values`` given at the collocation points."""
        return InterpolatedFunction(self, self.solve_coefficients(values))

    def interpolate_function(self, f: Callable[[float], float]) -> InterpolatedFunction:
        """Interpolant of ``f`` sampled at the collocation points."""
        return self.interpolate([f(float(x)) for x in self.collocation_points()])

    def zeros(self) -> InterpolatedFunction:
        return self.interpolate(np.zeros(self.degrees_of_freedom()))

    def ones(self) -> InterpolatedFunction:
        return self.interpolate(np.ones(self.degrees_of_freedom()))

    def _check_values(self, values) -> np.ndarray:
        values = np.asarray(values, dtype=np.float64)
        dof = self.degrees_of_freedom()
        if values.shape != (dof,):
            raise InvariantViolation(
                f"Expected {dof} collocation values for {self}, got shape {values.shape}."
            )
        return values


@dataclass(frozen=True, eq=False)
class InterpolatedFunction:
    """A basis paired with a coefficient vector.

    The basis is shared by reference. Coefficients are copied into a
    read-only array, so instances never change after construction.
    """

    basis: Basis
    coefficients: np.ndarray

    def __post_init__(self) -> None:
        coefficients = np.array(self.coefficients, dtype=np.float64)
        dof = self.basis.degrees_of_freedom()
        if coefficients.shape != (dof,):
            raise InvariantViolation(
                f"Basis {self.basis} needs {dof} coefficients, got shape {coefficients.shape}."
            )
        coefficients.setflags(write=False)
        object.__setattr__(self, "coefficients", coefficients)

    def domain(self) -> Interval:
        return self.basis.domain()

    def collocation_points(self) -> np.ndarray:
        return self.basis.collocation_points()

    def degrees_of_freedom(self) -> int:
        return self.basis.degrees_of_freedom()

    def evaluate(self, x):
        """Value at a scalar point (returns ``float``) or array of points."""
        return self.basis.evaluate(self.coefficients, x)

    def collocation_values(self) -> np.ndarray:
        return self.basis.collocation_values(self.coefficients)

    def sample_series(self, n: int = 100) -> tuple[np.ndarray, np.ndarray]:
        """Evenly spaced domain samples and the function values there."""
        points = self.basis.linspace(n)
        return points, self.evaluate(points)

    def collocation_series(self) -> tuple[np.ndarray, np.ndarray]:
        return self.collocation_points(), self.collocation_values()

    def __repr__(self) -> str:
        return f"InterpolatedFunction(basis={self.basis!r})"

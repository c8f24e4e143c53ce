"""Decorators that hold an inner basis by reference and adjust its domain or evaluation."""

from __future__ import annotations

import numpy as np

from dynprog.approx.basis import Basis
from dynprog.core.errors import InvariantViolation
from dynprog.core.interval import Interval


def _as_interval(domain) -> Interval:
    if isinstance(domain, Interval):
        return domain
    lo, hi = domain
    return Interval(float(lo), float(hi))


class IntervalRemap(Basis):
    """Move an inner basis onto an arbitrary finite interval.

    Points are mapped to the inner domain with ``x * scale + shift``, where
    ``scale = diam(inner) / diam(outer)``. Collocation points are mapped back
    to the outer interval, so callers only ever see outer coordinates.
    """

    def __init__(self, domain, inner: Basis) -> None:
        domain = _as_interval(domain)
        if not domain.is_finite:
            raise InvariantViolation(f"Remapped domain must be finite, got {domain}.")
        if domain.diameter <= 0.0:
            raise InvariantViolation(f"Remapped domain must have positive width, got {domain}.")
        inner_domain = inner.domain()
        self._domain = domain
        self.inner = inner
        self.scale = inner_domain.diameter / domain.diameter
        self.shift = inner_domain.midpoint - self.scale * domain.midpoint

    def to_inner(self, x):
        if np.ndim(x) == 0:
            return float(x) * self.scale + self.shift
        return np.asarray(x, dtype=np.float64) * self.scale + self.shift

    def from_inner(self, z):
        if np.ndim(z) == 0:
            return (float(z) - self.shift) / self.scale
        return (np.asarray(z, dtype=np.float64) - self.shift) / self.scale

    def domain(self) -> Interval:
        return self._domain

    def collocation_points(self) -> np.ndarray:
        return self.from_inner(self.inner.collocation_points())

    def degrees_of_freedom(self) -> int:
        return self.inner.degrees_of_freedom()

    def basis_matrix(self, points=None) -> np.ndarray:
        if points is None:
            return self.inner.basis_matrix()
        return self.inner.basis_matrix(self.to_inner(points))

    def solve_coefficients(self, values) -> np.ndarray:
        return self.inner.solve_coefficients(values)

    def collocation_values(self, coefficients: np.ndarray) -> np.ndarray:
        return self.inner.collocation_values(coefficients)

    def evaluate(self, coefficients: np.ndarray, x):
        return self.inner.evaluate(coefficients, self.to_inner(x))

    def __repr__(self) -> str:
        return f"{self.inner!r} on {self._domain}"


class ExtrapolationWrapper(Basis):
    """Evaluate outside the inner domain by clamping to its boundary.

    The approximation stays level beyond either end of the domain. Everything
    except evaluation is delegated unchanged to the inner basis.
    """

    def __init__(self, inner: Basis) -> None:
        self.inner = inner

    def domain(self) -> Interval:
        return self.inner.domain()

    def collocation_points(self) -> np.ndarray:
        return self.inner.collocation_points()

    def degrees_of_freedom(self) -> int:
        return self.inner.degrees_of_freedom()

    def basis_matrix(self, points=None) -> np.ndarray:
        return self.inner.basis_matrix(points)

    def solve_coefficients(self, values) -> np.ndarray:
        return self.inner.solve_coefficients(values)

    def collocation_values(self, coefficients: np.ndarray) -> np.ndarray:
        return self.inner.collocation_values(coefficients)

    def evaluate(self, coefficients: np.ndarray, x):
        return self.inner.evaluate(coefficients, self.inner.domain().clamp(x))

    def __repr__(self) -> str:
        return f"ExtrapolationWrapper({self.inner!r})"

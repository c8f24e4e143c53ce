"""Piecewise-linear interpolation on an ascending node sequence."""

from __future__ import annotations

import numpy as np

from dynprog.approx.basis import Basis, as_points, finish_values
from dynprog.core.errors import DomainError, InvariantViolation
from dynprog.core.interval import Interval


class PiecewiseLinearBasis(Basis):
    """Hat-function basis whose collocation points are the nodes themselves.

    Coefficients equal the function values at the nodes, so the basis
    matrix at the nodes is the identity and fitting needs no linear solve.
    """

    def __init__(self, nodes) -> None:
        nodes = np.array(nodes, dtype=np.float64)
        if nodes.ndim != 1 or len(nodes) < 2:
            raise InvariantViolation("Piecewise-linear basis needs at least two nodes.")
        if not np.all(np.isfinite(nodes)):
            raise InvariantViolation("Piecewise-linear nodes must be finite.")
        if not np.all(np.diff(nodes) > 0.0):
            raise InvariantViolation("Piecewise-linear nodes must be strictly increasing.")
        nodes.setflags(write=False)
        self.nodes = nodes

    def domain(self) -> Interval:
        return Interval(float(self.nodes[0]), float(self.nodes[-1]))

    def collocation_points(self) -> np.ndarray:
        return self.nodes

    def basis_matrix(self, points=None) -> np.ndarray:
        if points is None:
            return np.eye(len(self.nodes))
        x, _ = as_points(points)
        index, weight = self._bracket(x)
        rows = np.arange(len(x))
        matrix = np.zeros((len(x), len(self.nodes)), dtype=np.float64)
        matrix[rows, index] = 1.0 - weight
        matrix[rows, index + 1] += weight
        return matrix

    def solve_coefficients(self, values) -> np.ndarray:
        return self._check_values(values).copy()

    def collocation_values(self, coefficients: np.ndarray) -> np.ndarray:
        return np.array(coefficients, dtype=np.float64)

    def evaluate(self, coefficients: np.ndarray, x):
        points, scalar = as_points(x)
        alpha = np.asarray(coefficients, dtype=np.float64)
        index, weight = self._bracket(points)
        values = alpha[index] * (1.0 - weight) + alpha[index + 1] * weight
        return finish_values(values, scalar)

    def _bracket(self, x: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Left node index and relative position within the bracketing segment."""
        lo, hi = self.nodes[0], self.nodes[-1]
        outside = (x < lo) | (x > hi) | np.isnan(x)
        if np.any(outside):
            raise DomainError(
                f"Point {x[outside][0]} is outside the interpolation domain [{lo}, {hi}]."
            )
        index = np.searchsorted(self.nodes, x, side="right") - 1
        index = np.clip(index, 0, len(self.nodes) - 2)
        left = self.nodes[index]
        weight = (x - left) / (self.nodes[index + 1] - left)
        return index, weight

    def __repr__(self) -> str:
        return f"PiecewiseLinearBasis({len(self.nodes)} nodes on {self.domain()})"

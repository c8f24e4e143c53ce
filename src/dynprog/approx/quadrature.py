"""Quadrature rules for expectations under univariate distributions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import math

import numpy as np
from numpy.polynomial.hermite import hermgauss
from numpy.polynomial.legendre import leggauss

from dynprog.core.errors import InvariantViolation
from dynprog.core.interval import Interval


@dataclass(frozen=True, eq=False)
class Quadrature:
    """Nodes and weights of a quadrature rule, together with its domain."""

    domain: Interval
    nodes: np.ndarray
    weights: np.ndarray

    def __post_init__(self) -> None:
        nodes = np.array(self.nodes, dtype=np.float64)
        weights = np.array(self.weights, dtype=np.float64)
        if nodes.ndim != 1 or nodes.shape != weights.shape:
            raise InvariantViolation(
                f"Quadrature nodes {nodes.shape} and weights {weights.shape} must be "
                "1-D sequences of equal length."
            )
        nodes.setflags(write=False)
        weights.setflags(write=False)
        object.__setattr__(self, "nodes", nodes)
        object.__setattr__(self, "weights", weights)

    def __len__(self) -> int:
        return len(self.nodes)

    def integrate(self, f: Callable[[float], float]) -> float:
        """Weighted sum of ``f`` over the nodes."""
        return math.fsum(
            weight * f(float(node)) for node, weight in zip(self.nodes, self.weights)
        )

    def series(self) -> tuple[np.ndarray, np.ndarray]:
        """Nodes and weights as paired sequences, for plotting."""
        return self.nodes, self.weights

    def __repr__(self) -> str:
        return f"Quadrature of {len(self)} points on {self.domain}"


def quadrature(n: int, distribution, domain=None) -> Quadrature:
    """Quadrature for expectations under ``distribution`` restricted to ``domain``.

    Gauss-Legendre nodes are mapped onto the finite ``domain`` and their
    weights are multiplied by the density there, then normalized to sum to
    one. ``distribution`` is anything with a ``pdf`` method, such as a frozen
    ``scipy.stats`` distribution. When ``domain`` is omitted the distribution's
    ``support()`` is used, which suits truncated distributions.
    """
    if n < 1:
        raise InvariantViolation(f"Quadrature needs at least one node, got {n}.")
    if domain is None:
        domain = Interval(*(float(bound) for bound in distribution.support()))
    elif not isinstance(domain, Interval):
        domain = Interval(float(domain[0]), float(domain[1]))
    if not domain.is_finite:
        raise InvariantViolation(f"Quadrature domain must be finite, got {domain}.")

    y_nodes, weights = leggauss(n)
    x_nodes = y_nodes * (domain.diameter / 2.0) + domain.midpoint
    weighted = np.asarray(distribution.pdf(x_nodes), dtype=np.float64) * weights
    total = np.sum(np.abs(weighted))
    if not total > 0.0:
        raise InvariantViolation(f"Distribution has no mass on {domain}.")
    return Quadrature(domain, x_nodes, weighted / total)


def quadrature_normal(n: int, mu: float, sigma: float) -> Quadrature:
    """Gauss-Hermite quadrature for expectations under ``Normal(mu, sigma)``.

    Exact for polynomials up to degree ``2n - 1``.
    """
    if n < 1:
        raise InvariantViolation(f"Quadrature needs at least one node, got {n}.")
    nodes, weights = hermgauss(n)
    return Quadrature(
        Interval(-math.inf, math.inf),
        nodes * math.sqrt(2.0) * sigma + mu,
        weights / math.sqrt(math.pi),
    )

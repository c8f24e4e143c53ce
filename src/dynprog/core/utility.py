"""CRRA utility helpers for consumption models."""

from __future__ import annotations

from collections.abc import Callable
import math

from dynprog.core.errors import DomainError


def crra_utility(c: float, sigma: float) -> float:
    """CRRA utility of consumption ``c`` with relative risk aversion ``sigma``.

    ``sigma == 1`` gives log utility. Zero consumption maps to ``-inf``.
    """
    c = float(c)
    if sigma > 1:
        if c < 0.0:
            raise DomainError(f"Consumption must be non-negative, got {c}.")
        if c == 0.0:
            return -math.inf
        return (c ** (1.0 - sigma) - 1.0) / (1.0 - sigma)
    if sigma == 1:
        return _log_utility(c)
    raise DomainError(f"Risk aversion must be at least 1, got {sigma}.")


def crra_utility_function(sigma: float) -> Callable[[float], float]:
    """Return a callable mapping consumption to CRRA utility."""
    if sigma > 1:
        return lambda c: crra_utility(c, sigma)
    if sigma == 1:
        return _log_utility
    raise DomainError(f"Risk aversion must be at least 1, got {sigma}.")


def crra_marginal_utility(c: float, sigma: float) -> float:
    """Marginal CRRA utility ``c**(-sigma)``."""
    c = float(c)
    if c < 0.0:
        raise DomainError(f"Consumption must be non-negative, got {c}.")
    if c == 0.0:
        return math.inf
    return c ** (-sigma)


def crra_inverse_marginal_utility(m: float, sigma: float) -> float:
    """Consumption level whose marginal utility is ``m``."""
    m = float(m)
    if m <= 0.0:
        raise DomainError(f"Marginal utility must be positive, got {m}.")
    return m ** (-1.0 / sigma)


def _log_utility(c: float) -> float:
    c = float(c)
    if c < 0.0:
        raise DomainError(f"Consumption must be non-negative, got {c}.")
    if c == 0.0:
        return -math.inf
    return math.log(c)

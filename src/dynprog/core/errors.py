"""Exception types raised by basis, quadrature and solver code."""

from __future__ import annotations


class DynProgError(Exception):
    """Base class for all library errors."""


class DomainError(DynProgError, ValueError):
    """A point or parameter lies outside the admissible domain."""


class InvariantViolation(DynProgError, ValueError):
    """A structure was built with inconsistent shapes or ordering."""


class NumericFailure(DynProgError, ArithmeticError):
    """A linear system could not be solved."""

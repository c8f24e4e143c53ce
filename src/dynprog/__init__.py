"""Dynamic-programming solvers over discrete and function-approximated state spaces."""

from dynprog.approx.basis import Basis, InterpolatedFunction
from dynprog.approx.chebyshev import ChebyshevBasis
from dynprog.approx.linear import PiecewiseLinearBasis
from dynprog.approx.quadrature import Quadrature, quadrature, quadrature_normal
from dynprog.approx.wrappers import ExtrapolationWrapper, IntervalRemap
from dynprog.core.errors import DomainError, InvariantViolation, NumericFailure
from dynprog.core.interval import Interval
from dynprog.dp.discrete import DDProblem, DDSolution, solve_iteratively
from dynprog.dp.general import (
    BellmanModel,
    DPSolution,
    OptimalRHS,
    nonlinear_solve_value,
    value_iteration,
)
from dynprog.dp.iteration import IterationOptions

__all__ = [
    "Basis",
    "BellmanModel",
    "ChebyshevBasis",
    "DDProblem",
    "DDSolution",
    "DPSolution",
    "DomainError",
    "ExtrapolationWrapper",
    "InterpolatedFunction",
    "Interval",
    "IntervalRemap",
    "InvariantViolation",
    "IterationOptions",
    "NumericFailure",
    "OptimalRHS",
    "PiecewiseLinearBasis",
    "Quadrature",
    "nonlinear_solve_value",
    "quadrature",
    "quadrature_normal",
    "solve_iteratively",
    "value_iteration",
]

"""Dynamic-programming solvers for discrete and continuous state spaces."""

from dynprog.dp.discrete import DDProblem, DDSolution, solve_iteratively
from dynprog.dp.general import (
    BellmanModel,
    DPSolution,
    OptimalRHS,
    nonlinear_solve_value,
    value_iteration,
)
from dynprog.dp.iteration import IterationOptions, converged

__all__ = [
    "BellmanModel",
    "DDProblem",
    "DDSolution",
    "DPSolution",
    "IterationOptions",
    "OptimalRHS",
    "converged",
    "nonlinear_solve_value",
    "solve_iteratively",
    "value_iteration",
]

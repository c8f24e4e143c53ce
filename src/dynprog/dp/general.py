"""Continuous-state dynamic programming over an approximation basis.

The solver is generic over the model: a model is any object implementing
:class:`BellmanModel`, i.e. an ``optimize_rhs(value, state)`` method that
solves the right-hand side of the Bellman equation at one state for a
given value function and returns an :class:`OptimalRHS`.

Two solution methods are provided. :func:`value_iteration` applies the
Bellman operator at the collocation points and refits on the same basis
until the change is small. :func:`nonlinear_solve_value` treats the Bellman
residual at the collocation points as a system of equations in the
coefficients and hands it to ``scipy.optimize.root``, which is typically
used to polish a value-iteration solution.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from typing import Any, Protocol, runtime_checkable

import numpy as np
from scipy.optimize import OptimizeResult, root

from dynprog.approx.basis import InterpolatedFunction
from dynprog.dp.iteration import IterationOptions, converged

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimalRHS:
    """Optimal value and policy of the Bellman right-hand side at one state."""

    value: float
    policy: float


@runtime_checkable
class BellmanModel(Protocol):
    """Interface every model solved by this module implements."""

    def optimize_rhs(self, value: InterpolatedFunction, state: float) -> OptimalRHS:
        """Maximize the Bellman right-hand side at ``state`` given ``value``."""
        ...


@dataclass(frozen=True, eq=False)
class DPSolution:
    """Value and policy functions for a model, with solver diagnostics."""

    model: Any
    value: InterpolatedFunction
    policy: InterpolatedFunction
    iterations: int
    converged: bool

    def __repr__(self) -> str:
        status = "converged" if self.converged else "did not converge"
        return f"DPSolution {status} after {self.iterations} iterations"


def value_iteration(
    model: BellmanModel,
    initial_value: InterpolatedFunction,
    options: IterationOptions | None = None,
    *,
    show_progress: bool = False,
    progress_desc: str = "Value Iteration",
) -> DPSolution:
    """Solve ``model`` by value iteration on the basis of ``initial_value``.

    Each iteration evaluates ``model.optimize_rhs`` at every collocation
    point and refits the values on the same basis. Convergence requires both
    the L1 and the sup norm of the change at the collocation points to be
    within tolerance. Non-convergence is reported through the result.
    """
    options = options or IterationOptions()
    options.validate()
    basis = initial_value.basis
    states = basis.collocation_points()
    value = initial_value

    iterator = range(1, options.max_iter + 1)
    progress = iterator
    if show_progress:
        from tqdm.auto import tqdm

        progress = tqdm(iterator, desc=progress_desc, dynamic_ncols=True, leave=False)

    solution = None
    for iteration in progress:
        optima = [model.optimize_rhs(value, float(state)) for state in states]
        new_points = np.array([optimum.value for optimum in optima], dtype=np.float64)
        delta = new_points - value.collocation_values()
        new_value = basis.interpolate(new_points)
        is_converged = converged(delta, options)

        max_delta = float(np.max(np.abs(delta))) if delta.size else 0.0
        logger.debug("Iteration %d: sup-norm change %.3e", iteration, max_delta)
        if show_progress:
            progress.set_postfix({"delta": f"{max_delta:.3e}"}, refresh=False)

        if is_converged or iteration == options.max_iter:
            if is_converged:
                logger.info("Value iteration converged after %d iterations.", iteration)
            else:
                logger.warning(
                    "Value iteration did not converge within %d iterations "
                    "(last sup-norm change %.3e).",
                    options.max_iter,
                    max_delta,
                )
            policy = basis.interpolate([optimum.policy for optimum in optima])
            solution = DPSolution(
                model=model,
                value=new_value,
                policy=policy,
                iterations=iteration,
                converged=is_converged,
            )
            break
        value = new_value

    if show_progress:
        progress.close()
    return solution


def continue_value_iteration(
    solution: DPSolution,
    options: IterationOptions | None = None,
    **kwargs: Any,
) -> DPSolution:
    """Resume value iteration from a previous solution's value function."""
    return value_iteration(solution.model, solution.value, options, **kwargs)


def value_residual(model: BellmanModel, value: InterpolatedFunction, state: float) -> float:
    """Right-hand side minus left-hand side of the Bellman equation at ``state``."""
    return model.optimize_rhs(value, state).value - value.evaluate(state)


def solution_residual(solution: DPSolution, state: float) -> float:
    return value_residual(solution.model, solution.value, state)


def solve_residual(
    model: BellmanModel,
    residual_fn: Callable[[Any, InterpolatedFunction, float], float],
    initial_f: InterpolatedFunction,
    **solver_options: Any,
) -> tuple[InterpolatedFunction, OptimizeResult]:
    """Find coefficients that zero ``residual_fn`` at every collocation point.

    ``residual_fn(model, f, state)`` is called for each collocation point of
    ``initial_f``'s basis, and ``initial_f``'s coefficients are the starting
    guess. Keyword arguments go to ``scipy.optimize.root`` (default method
    ``"hybr"``). Returns the solved function and the root finder's result;
    failure to converge is reported there, not raised.
    """
    basis = initial_f.basis
    states = [float(state) for state in basis.collocation_points()]

    def residuals(coefficients: np.ndarray) -> np.ndarray:
        f = InterpolatedFunction(basis, coefficients)
        return np.array([residual_fn(model, f, state) for state in states], dtype=np.float64)

    solver_options.setdefault("method", "hybr")
    result = root(residuals, np.array(initial_f.coefficients), **solver_options)
    if not result.success:
        logger.warning("Residual solver did not converge: %s", result.message)
    return InterpolatedFunction(basis, result.x), result


def nonlinear_solve_value(solution: DPSolution, **solver_options: Any) -> DPSolution:
    """Refine ``solution`` by solving the Bellman residual equations directly.

    The policy is recomputed from the refined value function. The reported
    iteration count is the root finder's iteration count when it provides
    one, otherwise its number of residual evaluations.
    """
    model = solution.model
    value, result = solve_residual(model, value_residual, solution.value, **solver_options)
    policy = value.basis.interpolate_function(
        lambda state: model.optimize_rhs(value, state).policy
    )
    return DPSolution(
        model=model,
        value=value,
        policy=policy,
        iterations=int(result.get("nit", result.get("nfev", 0))),
        converged=bool(result.success),
    )

"""Value and policy iteration for finite Markov decision processes.

States are indexed ``0 .. N-1`` and actions ``0 .. M-1``. A problem is given
by a discount factor, an ``(N, M)`` payoff matrix (``-inf`` marks actions
that are not allowed) and, for every state, an ``(M, N)`` row-stochastic
matrix whose row ``m`` is the next-state distribution under action ``m``.
Transition matrices may be dense arrays or ``scipy.sparse`` matrices.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import warnings

import numpy as np
import pandas as pd
import scipy.linalg
import scipy.sparse
import scipy.sparse.linalg

from dynprog.core.errors import InvariantViolation, NumericFailure
from dynprog.dp.iteration import SQRT_EPS

logger = logging.getLogger(__name__)

_STOCHASTIC_TOL = 1e-9


@dataclass(frozen=True, eq=False)
class DDProblem:
    """Discrete-state, discrete-action infinite-horizon problem."""

    beta: float
    payoffs: np.ndarray
    transitions: tuple

    def __post_init__(self) -> None:
        if not (0.0 < self.beta < 1.0):
            raise InvariantViolation(f"Discount factor must be in (0, 1), got {self.beta}.")

        payoffs = np.array(self.payoffs, dtype=np.float64)
        if payoffs.ndim != 2:
            raise InvariantViolation(
                f"Payoffs must be an (N, M) matrix, got shape {payoffs.shape}."
            )
        blocked = np.flatnonzero(np.all(payoffs == -np.inf, axis=1))
        if blocked.size:
            raise InvariantViolation(f"State {int(blocked[0])} has no allowed action.")
        payoffs.setflags(write=False)
        n_states, n_actions = payoffs.shape

        transitions = tuple(_as_transition(p) for p in self.transitions)
        if len(transitions) != n_states:
            raise InvariantViolation(
                f"Expected {n_states} transition matrices, got {len(transitions)}."
            )
        for n, p in enumerate(transitions):
            if p.shape != (n_actions, n_states):
                raise InvariantViolation(
                    f"Transition matrix for state {n} has shape {p.shape}, "
                    f"expected {(n_actions, n_states)}."
                )
            _validate_stochastic(p, state=n)

        object.__setattr__(self, "payoffs", payoffs)
        object.__setattr__(self, "transitions", transitions)

    @property
    def num_states(self) -> int:
        return self.payoffs.shape[0]

    @property
    def num_actions(self) -> int:
        return self.payoffs.shape[1]

    @property
    def is_sparse(self) -> bool:
        return any(scipy.sparse.issparse(p) for p in self.transitions)

    def __repr__(self) -> str:
        return (
            "Discrete state, discrete time dynamic programming problem with "
            f"{self.num_states} states and {self.num_actions} actions, "
            f"discount factor {self.beta}"
        )


@dataclass(frozen=True, eq=False)
class DDSolution:
    """Result of :func:`solve_iteratively`.

    ``policy`` holds action indexes; they are only optimal when ``converged``.
    """

    values: np.ndarray
    policy: np.ndarray
    iterations: int
    converged: bool

    def __post_init__(self) -> None:
        values = np.array(self.values, dtype=np.float64)
        policy = np.array(self.policy, dtype=np.int64)
        values.setflags(write=False)
        policy.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "policy", policy)

    def transition_matrix(self, problem: DDProblem):
        """Markov chain induced by following ``policy`` in ``problem``."""
        return transition_matrix(problem, self.policy)

    def policy_frame(self) -> pd.DataFrame:
        """One row per state with the chosen action and its value."""
        return pd.DataFrame(
            {
                "state": np.arange(len(self.values)),
                "action": np.asarray(self.policy, dtype=np.int64),
                "value": np.asarray(self.values, dtype=np.float64),
            }
        )

    def __repr__(self) -> str:
        status = "converged" if self.converged else "did not converge"
        return f"DDSolution {status} after {self.iterations} iterations"


def value_iteration_step(problem: DDProblem, values) -> tuple[np.ndarray, np.ndarray]:
    """Apply the Bellman optimality operator once.

    Returns the new value vector and the maximizing action per state. Ties
    go to the lowest action index.
    """
    values = _check_values(problem, values)
    new_values = np.empty(problem.num_states, dtype=np.float64)
    actions = np.empty(problem.num_states, dtype=np.int64)
    for n in range(problem.num_states):
        q_values = problem.payoffs[n] + problem.beta * np.asarray(problem.transitions[n] @ values)
        best_action = int(np.argmax(q_values))
        actions[n] = best_action
        new_values[n] = q_values[best_action]
    return new_values, actions


def transition_matrix(problem: DDProblem, actions):
    """State-to-state transition matrix when state ``n`` plays ``actions[n]``.

    The result is sparse when the problem's transition matrices are.
    """
    actions = _check_actions(problem, actions)
    if problem.is_sparse:
        rows = [
            scipy.sparse.csr_array(problem.transitions[n][[int(m)], :])
            for n, m in enumerate(actions)
        ]
        return scipy.sparse.vstack(rows, format="csr")
    matrix = np.zeros((problem.num_states, problem.num_states), dtype=np.float64)
    for n, m in enumerate(actions):
        matrix[n, :] = problem.transitions[n][int(m), :]
    return matrix


def policy_iteration_step(problem: DDProblem, values) -> tuple[np.ndarray, np.ndarray]:
    """Improve the policy against ``values``, then evaluate it exactly.

    Policy evaluation solves ``(I - beta * M) v = u`` where ``M`` is the
    induced transition matrix and ``u`` the per-state payoff of the policy.
    """
    _, actions = value_iteration_step(problem, values)
    payoffs = problem.payoffs[np.arange(problem.num_states), actions]
    matrix = transition_matrix(problem, actions)
    return _evaluate_policy(problem.beta, matrix, payoffs), actions


def solve_iteratively(
    problem: DDProblem,
    initial_values=None,
    *,
    value_iter_steps: int = 20,
    max_iter: int = 100,
    epsilon: float = SQRT_EPS,
    show_progress: bool = False,
    progress_desc: str = "Discrete DP",
) -> DDSolution:
    """Solve ``problem`` with value iteration followed by policy iteration.

    The first ``value_iter_steps`` iterations use value iteration, later
    ones policy iteration. Iteration stops when the L1 norm of the change in
    values is at most ``epsilon``; after ``max_iter`` iterations the last
    iterate is returned with ``converged=False``.
    """
    if max_iter <= 0:
        raise ValueError("max_iter must be positive.")
    if initial_values is None:
        values = np.zeros(problem.num_states, dtype=np.float64)
    else:
        values = _check_values(problem, initial_values).copy()

    iterator = range(1, max_iter + 1)
    progress = iterator
    if show_progress:
        from tqdm.auto import tqdm

        progress = tqdm(iterator, desc=progress_desc, dynamic_ncols=True, leave=False)

    solution = None
    for iteration in progress:
        if iteration <= value_iter_steps:
            new_values, actions = value_iteration_step(problem, values)
        else:
            new_values, actions = policy_iteration_step(problem, values)
        change = float(np.linalg.norm(new_values - values, 1))
        logger.debug("Iteration %d: L1 change %.3e", iteration, change)
        if show_progress:
            progress.set_postfix({"delta": f"{change:.3e}"}, refresh=False)

        if change <= epsilon:
            logger.info("Discrete problem converged after %d iterations.", iteration)
            solution = DDSolution(new_values, actions, iteration, True)
            break
        if iteration == max_iter:
            logger.warning(
                "Discrete problem did not converge within %d iterations "
                "(last L1 change %.3e).",
                max_iter,
                change,
            )
            solution = DDSolution(new_values, actions, iteration, False)
        values = new_values

    if show_progress:
        progress.close()
    return solution


def simulate_transitions(
    matrix,
    start_state: int,
    n_periods: int,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Simulate ``n_periods`` transitions of the Markov chain ``matrix``.

    Returns the state occupied at the start of each period, beginning with
    ``start_state``. Pass ``rng`` to control the random stream; when omitted
    a fresh generator local to this call is used.
    """
    if rng is None:
        rng = np.random.default_rng()
    if scipy.sparse.issparse(matrix):
        matrix = matrix.toarray()
    matrix = np.asarray(matrix, dtype=np.float64)
    n_states = matrix.shape[0]
    if matrix.shape != (n_states, n_states):
        raise InvariantViolation(f"Transition matrix must be square, got {matrix.shape}.")
    if not (0 <= start_state < n_states):
        raise InvariantViolation(
            f"Start state {start_state} outside [0, {n_states})."
        )
    _validate_stochastic(matrix, state=None)

    path = np.empty(n_periods, dtype=np.int64)
    state = int(start_state)
    for t in range(n_periods):
        path[t] = state
        state = int(rng.choice(n_states, p=matrix[state]))
    return path


def _evaluate_policy(beta: float, matrix, payoffs: np.ndarray) -> np.ndarray:
    n_states = len(payoffs)
    if scipy.sparse.issparse(matrix):
        system = scipy.sparse.eye_array(n_states, format="csc") - beta * scipy.sparse.csc_array(matrix)
        with warnings.catch_warnings():
            warnings.simplefilter("error", scipy.sparse.linalg.MatrixRankWarning)
            try:
                values = scipy.sparse.linalg.spsolve(system, payoffs)
            except scipy.sparse.linalg.MatrixRankWarning as exc:
                raise NumericFailure("Singular policy evaluation system.") from exc
        return np.asarray(values, dtype=np.float64)

    system = np.eye(n_states) - beta * matrix
    try:
        return scipy.linalg.solve(system, payoffs)
    except np.linalg.LinAlgError as exc:
        raise NumericFailure("Singular policy evaluation system.") from exc


def _as_transition(p):
    if scipy.sparse.issparse(p):
        return scipy.sparse.csr_array(p, dtype=np.float64)
    p = np.array(p, dtype=np.float64)
    p.setflags(write=False)
    return p


def _validate_stochastic(p, state: int | None) -> None:
    where = "" if state is None else f" for state {state}"
    minimum = p.min() if p.size else 0.0
    if minimum < 0.0:
        raise InvariantViolation(f"Negative transition probability{where}.")
    row_sums = np.asarray(p.sum(axis=1), dtype=np.float64).ravel()
    if np.any(np.abs(row_sums - 1.0) > _STOCHASTIC_TOL):
        raise InvariantViolation(f"Transition rows{where} must sum to 1.")


def _check_values(problem: DDProblem, values) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    if values.shape != (problem.num_states,):
        raise InvariantViolation(
            f"Value vector must have shape ({problem.num_states},), got {values.shape}."
        )
    return values


def _check_actions(problem: DDProblem, actions: Sequence[int]) -> np.ndarray:
    actions = np.asarray(actions, dtype=np.int64)
    if actions.shape != (problem.num_states,):
        raise InvariantViolation(
            f"Policy must have shape ({problem.num_states},), got {actions.shape}."
        )
    if np.any((actions < 0) | (actions >= problem.num_actions)):
        raise InvariantViolation(
            f"Invalid action in policy; expected actions in [0, {problem.num_actions})."
        )
    return actions

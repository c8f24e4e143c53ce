"""Discrete value and policy iteration tests."""

from __future__ import annotations

import numpy as np
import pytest
import scipy.sparse

from dynprog.core.errors import InvariantViolation, NumericFailure
from dynprog.dp.discrete import (
    _evaluate_policy,
    DDProblem,
    policy_iteration_step,
    simulate_transitions,
    solve_iteratively,
    transition_matrix,
    value_iteration_step,
)


def _two_state_problem(*, sparse: bool = False) -> DDProblem:
    """Stay (action 0) or switch (action 1) between two states.

    Staying pays 1 in state 0 and 2 in state 1; switching pays nothing. The
    optimum is to move to state 1 and stay there: V = (0.9 * 20, 2 / 0.1).
    """
    transitions = [
        np.array([[1.0, 0.0], [0.0, 1.0]]),
        np.array([[0.0, 1.0], [1.0, 0.0]]),
    ]
    if sparse:
        transitions = [scipy.sparse.csr_matrix(p) for p in transitions]
    return DDProblem(
        beta=0.9,
        payoffs=np.array([[1.0, 0.0], [2.0, 0.0]]),
        transitions=transitions,
    )


def test_solve_iteratively_recovers_closed_form_solution() -> None:
    problem = _two_state_problem()
    result = solve_iteratively(problem)

    assert result.converged is True
    assert result.iterations > 20
    assert np.allclose(result.values, [18.0, 20.0], atol=1e-8)
    assert list(result.policy) == [1, 0]


def test_pure_policy_iteration_converges_quickly() -> None:
    result = solve_iteratively(_two_state_problem(), value_iter_steps=0)

    assert result.converged is True
    assert result.iterations == 3
    assert np.allclose(result.values, [18.0, 20.0])


def test_sparse_transitions_give_same_solution() -> None:
    dense = solve_iteratively(_two_state_problem())
    sparse = solve_iteratively(_two_state_problem(sparse=True))

    assert sparse.converged is True
    assert np.allclose(sparse.values, dense.values)
    assert list(sparse.policy) == list(dense.policy)


def test_non_convergence_returns_last_iterate() -> None:
    problem = _two_state_problem()
    result = solve_iteratively(problem, max_iter=3)

    assert result.converged is False
    assert result.iterations == 3
    values = np.zeros(2)
    for _ in range(3):
        values, _ = value_iteration_step(problem, values)
    assert np.allclose(result.values, values)


def test_solver_does_not_mutate_initial_values() -> None:
    initial = np.array([1.0, 2.0])
    solve_iteratively(_two_state_problem(), initial)
    assert list(initial) == [1.0, 2.0]


def test_value_iteration_step_breaks_ties_towards_first_action() -> None:
    problem = DDProblem(
        beta=0.5,
        payoffs=np.array([[1.0, 1.0]]),
        transitions=[np.array([[1.0], [1.0]])],
    )
    values, actions = value_iteration_step(problem, np.zeros(1))
    assert values[0] == 1.0
    assert actions[0] == 0


def test_disallowed_actions_are_never_chosen() -> None:
    problem = DDProblem(
        beta=0.9,
        payoffs=np.array([[-np.inf, 0.5], [2.0, -np.inf]]),
        transitions=_two_state_problem().transitions,
    )
    result = solve_iteratively(problem)
    assert list(result.policy) == [1, 0]


def test_policy_iteration_step_evaluates_policy_exactly() -> None:
    values, actions = policy_iteration_step(_two_state_problem(), np.zeros(2))
    assert list(actions) == [0, 0]
    assert np.allclose(values, [10.0, 20.0])


def test_transition_matrix_rows_are_distributions() -> None:
    problem = DDProblem(
        beta=0.95,
        payoffs=np.zeros((3, 2)),
        transitions=[
            np.array([[0.2, 0.5, 0.3], [1.0, 0.0, 0.0]]),
            np.array([[0.0, 0.0, 1.0], [0.4, 0.4, 0.2]]),
            np.array([[0.1, 0.1, 0.8], [0.0, 1.0, 0.0]]),
        ],
    )
    for policy in ([0, 0, 0], [1, 1, 1], [0, 1, 0], [1, 0, 1]):
        matrix = transition_matrix(problem, policy)
        assert matrix.shape == (3, 3)
        assert np.all(matrix >= 0.0)
        assert np.allclose(matrix.sum(axis=1), 1.0)
    assert np.array_equal(transition_matrix(problem, [1, 0, 1])[1], [0.0, 0.0, 1.0])


def test_solution_helpers() -> None:
    problem = _two_state_problem()
    result = solve_iteratively(problem)

    frame = result.policy_frame()
    assert list(frame.columns) == ["state", "action", "value"]
    assert frame["action"].tolist() == [1, 0]
    assert np.allclose(result.transition_matrix(problem), [[0.0, 1.0], [0.0, 1.0]])
    assert "converged" in repr(result)


def test_problem_dimension_checks() -> None:
    payoffs = np.zeros((2, 2))
    with pytest.raises(InvariantViolation, match="transition matrices"):
        DDProblem(beta=0.9, payoffs=payoffs, transitions=[np.eye(2)])
    with pytest.raises(InvariantViolation, match="shape"):
        DDProblem(beta=0.9, payoffs=payoffs, transitions=[np.eye(2), np.ones((3, 2)) / 2])
    with pytest.raises(InvariantViolation, match="sum to 1"):
        DDProblem(beta=0.9, payoffs=payoffs, transitions=[np.eye(2), np.ones((2, 2))])
    with pytest.raises(InvariantViolation, match="Negative"):
        DDProblem(
            beta=0.9,
            payoffs=payoffs,
            transitions=[np.eye(2), np.array([[1.5, -0.5], [0.0, 1.0]])],
        )
    with pytest.raises(InvariantViolation, match="Discount"):
        DDProblem(beta=1.0, payoffs=payoffs, transitions=[np.eye(2), np.eye(2)])


def test_transition_matrix_rejects_invalid_policy() -> None:
    problem = _two_state_problem()
    with pytest.raises(InvariantViolation, match="Invalid action"):
        transition_matrix(problem, [0, 2])
    with pytest.raises(InvariantViolation, match="shape"):
        transition_matrix(problem, [0])


def test_simulate_deterministic_chain(rng) -> None:
    matrix = transition_matrix(_two_state_problem(), [1, 0])
    path = simulate_transitions(matrix, 0, 5, rng=rng)
    assert list(path) == [0, 1, 1, 1, 1]


def test_simulation_is_reproducible_with_seeded_generator() -> None:
    matrix = np.array([[0.5, 0.5], [0.3, 0.7]])
    first = simulate_transitions(matrix, 1, 50, rng=np.random.default_rng(42))
    second = simulate_transitions(matrix, 1, 50, rng=np.random.default_rng(42))

    assert first[0] == 1
    assert np.array_equal(first, second)
    assert set(first) <= {0, 1}


def test_simulation_rejects_invalid_start_state() -> None:
    with pytest.raises(InvariantViolation, match="Start state"):
        simulate_transitions(np.eye(2), 2, 3)


def test_state_without_allowed_action_is_rejected() -> None:
    with pytest.raises(InvariantViolation, match="State 0 has no allowed action"):
        DDProblem(
            beta=0.9,
            payoffs=np.array([[-np.inf, -np.inf], [1.0, 0.0]]),
            transitions=[np.eye(2), np.eye(2)],
        )


def test_singular_dense_policy_evaluation_raises_numeric_failure() -> None:
    with pytest.raises(NumericFailure, match="Singular") as excinfo:
        _evaluate_policy(1.0, np.eye(2), np.ones(2))
    assert excinfo.value.__cause__ is not None


def test_singular_sparse_policy_evaluation_raises_numeric_failure() -> None:
    matrix = scipy.sparse.csr_array(np.eye(2))
    with pytest.raises(NumericFailure, match="Singular") as excinfo:
        _evaluate_policy(1.0, matrix, np.ones(2))
    assert excinfo.value.__cause__ is not None


def test_sparse_transition_matrix_stays_sparse() -> None:
    problem = _two_state_problem(sparse=True)
    matrix = transition_matrix(problem, [1, 0])

    assert scipy.sparse.issparse(matrix)
    assert matrix.shape == (2, 2)
    assert np.array_equal(matrix.toarray(), [[0.0, 1.0], [0.0, 1.0]])


def test_solution_arrays_are_read_only() -> None:
    result = solve_iteratively(_two_state_problem())
    with pytest.raises(ValueError):
        result.values[0] = 0.0
    with pytest.raises(ValueError):
        result.policy[0] = 0


def test_progress_bar_does_not_change_solution() -> None:
    problem = _two_state_problem()
    quiet = solve_iteratively(problem)
    shown = solve_iteratively(problem, show_progress=True, progress_desc="two-state")

    assert shown.converged is quiet.converged is True
    assert shown.iterations == quiet.iterations
    assert np.array_equal(shown.values, quiet.values)
    assert np.array_equal(shown.policy, quiet.policy)

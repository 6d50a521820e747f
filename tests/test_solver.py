from decimal import Decimal

import pytest

from bond_irr.finance.solver import (
    Converged,
    DerivativeZero,
    DerivativeZeroError,
    IterationLimitError,
    IterationLimitExceeded,
    SolverError,
    newton_raphson,
    solve,
)

TOL = 0.001


def quadratic(x):
    return x * x - 3 * x + 1


def d_quadratic(x):
    return 2 * x - 3


def test_solve_linear():
    assert solve(lambda x: x - 2, lambda x: 1.0, 0.5, TOL, 10) == pytest.approx(2, abs=TOL)


def test_linear_converges_in_two_steps():
    # first step lands on the root, second one measures err == 0
    outcome = newton_raphson(lambda x: x - 2, lambda x: 1.0, 0.5, TOL, 10)
    assert isinstance(outcome, Converged)
    assert outcome.iterations == 2
    assert outcome.unwrap() == 2.0


def test_solve_quadratic_picks_root_near_guess():
    assert solve(quadratic, d_quadratic, 0.5, TOL, 10) == pytest.approx(0.381966, abs=TOL)
    assert solve(quadratic, d_quadratic, 2.5, TOL, 10) == pytest.approx(2.61803, abs=TOL)


def test_quadratic_from_extremum_is_derivative_zero():
    # middle point between the two roots, df(1.5) == 0
    outcome = newton_raphson(quadratic, d_quadratic, 1.5, TOL, 10)
    assert outcome == DerivativeZero(x=1.5, iteration=1)

    with pytest.raises(DerivativeZeroError) as ei:
        solve(quadratic, d_quadratic, 1.5, TOL, 10)
    assert ei.value.x == 1.5
    assert ei.value.iteration == 1
    assert "Try another guess" in str(ei.value)


def test_no_real_roots_exceeds_iteration_limit():
    f = lambda x: x * x - 3 * x + 4  # noqa: E731
    outcome = newton_raphson(f, d_quadratic, 2.0, TOL, 10)
    assert outcome == IterationLimitExceeded(limit=10)

    with pytest.raises(IterationLimitError, match="limit of 10"):
        solve(f, d_quadratic, 2.0, TOL, 10)


def test_solver_errors_share_a_base():
    assert issubclass(DerivativeZeroError, SolverError)
    assert issubclass(IterationLimitError, SolverError)
    assert issubclass(SolverError, ArithmeticError)


def test_converging_on_the_last_allowed_iteration_is_converged():
    # the linear case needs exactly 2 steps
    outcome = newton_raphson(lambda x: x - 2, lambda x: 1.0, 0.5, TOL, 2)
    assert outcome == Converged(root=2.0, iterations=2)
    assert newton_raphson(lambda x: x - 2, lambda x: 1.0, 0.5, TOL, 1) == IterationLimitExceeded(limit=1)


def test_deterministic():
    a = newton_raphson(quadratic, d_quadratic, 0.5, 1e-12, 50)
    b = newton_raphson(quadratic, d_quadratic, 0.5, 1e-12, 50)
    assert a == b


def test_nan_iterate_stops_as_converged_nan():
    outcome = newton_raphson(lambda x: float("nan"), lambda x: 1.0, 0.0, TOL, 10)
    assert isinstance(outcome, Converged)
    assert outcome.root != outcome.root
    assert outcome.iterations == 1


def test_works_with_decimal():
    outcome = newton_raphson(
        lambda x: x * x - 2, lambda x: 2 * x, Decimal(1), Decimal("1e-20"), 50
    )
    assert isinstance(outcome, Converged)
    assert abs(outcome.root - Decimal(2).sqrt()) < Decimal("1e-20")


@pytest.mark.parametrize("limit", [0, -1, 2.5, True])
def test_rejects_bad_iteration_limit(limit):
    with pytest.raises(ValueError):
        newton_raphson(lambda x: x, lambda x: 1.0, 0.0, TOL, limit)


@pytest.mark.parametrize("tol", [0, -1e-8])
def test_rejects_non_positive_tolerance(tol):
    with pytest.raises(ValueError):
        newton_raphson(lambda x: x, lambda x: 1.0, 0.0, tol, 10)

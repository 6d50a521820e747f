# bond_irr/finance/solver.py
"""
Newton-Raphson root search over injected callables.

    x[n+1] = x[n] - f(x[n]) / df(x[n])

Iteration stops when |x[n+1] - x[n]| <= tolerance or after
`iterations_limit` steps. The solver knows nothing about cashflows and works
with any numeric type supporting -, /, abs and comparisons (float, Decimal).

See:
  https://en.wikipedia.org/wiki/Newton%27s_method
  https://www.math.ubc.ca/~anstee/math104/104newtonmethod.pdf
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Union

DIV_BY_0_TEMPLATE = "Derivative is zero at x = {x}, iteration {iteration}. Try another guess."
ITER_LIMIT_TEMPLATE = "Exceeded max iterations limit of {limit}."


class SolverError(ArithmeticError):
    """Root not found for the current guess."""


class DerivativeZeroError(SolverError):
    def __init__(self, x: Any, iteration: int):
        super().__init__(DIV_BY_0_TEMPLATE.format(x=x, iteration=iteration))
        self.x = x
        self.iteration = iteration


class IterationLimitError(SolverError):
    def __init__(self, limit: int):
        super().__init__(ITER_LIMIT_TEMPLATE.format(limit=limit))
        self.limit = limit


@dataclass(frozen=True)
class Converged:
    root: Any
    iterations: int

    def unwrap(self) -> Any:
        return self.root


@dataclass(frozen=True)
class DerivativeZero:
    x: Any
    iteration: int

    def unwrap(self) -> Any:
        raise DerivativeZeroError(self.x, self.iteration)


@dataclass(frozen=True)
class IterationLimitExceeded:
    limit: int

    def unwrap(self) -> Any:
        raise IterationLimitError(self.limit)


SolverOutcome = Union[Converged, DerivativeZero, IterationLimitExceeded]


def newton_raphson(
    f: Callable[[Any], Any],
    df: Callable[[Any], Any],
    guess: Any,
    tolerance: Any,
    iterations_limit: int,
) -> SolverOutcome:
    """
    Run Newton-Raphson from `guess` and report how it ended.

    Never raises for numerical trouble: a zero derivative or an exhausted
    iteration budget come back as DerivativeZero / IterationLimitExceeded.
    A NaN iterate stops the loop (NaN never exceeds the tolerance) and is
    returned as Converged(nan); callers decide whether the root is usable.
    """
    if isinstance(iterations_limit, bool) or not isinstance(iterations_limit, int) or iterations_limit < 1:
        raise ValueError(f"iterations_limit must be a positive int, got {iterations_limit!r}")
    if not tolerance > 0:
        raise ValueError(f"tolerance must be positive, got {tolerance!r}")

    x0 = guess
    err: Any = math.inf
    iteration = 0
    while err > tolerance and iteration < iterations_limit:
        fx = f(x0)
        dfx = df(x0)
        if dfx == 0:
            return DerivativeZero(x=x0, iteration=iteration + 1)
        x1 = x0 - fx / dfx
        err = abs(x1 - x0)
        x0 = x1
        iteration += 1

    if err > tolerance:
        return IterationLimitExceeded(limit=iterations_limit)
    return Converged(root=x0, iterations=iteration)


def solve(
    f: Callable[[Any], Any],
    df: Callable[[Any], Any],
    guess: Any,
    tolerance: Any,
    iterations_limit: int,
) -> Any:
    """Root of f, or SolverError when Newton-Raphson gives up."""
    return newton_raphson(f, df, guess, tolerance, iterations_limit).unwrap()


__all__ = [
    "Converged",
    "DerivativeZero",
    "DerivativeZeroError",
    "IterationLimitError",
    "IterationLimitExceeded",
    "SolverError",
    "SolverOutcome",
    "newton_raphson",
    "solve",
]

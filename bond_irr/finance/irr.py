# bond_irr/finance/irr.py
"""
IRR of an irregular, dated cashflow (XIRR, Actual/365).

    NPV(x)  = A[0] + sum_{i>=1} A[i] * (1+x)^(-d[i]/365)
    NPV'(x) = sum_{i>=1} -d[i]/365 * A[i] * (1+x)^(-1-d[i]/365)

d[i] is the day offset of entry i from entry 0 (any entry works as origin,
the root does not move). The root of NPV is found with Newton-Raphson.

Two numeric paths share one implementation:
  FLOAT   -> compute / IRR                 (production)
  DECIMAL -> compute_precise / HighPrecisionIRR (50 digits, cross-check)

See:
  https://www.investopedia.com/terms/i/irr.asp
  http://www.utstat.utoronto.ca/~alexander/irr-soln.pdf
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Tuple

from .cashflow import CashflowEntry, NormalizedCashflow, as_cashflow, normalize
from .numeric import DECIMAL, FLOAT, Arithmetic
from .solver import Converged, DerivativeZero, SolverOutcome, newton_raphson

DAYS_IN_YEAR = 365


class IRRNotFoundWarning(RuntimeWarning):
    """Newton-Raphson gave up; the IRR is reported as missing."""


# ---------- NPV ----------
def npv_functions(
    normalized: NormalizedCashflow, arithmetic: Arithmetic = FLOAT
) -> Tuple[Callable[[Any], Any], Callable[[Any], Any]]:
    """
    NPV and its analytic derivative as functions of the rate.
    Defined for x > -1 only. Build and call them inside arithmetic.context().
    """
    num = arithmetic.number
    power = arithmetic.power
    one = num(1)
    amounts = [num(a) for a in normalized.amounts]
    years = [num(d) / num(DAYS_IN_YEAR) for d in normalized.offsets]
    head = amounts[0]
    tail = list(zip(amounts[1:], years[1:]))

    def npv(x: Any) -> Any:
        f = head
        base = one + x
        for a, t in tail:
            f += a * power(base, -t)
        return f

    # d/dx a/(1+x)^t = -t * a * (1+x)^(-1-t)
    def d_npv(x: Any) -> Any:
        df = num(0)
        base = one + x
        for a, t in tail:
            df -= t * a * power(base, -one - t)
        return df

    return npv, d_npv


def xnpv(rate: Any, cashflow: Iterable[Any], arithmetic: Arithmetic = FLOAT) -> Any:
    """
    NPV of a dated cashflow discounted to the date of its first entry.
    """
    normalized = normalize(cashflow)
    with arithmetic.context():
        x = arithmetic.number(rate)
        if not x > -1:
            raise ValueError(f"rate must be greater than -1, got {rate!r}")
        npv, _ = npv_functions(normalized, arithmetic)
        return npv(x)


# ---------- IRR ----------
@dataclass(frozen=True)
class IrrResult:
    """
    Outcome of one IRR computation, with enough context to report it.
    `rate` is None unless the solver converged to a root above -1.
    """

    rate: Optional[Any]
    outcome: SolverOutcome
    cashflow: Tuple[CashflowEntry, ...]
    guess: Any

    @property
    def ok(self) -> bool:
        return self.rate is not None

    @property
    def reason(self) -> str:
        if isinstance(self.outcome, Converged):
            return "converged" if self.ok else "root_out_of_domain"
        if isinstance(self.outcome, DerivativeZero):
            return "derivative_zero"
        return "iteration_limit_exceeded"

    @property
    def failed(self) -> bool:
        """True when the solver itself gave up (not a rejected root)."""
        return not isinstance(self.outcome, Converged)

    def describe(self) -> str:
        flow = ", ".join(f"{e.amount} @ {e.date.isoformat()}" for e in self.cashflow)
        if isinstance(self.outcome, Converged):
            head = f"IRR {self.reason}: root={self.outcome.root} after {self.outcome.iterations} iterations"
        elif isinstance(self.outcome, DerivativeZero):
            head = (
                f"IRR equation root not found: derivative is zero at x = {self.outcome.x}, "
                f"iteration {self.outcome.iteration}"
            )
        else:
            head = f"IRR equation root not found: exceeded max iterations limit of {self.outcome.limit}"
        return f"{head} (guess={self.guess}) for cash flow [{flow}]"


def clamp_guess(guess: Any) -> Any:
    """(1+guess) must be positive for fractional powers; guess <= -1 becomes 0."""
    return type(guess)(0) if guess <= -1 else guess


def solve_irr(
    cashflow: Iterable[Any],
    guess: Any,
    tolerance: Any,
    iterations_limit: int,
    arithmetic: Arithmetic = FLOAT,
) -> IrrResult:
    """
    Side-effect free IRR. Raises InvalidCashflowError for fewer than 2
    entries; every numerical failure is reported inside the IrrResult.
    """
    entries = as_cashflow(cashflow)
    normalized = normalize(entries)
    with arithmetic.context():
        x0 = clamp_guess(arithmetic.number(guess))
        npv, d_npv = npv_functions(normalized, arithmetic)
        outcome = newton_raphson(npv, d_npv, x0, arithmetic.number(tolerance), iterations_limit)
        rate = None
        # NaN roots fail this comparison too
        if isinstance(outcome, Converged) and outcome.root > -1:
            rate = outcome.root
    return IrrResult(rate=rate, outcome=outcome, cashflow=entries, guess=x0)


def _report(result: IrrResult) -> Optional[Any]:
    if result.failed:
        warnings.warn(result.describe(), IRRNotFoundWarning, stacklevel=3)
    return result.rate


def compute(
    cashflow: Iterable[Any],
    guess: float,
    tolerance: float,
    iterations_limit: int,
) -> Optional[float]:
    """
    IRR as a fraction (0.124 == 12.4% annualized), or None if there is none.

    Fewer than 2 entries -> InvalidCashflowError. Solver failures emit an
    IRRNotFoundWarning and return None; a root <= -1 returns None quietly.
    """
    return _report(solve_irr(cashflow, guess, tolerance, iterations_limit, FLOAT))


def compute_precise(
    cashflow: Iterable[Any],
    guess: Any,
    tolerance: Any,
    iterations_limit: int,
) -> Optional[Decimal]:
    """Same as compute() in 50-digit decimal arithmetic."""
    return _report(solve_irr(cashflow, guess, tolerance, iterations_limit, DECIMAL))


class IRR:
    """
    IRR calculator bound to solver settings, e.g. the spreadsheet XIRR
    defaults IRR(0.1, 1e-8, 100).
    """

    arithmetic: Arithmetic = FLOAT

    def __init__(self, guess: Any, tolerance: Any, iterations_limit: int):
        self.guess = clamp_guess(guess)
        self.tolerance = tolerance
        self.iterations_limit = iterations_limit

    def solve(self, cashflow: Iterable[Any]) -> IrrResult:
        return solve_irr(cashflow, self.guess, self.tolerance, self.iterations_limit, self.arithmetic)

    def compute(self, cashflow: Iterable[Any]) -> Optional[Any]:
        return _report(self.solve(cashflow))

    def npv(self, rate: Any, cashflow: Iterable[Any]) -> Any:
        return xnpv(rate, cashflow, self.arithmetic)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(guess={self.guess!r}, tolerance={self.tolerance!r}, "
            f"iterations_limit={self.iterations_limit!r})"
        )


class HighPrecisionIRR(IRR):
    """IRR in 50-digit decimal arithmetic. For validating the float path."""

    arithmetic = DECIMAL


__all__ = [
    "DAYS_IN_YEAR",
    "HighPrecisionIRR",
    "IRR",
    "IRRNotFoundWarning",
    "IrrResult",
    "clamp_guess",
    "compute",
    "compute_precise",
    "npv_functions",
    "solve_irr",
    "xnpv",
]

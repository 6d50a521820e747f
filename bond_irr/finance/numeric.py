# bond_irr/finance/numeric.py
"""
Numeric backends for the IRR algorithm.

The NPV builder and the Newton-Raphson solver only use +, -, *, /, abs,
comparisons and a power function. Everything else that differs between
binary floating point and 50-digit decimal arithmetic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    localcontext,
)
from typing import Any, Callable, ContextManager

import numpy as np

# 50 significant digits, no traps: a negative base with a fractional exponent
# gives NaN and runaway iterates give Infinity, as on the float path.
DECIMAL_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP, traps=[])


@dataclass(frozen=True)
class Arithmetic:
    name: str
    number: Callable[[Any], Any]
    power: Callable[[Any, Any], Any]
    context: Callable[[], ContextManager[Any]]


def _float_power(base: float, exponent: float) -> float:
    return float(np.power(base, exponent))


def _to_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return +v  # rounds to the active context
    if isinstance(v, float):
        return Decimal(str(v))
    return Decimal(v)


FLOAT = Arithmetic(
    name="float",
    number=float,
    power=_float_power,
    context=lambda: np.errstate(invalid="ignore", divide="ignore", over="ignore"),
)

DECIMAL = Arithmetic(
    name="decimal",
    number=_to_decimal,
    power=lambda base, exponent: base ** exponent,
    context=lambda: localcontext(DECIMAL_CONTEXT),
)

__all__ = ["Arithmetic", "DECIMAL", "DECIMAL_CONTEXT", "FLOAT"]

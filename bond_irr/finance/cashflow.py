# bond_irr/finance/cashflow.py
"""
Dated cashflows and their normalization to day offsets.

A cashflow is an ordered sequence of (date, signed amount) entries:
outflows negative, inflows positive, one implicit currency. The first entry
is only a time origin; the sequence does not need to be sorted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Tuple


class InvalidCashflowError(ValueError):
    """Cashflow cannot be used for IRR/NPV (caller error, never swallowed)."""


def _as_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return v
    if isinstance(v, float):
        # shortest repr keeps 1001.80 as 1001.8, not its binary expansion
        return Decimal(str(v))
    return Decimal(v)


def _as_date(v: Any) -> date:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        return date.fromisoformat(v.strip())
    # pandas.Timestamp and friends
    to_date = getattr(v, "date", None)
    if callable(to_date):
        return to_date()
    raise TypeError(f"cannot interpret {v!r} as a date")


@dataclass(frozen=True)
class CashflowEntry:
    """Date-stamped amount."""

    date: date
    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _as_date(self.date))
        object.__setattr__(self, "amount", _as_decimal(self.amount))

    @classmethod
    def of(cls, amount: Any, when: Any) -> "CashflowEntry":
        return cls(when, amount)


@dataclass(frozen=True)
class NormalizedCashflow:
    """
    Parallel sequences of day offsets (relative to entry 0) and amounts.
    offsets[0] == 0; other offsets may be negative.
    """

    offsets: Tuple[int, ...]
    amounts: Tuple[Decimal, ...]

    def __len__(self) -> int:
        return len(self.offsets)


def as_cashflow(rows: Iterable[Any]) -> Tuple[CashflowEntry, ...]:
    """
    Coerce rows into CashflowEntry objects. Accepted row shapes:
      CashflowEntry
      (date, amount) pairs
      mappings with 'date' and 'amount' keys
    """
    out = []
    for row in rows:
        if isinstance(row, CashflowEntry):
            out.append(row)
        elif isinstance(row, Mapping):
            try:
                out.append(CashflowEntry(row["date"], row["amount"]))
            except KeyError as e:
                raise InvalidCashflowError(f"cashflow row {dict(row)} is missing {e}") from None
        else:
            when, amount = row
            out.append(CashflowEntry(when, amount))
    return tuple(out)


def normalize(cashflow: Iterable[Any]) -> NormalizedCashflow:
    entries = as_cashflow(cashflow)
    if len(entries) < 2:
        raise InvalidCashflowError(
            f"IRR requires a cashflow of at least 2 entries. Provided cashflow {list(entries)}"
        )
    origin = entries[0].date
    return NormalizedCashflow(
        offsets=tuple((e.date - origin).days for e in entries),
        amounts=tuple(e.amount for e in entries),
    )


__all__ = [
    "CashflowEntry",
    "InvalidCashflowError",
    "NormalizedCashflow",
    "as_cashflow",
    "normalize",
]

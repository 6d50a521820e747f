# bond_irr/finance/bond.py
"""
Bond position -> dated cashflow -> yield to maturity.

Cashflow of holding `quantity` bonds of `nominal` bought at `price`
(fraction of nominal) on the settlement date:
 - purchase: -q*N*p, accrued interest -q*AI, broker and exchange
   commissions on q*N*p
 - each payment date: coupon q*c and principal repayment q*N*fraction
   (amortisation, offer or maturity)
 - optional broker and exchange commissions on an offer redemption,
   dated on the offer day
 - bought below par: price-discount tax q*N*(1-p)*tax, due January 1st
   of the year after the last payment

Numbers are in the single currency of the bond. Amounts are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from bond_irr.config import SolverConfig
from bond_irr.finance.cashflow import CashflowEntry, _as_date, _as_decimal
from bond_irr.finance.irr import compute

PROFIT_TAX = 0.13


@dataclass(frozen=True)
class Commissions:
    broker: float = 0.0003776  # 0.03776%
    exchange: float = 0.0001  # 0.01%


@dataclass(frozen=True)
class BondPosition:
    nominal: float
    quantity: int
    price: float
    settlement: date
    accrued_interest: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "settlement", _as_date(self.settlement))
        if self.nominal <= 0:
            raise ValueError(f"nominal must be > 0, got {self.nominal}")
        if self.quantity <= 0:
            raise ValueError(f"quantity must be > 0, got {self.quantity}")
        if self.price <= 0:
            raise ValueError(f"price must be > 0 (fraction of nominal), got {self.price}")

    @property
    def face_value(self) -> Decimal:
        return self.quantity * _as_decimal(self.nominal)

    @property
    def cost(self) -> Decimal:
        return self.face_value * _as_decimal(self.price)


@dataclass(frozen=True)
class Payment:
    """
    Coupon per bond and/or principal repayment as a fraction of nominal.
    offer_date: day the bonds are tendered when the principal comes from an
    offer; redemption commissions are charged then, not on `date`.
    """

    date: date
    coupon: float = 0.0
    principal_fraction: float = 0.0
    offer_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", _as_date(self.date))
        if self.offer_date is not None:
            object.__setattr__(self, "offer_date", _as_date(self.offer_date))


@dataclass(frozen=True)
class BondCashflow:
    position: BondPosition
    entries: List[CashflowEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _money(v: Decimal) -> Decimal:
    return v.quantize(Decimal("0.01"))


def build_bond_cashflow(
    position: BondPosition,
    payments: Sequence[Payment],
    *,
    commissions: Optional[Commissions] = None,
    tax_rate: float = PROFIT_TAX,
    redemption_commission: bool = False,
) -> BondCashflow:
    """
    Assemble purchase, coupon, amortisation and redemption entries.
    The caller owns the schedule: coupon dates, amounts and fractions.
    """
    if not payments:
        raise ValueError("bond cashflow needs at least one payment")
    fractions = sum(_as_decimal(p.principal_fraction) for p in payments)
    if fractions > 1 + Decimal("1e-9"):
        raise ValueError(f"principal fractions sum to {fractions}, more than the nominal")

    fees = commissions if commissions is not None else Commissions()
    q = position.quantity
    on = position.settlement
    out: List[CashflowEntry] = [CashflowEntry(on, _money(-position.cost))]
    if position.accrued_interest:
        out.append(CashflowEntry(on, _money(-q * _as_decimal(position.accrued_interest))))
    for rate in (fees.broker, fees.exchange):
        if rate:
            out.append(CashflowEntry(on, _money(-position.cost * _as_decimal(rate))))

    for p in sorted(payments, key=lambda p: p.date):
        if p.coupon:
            out.append(CashflowEntry(p.date, _money(q * _as_decimal(p.coupon))))
        if p.principal_fraction:
            principal = position.face_value * _as_decimal(p.principal_fraction)
            if redemption_commission:
                for rate in (fees.broker, fees.exchange):
                    if rate:
                        fee = _money(-principal * _as_decimal(rate))
                        out.append(CashflowEntry(p.offer_date or p.date, fee))
            out.append(CashflowEntry(p.date, _money(principal)))

    if position.price < 1 and tax_rate:
        last = max(p.date for p in payments)
        discount = position.face_value * (1 - _as_decimal(position.price))
        out.append(CashflowEntry(date(last.year + 1, 1, 1), _money(-discount * _as_decimal(tax_rate))))

    return BondCashflow(position=position, entries=out)


def yield_to_maturity(
    position: BondPosition,
    payments: Sequence[Payment],
    *,
    commissions: Optional[Commissions] = None,
    tax_rate: float = PROFIT_TAX,
    redemption_commission: bool = False,
    solver: Optional[SolverConfig] = None,
) -> Optional[float]:
    """YTM (fraction, Actual/365) of the position's cashflow, None if not found."""
    cf = build_bond_cashflow(
        position,
        payments,
        commissions=commissions,
        tax_rate=tax_rate,
        redemption_commission=redemption_commission,
    )
    return compute(cf.entries, *(solver or SolverConfig()).as_args())


# ---------- YAML helpers ----------
def position_from_mapping(d: Mapping[str, Any]) -> BondPosition:
    return BondPosition(
        nominal=float(d["nominal"]),
        quantity=int(d["quantity"]),
        price=float(d["price"]),
        settlement=d["settlement"],
        accrued_interest=float(d.get("accrued_interest", 0.0) or 0.0),
    )


def payments_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[Payment]:
    return [
        Payment(
            date=r["date"],
            coupon=float(r.get("coupon", 0.0) or 0.0),
            principal_fraction=float(r.get("principal_fraction", 0.0) or 0.0),
            offer_date=r.get("offer_date"),
        )
        for r in rows
    ]


def bond_cashflow_from_mapping(d: Mapping[str, Any]) -> BondCashflow:
    """
    Build from a config 'bond' section:
      {nominal, quantity, price, settlement, accrued_interest?,
       payments: [{date, coupon?, principal_fraction?, offer_date?}, ...],
       commissions?: {broker?, exchange?}, tax_rate?, redemption_commission?}
    """
    fees: Dict[str, Any] = dict(d.get("commissions") or {})
    return build_bond_cashflow(
        position_from_mapping(d),
        payments_from_rows(d.get("payments") or []),
        commissions=Commissions(**{k: float(v) for k, v in fees.items()}),
        tax_rate=float(d.get("tax_rate", PROFIT_TAX)),
        redemption_commission=bool(d.get("redemption_commission", False)),
    )


__all__ = [
    "BondCashflow",
    "BondPosition",
    "Commissions",
    "PROFIT_TAX",
    "Payment",
    "bond_cashflow_from_mapping",
    "build_bond_cashflow",
    "payments_from_rows",
    "position_from_mapping",
    "yield_to_maturity",
]

"""
Finance metrics façade.

Design:
- IRR/NPV implementations live only in bond_irr.finance.irr (singleton).
- This module must not *define* compute/xnpv (no 'def compute' / 'def xnpv' here).
- It re-exports what bond YTM scripts and the CLI need.
"""
from .cashflow import CashflowEntry as CashflowEntry, InvalidCashflowError as InvalidCashflowError
from .irr import (  # re-exports only
    HighPrecisionIRR as HighPrecisionIRR,
    IRR as IRR,
    IRRNotFoundWarning as IRRNotFoundWarning,
    compute as compute,
    compute_precise as compute_precise,
    solve_irr as solve_irr,
    xnpv as xnpv,
)

__all__ = [
    "CashflowEntry",
    "HighPrecisionIRR",
    "IRR",
    "IRRNotFoundWarning",
    "InvalidCashflowError",
    "compute",
    "compute_precise",
    "solve_irr",
    "xnpv",
]

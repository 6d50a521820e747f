#!/usr/bin/env python3
"""
Float vs 50-digit decimal cross-check of the IRR engine.
Runs both numeric paths on the same cashflows and tabulates the gap, to
show whether binary floating point is precise enough for a tolerance.
"""
from typing import Any, Iterable, Mapping, Optional
import warnings

import pandas as pd

from .config import SolverConfig
from .finance.irr import IRRNotFoundWarning, solve_irr, xnpv
from .finance.numeric import DECIMAL, FLOAT

COLUMNS = ["name", "float_irr", "precise_irr", "abs_diff", "float_npv", "precise_npv", "reason"]


def compare_one(
    name: str,
    cashflow: Iterable[Any],
    solver: Optional[SolverConfig] = None,
) -> dict:
    """
    One report row. NPVs are evaluated at each path's own root, so they
    show how close to zero each path actually gets.
    """
    cfg = solver or SolverConfig()
    entries = list(cashflow)
    fast = solve_irr(entries, *cfg.as_args(), arithmetic=FLOAT)
    precise = solve_irr(entries, *cfg.as_args(), arithmetic=DECIMAL)

    row = {
        "name": name,
        "float_irr": fast.rate,
        "precise_irr": precise.rate,
        "abs_diff": None,
        "float_npv": None,
        "precise_npv": None,
        "reason": fast.reason if fast.reason == precise.reason else f"{fast.reason}/{precise.reason}",
    }
    if fast.ok:
        row["float_npv"] = float(xnpv(fast.rate, entries, FLOAT))
    if precise.ok:
        row["precise_npv"] = float(xnpv(precise.rate, entries, DECIMAL))
    if fast.ok and precise.ok:
        row["abs_diff"] = float(abs(DECIMAL.number(fast.rate) - precise.rate))
    return row


def compare_paths(
    cashflows: Mapping[str, Iterable[Any]],
    solver: Optional[SolverConfig] = None,
) -> pd.DataFrame:
    """
    Run compare_one() for every named cashflow.

    Args:
        cashflows: name -> cashflow
        solver: guess/tolerance/iterations; spreadsheet XIRR defaults if omitted

    Returns:
        DataFrame with COLUMNS, plus attrs:
          max_abs_diff: largest |float - decimal| over comparable rows
          sufficient:   max_abs_diff <= tolerance
    """
    cfg = solver or SolverConfig()
    rows = []
    failed_count = 0
    for name, cf in cashflows.items():
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IRRNotFoundWarning)
            row = compare_one(name, cf, cfg)
        if row["abs_diff"] is None:
            failed_count += 1
        rows.append(row)

    if failed_count > 0:
        warnings.warn(f"Precision check: {failed_count}/{len(rows)} cashflows have no comparable IRR")

    df = pd.DataFrame(rows, columns=COLUMNS)
    diffs = df["abs_diff"].dropna()
    df.attrs["max_abs_diff"] = float(diffs.max()) if len(diffs) else float("nan")
    df.attrs["sufficient"] = bool(len(diffs)) and df.attrs["max_abs_diff"] <= cfg.tolerance
    return df


__all__ = ["COLUMNS", "compare_one", "compare_paths"]

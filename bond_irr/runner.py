# bond_irr/runner.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import os
import warnings

import pandas as pd

from .config import SolverConfig
from .finance.bond import bond_cashflow_from_mapping
from .finance.cashflow import CashflowEntry, as_cashflow
from .finance.irr import IRRNotFoundWarning, IrrResult, solve_irr
from .finance.numeric import DECIMAL, FLOAT
from .precision import compare_paths
from .validate import (
    _mode_from_env_or_flag,
    load_params_from_file,
    validate_params_dict,
    validate_solver_config,
)

MODES = ("irr", "precise", "compare")


@dataclass
class RunResult:
    summary: Dict[str, Any]
    result: Optional[IrrResult] = None


def cashflow_from_params(params: Dict[str, Any]) -> List[CashflowEntry]:
    if "bond" in params:
        return list(bond_cashflow_from_mapping(params["bond"]))
    return list(as_cashflow(params["cashflow"]))


def _summary(result: IrrResult, arithmetic: str) -> Dict[str, Any]:
    outcome = result.outcome
    return {
        "irr": result.rate,
        "reason": result.reason,
        "iterations": getattr(outcome, "iterations", None),
        "entries": len(result.cashflow),
        "arithmetic": arithmetic,
    }


def run_params(
    params: Dict[str, Any],
    *,
    mode: str = "irr",
    solver: Optional[SolverConfig] = None,
    validation: Optional[str] = None,
) -> RunResult:
    if mode not in MODES:
        raise SystemExit(f"unknown mode: {mode}")
    validate_params_dict(params, mode=_mode_from_env_or_flag(validation))
    cfg = solver or SolverConfig.from_mapping(params)
    validate_solver_config(cfg)
    cashflow = cashflow_from_params(params)

    if mode == "compare":
        df = compare_paths({str(params.get("name", "cashflow")): cashflow}, cfg)
        summary = {k: (None if pd.isna(v) else v) for k, v in df.iloc[0].to_dict().items()}
        summary.update(max_abs_diff=df.attrs["max_abs_diff"], sufficient=df.attrs["sufficient"])
        return RunResult(summary=summary)

    arithmetic = DECIMAL if mode == "precise" else FLOAT
    result = solve_irr(cashflow, *cfg.as_args(), arithmetic=arithmetic)
    if result.failed:
        warnings.warn(result.describe(), IRRNotFoundWarning)
    return RunResult(summary=_summary(result, arithmetic.name), result=result)


def run_file(
    config: str | os.PathLike,
    *,
    mode: str = "irr",
    overrides: Optional[Dict[str, Any]] = None,
    validation: Optional[str] = None,
) -> RunResult:
    """Load YAML/CSV, apply command-line solver overrides, run one mode."""
    path = Path(config)
    if path.is_dir():
        raise SystemExit(f"{path} is a directory (expected a file)")
    params = load_params_from_file(path)
    # file values are checked before SolverConfig coerces them
    validate_params_dict(params, mode=_mode_from_env_or_flag(validation))
    solver = SolverConfig.from_mapping(params).override(**(overrides or {}))
    return run_params(params, mode=mode, solver=solver, validation=validation)


__all__ = ["MODES", "RunResult", "cashflow_from_params", "run_file", "run_params"]

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Tuple
import os
import io
from pathlib import Path

import pandas as pd
import yaml

# Default params of the spreadsheet XIRR() function
EXCEL_GUESS = 0.1
EXCEL_TOLERANCE = 1e-8
EXCEL_ITERATIONS = 100

SOLVER_KEYS = ("guess", "tolerance", "iterations_limit")


@dataclass(frozen=True)
class SolverConfig:
    guess: float = EXCEL_GUESS
    tolerance: float = EXCEL_TOLERANCE
    iterations_limit: int = EXCEL_ITERATIONS

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SolverConfig":
        """Partial overrides; unknown keys are ignored, None means 'keep default'."""
        return cls().override(**dict(data or {}))

    def override(self, **kwargs: Any) -> "SolverConfig":
        if kwargs.get("iterations_limit") is None and kwargs.get("iterations") is not None:
            kwargs["iterations_limit"] = kwargs["iterations"]
        changes: Dict[str, Any] = {}
        for k in SOLVER_KEYS:
            v = kwargs.get(k)
            if v is None:
                continue
            changes[k] = int(v) if k == "iterations_limit" else float(v)
        return replace(self, **changes)

    def as_args(self) -> Tuple[float, float, int]:
        return self.guess, self.tolerance, self.iterations_limit


def _flatten_grouped(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Lift the shallow 'solver' group to the top level so that both
    {'solver': {'guess': 0.2}} and {'guess': 0.2} work.
    Prefers top-level keys if collisions occur.
    """
    flat: Dict[str, Any] = dict(cfg)
    solver = cfg.get("solver")
    if isinstance(solver, dict):
        for sk, sv in solver.items():
            flat.setdefault(sk, sv)
    return flat


def _read_text(source: str | os.PathLike | io.StringIO) -> str:
    if hasattr(source, "read"):
        return str(source.read())
    with open(os.fspath(source), "r", encoding="utf-8") as f:
        return f.read()


def load_cashflow_csv(source: str | os.PathLike | io.StringIO) -> list[dict[str, Any]]:
    """
    CSV with 'date' and 'amount' columns. Amounts are read as text so that
    1001.80 stays an exact decimal.
    """
    df = pd.read_csv(source, dtype={"amount": str}, skipinitialspace=True)
    missing = [c for c in ("date", "amount") if c not in df.columns]
    if missing:
        raise ValueError(f"cashflow CSV is missing columns: {missing}")
    df["date"] = pd.to_datetime(df["date"]).dt.date
    return df[["date", "amount"]].to_dict("records")


def load_params(source: str | os.PathLike | io.StringIO) -> Dict[str, Any]:
    """
    Flat config dict from a YAML path/stream or a CSV path, values as read.
    A CSV becomes {"cashflow": rows}.
    """
    if not hasattr(source, "read") and Path(os.fspath(source)).suffix.lower() == ".csv":
        return {"cashflow": load_cashflow_csv(source)}

    cfg = yaml.safe_load(_read_text(source)) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"expected a mapping at the top of the config, got {type(cfg).__name__}")
    return _flatten_grouped(cfg)


def load_model_config(
    source: str | os.PathLike | io.StringIO,
) -> Tuple[Dict[str, Any], SolverConfig]:
    """Returns (flat_config, solver_config); see load_params()."""
    flat = load_params(source)
    return flat, SolverConfig.from_mapping(flat)


__all__ = [
    "EXCEL_GUESS",
    "EXCEL_ITERATIONS",
    "EXCEL_TOLERANCE",
    "SolverConfig",
    "load_cashflow_csv",
    "load_model_config",
    "load_params",
]

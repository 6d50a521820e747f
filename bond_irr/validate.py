# bond_irr/validate.py
from __future__ import annotations
import os, sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import SOLVER_KEYS, SolverConfig, load_params

TOP_LEVEL_KEYS = {"cashflow", "bond", "solver", "name", "iterations", *SOLVER_KEYS}
BOND_REQUIRED = ("nominal", "quantity", "price", "settlement", "payments")


def _mode_from_env_or_flag(flag: str | None) -> str:
    if flag in ("strict", "relaxed"):
        return flag
    env = (os.environ.get("VALIDATION_MODE") or "").lower()
    return env if env in ("strict", "relaxed") else "relaxed"


def _number(v: Any) -> float | None:
    # YAML 1.1 reads 1e-8 (no dot) as a string
    if isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def validate_solver_dict(data: Dict[str, Any]) -> None:
    guess = data.get("guess")
    if guess is not None and _number(guess) is None:
        raise SystemExit(f"guess must be a number, got {guess!r}")
    tol = data.get("tolerance")
    if tol is not None and not (_number(tol) or 0) > 0:
        raise SystemExit(f"tolerance must be a positive number, got {tol!r}")
    for key in ("iterations_limit", "iterations"):
        limit = data.get(key)
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            raise SystemExit(f"{key} must be a positive integer, got {limit!r}")


def validate_solver_config(cfg: SolverConfig) -> None:
    """Same checks on the merged settings (file, then command line)."""
    validate_solver_dict(
        {"guess": cfg.guess, "tolerance": cfg.tolerance, "iterations_limit": cfg.iterations_limit}
    )


def validate_cashflow_rows(rows: Any) -> None:
    if not isinstance(rows, list):
        raise SystemExit("cashflow must be a list of {date, amount} rows")
    if len(rows) < 2:
        raise SystemExit(f"cashflow needs at least 2 rows, got {len(rows)}")
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise SystemExit(f"cashflow[{i}] must be a mapping, got {row!r}")
        missing = [k for k in ("date", "amount") if k not in row]
        if missing:
            raise SystemExit(f"cashflow[{i}] missing required keys: {missing}")


def validate_bond_dict(bond: Any) -> None:
    if not isinstance(bond, dict):
        raise SystemExit("bond must be a mapping")
    missing = [k for k in BOND_REQUIRED if k not in bond]
    if missing:
        raise SystemExit(f"bond missing required keys: {missing}")
    if not bond["payments"]:
        raise SystemExit("bond.payments must not be empty")
    for k in ("nominal", "quantity", "price"):
        if float(bond[k]) <= 0:
            raise SystemExit(f"bond.{k} must be > 0")


def validate_params_dict(data: Dict[str, Any], *, mode: str = "relaxed") -> None:
    """
    Minimal guardrails:
      - relaxed: require exactly one of {cashflow, bond}
      - strict : additionally reject unknown top-level keys
    """
    sources = [k for k in ("cashflow", "bond") if k in data]
    if len(sources) != 1:
        raise SystemExit("config must define exactly one of: cashflow, bond")

    if mode == "strict":
        unknown = sorted(k for k in data.keys() if k not in TOP_LEVEL_KEYS)
        if unknown:
            raise SystemExit(f"unknown top-level keys (strict mode): {unknown}")

    validate_solver_dict(data)
    if "cashflow" in data:
        validate_cashflow_rows(data["cashflow"])
    else:
        validate_bond_dict(data["bond"])


def load_params_from_file(path: Path) -> Dict[str, Any]:
    p = Path(path)
    if p.is_dir():
        raise SystemExit(f"{p} is a directory (expected a file)")
    return load_params(p)


def _iter_input_files(p: Path) -> Iterable[Path]:
    if p.is_file():
        yield p
    elif p.is_dir():
        for ext in ("*.yaml", "*.yml", "*.csv"):
            yield from sorted(p.rglob(ext))


def _main(argv: List[str] | None = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(prog="bond_irr.validate", add_help=True)
    parser.add_argument("paths", nargs="+", help="YAML/CSV files or directories to validate")
    parser.add_argument("--mode", choices=["strict", "relaxed"], default=None, help="validation mode")
    args = parser.parse_args(argv)

    mode = _mode_from_env_or_flag(args.mode)
    had_error = False

    for raw in args.paths:
        target = Path(raw)
        any_seen = False
        for f in _iter_input_files(target):
            any_seen = True
            try:
                data = load_params_from_file(f)
                validate_params_dict(data, mode=mode)
                print(f"OK: {f}")
            except SystemExit as e:
                print(f"{f}: {e}", file=sys.stderr)
                had_error = True
            except Exception as e:
                print(f"{f}: ERROR: {e}", file=sys.stderr)
                had_error = True
        if not any_seen:
            print(f"{target}: no YAML/CSV files found", file=sys.stderr)
            had_error = True

    return 1 if had_error else 0


if __name__ == "__main__":
    raise SystemExit(_main())

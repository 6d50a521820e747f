# bond_irr/cli.py
from __future__ import annotations

import argparse
import json
import os
import sys
import warnings
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

# Only imports the thin runner; the math stays behind finance/
from .runner import MODES, run_file


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="bond_irr",
        description="IRR / yield to maturity of a dated cashflow (Actual/365, Newton-Raphson)",
    )
    p.add_argument(
        "--config",
        required=True,
        help="YAML with a 'cashflow' or 'bond' section, or a CSV with date,amount columns.",
    )
    p.add_argument(
        "--mode",
        default="irr",
        choices=list(MODES),
        help="irr: float path; precise: 50-digit decimal path; compare: both side by side (default: irr).",
    )
    p.add_argument("--guess", type=float, default=None, help="Initial rate guess (default: 0.1).")
    p.add_argument("--tolerance", type=float, default=None, help="Stop when successive rates differ by less (default: 1e-8).")
    p.add_argument("--iterations", type=int, default=None, help="Newton-Raphson iteration limit (default: 100).")
    p.add_argument(
        "--format",
        dest="fmt",
        default="text",
        choices=["text", "json"],
        help="Output format (default: text).",
    )
    v = p.add_mutually_exclusive_group()
    v.add_argument(
        "--strict",
        action="store_true",
        help="Enable strict validation (unknown keys raise).",
    )
    v.add_argument(
        "--relaxed",
        action="store_true",
        help="Enable relaxed validation (unknown keys ignored).",
    )
    return p.parse_args(argv)


def _apply_validation_mode(ns: argparse.Namespace) -> None:
    # Default: leave env as-is; flags override explicitly.
    if ns.strict:
        os.environ["VALIDATION_MODE"] = "strict"
    elif ns.relaxed:
        os.environ["VALIDATION_MODE"] = "relaxed"


def _jsonable(summary: Dict[str, Any]) -> Dict[str, Any]:
    # Decimal keeps all 50 digits as a string
    return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in summary.items()}


def _print_text(mode: str, summary: Dict[str, Any]) -> None:
    if mode == "compare":
        print(f"float IRR:   {summary['float_irr']}")
        print(f"decimal IRR: {summary['precise_irr']}")
        print(f"|diff|:      {summary['abs_diff']}")
        print(f"float precision sufficient: {summary['sufficient']}")
        return
    rate = summary["irr"]
    if rate is None:
        print(f"IRR: not found ({summary['reason']})")
    else:
        print(f"IRR: {rate * 100:.6f}%")


def main(argv: list[str] | None = None) -> int:
    try:
        ns = _parse_args(argv)
    except SystemExit as e:
        return int(e.code) if isinstance(e.code, int) else 2
    _apply_validation_mode(ns)

    overrides = {"guess": ns.guess, "tolerance": ns.tolerance, "iterations_limit": ns.iterations}
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            res = run_file(Path(ns.config), mode=ns.mode, overrides=overrides)
    except SystemExit as e:
        # validation problems carry a message, not a code
        if isinstance(e.code, int):
            return e.code
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for w in caught:
        print(f"WARNING: {w.message}", file=sys.stderr)

    if ns.fmt == "json":
        print(json.dumps(_jsonable(res.summary), ensure_ascii=False, indent=2))
    else:
        _print_text(ns.mode, res.summary)

    found = res.summary.get("irr", res.summary.get("abs_diff")) is not None
    return 0 if found else 1


__all__ = ["main"]

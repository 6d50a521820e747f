import json
from decimal import Decimal
from pathlib import Path

import pytest

from bond_irr import cli

EXCEL_YAML = """\
solver:
  guess: 0.1
  tolerance: 1e-8
  iterations_limit: 100
cashflow:
  - {date: 2008-01-01, amount: -10000}
  - {date: 2008-03-01, amount: 2750}
  - {date: 2008-10-30, amount: 4250}
  - {date: 2009-02-15, amount: 3250}
  - {date: 2009-04-01, amount: 2750}
"""

NO_ROOT_YAML = """\
cashflow:
  - {date: 2019-01-01, amount: 100}
  - {date: 2020-01-01, amount: 100}
iterations_limit: 3
"""

BOND_YAML = """\
name: par-bond
bond:
  nominal: 1000
  quantity: 10
  price: 1.0
  settlement: 2019-01-01
  commissions: {broker: 0, exchange: 0}
  payments:
    - {date: 2020-01-01, coupon: 50, principal_fraction: 1}
"""


def _write(p: Path, name: str, text: str) -> Path:
    f = p / name
    f.write_text(text, encoding="utf-8")
    return f


def test_cli_missing_config_exits_2():
    assert cli.main([]) == 2


def test_cli_invalid_mode_exits_2(tmp_path):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML)
    assert cli.main(["--config", str(cfg), "--mode", "nope"]) == 2


def test_cli_irr_text(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML)
    assert cli.main(["--config", str(cfg)]) == 0
    assert "IRR: 37.3362" in capsys.readouterr().out


def test_cli_irr_json(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML)
    assert cli.main(["--config", str(cfg), "--format", "json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["irr"] == pytest.approx(0.373362535, abs=1e-8)
    assert data["reason"] == "converged"
    assert data["arithmetic"] == "float"
    assert data["entries"] == 5


def test_cli_precise_json_keeps_digits(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML)
    assert cli.main(["--config", str(cfg), "--mode", "precise", "--format", "json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert isinstance(data["irr"], str)
    assert abs(Decimal(data["irr"]) - Decimal("0.373362535")) < Decimal("1e-8")


def test_cli_compare(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML)
    assert cli.main(["--config", str(cfg), "--mode", "compare"]) == 0
    assert "float precision sufficient: True" in capsys.readouterr().out


def test_cli_bond(tmp_path, capsys):
    cfg = _write(tmp_path, "bond.yaml", BOND_YAML)
    assert cli.main(["--config", str(cfg), "--format", "json"]) == 0
    assert json.loads(capsys.readouterr().out)["irr"] == pytest.approx(0.05, abs=1e-8)


def test_cli_csv(tmp_path, capsys):
    cfg = _write(
        tmp_path,
        "c.csv",
        "date,amount\n2008-02-05,-2750\n2008-07-05,1000\n2009-01-05,2000\n",
    )
    assert cli.main(["--config", str(cfg), "--tolerance", "0.001", "--iterations", "50", "--format", "json"]) == 0
    assert json.loads(capsys.readouterr().out)["irr"] == pytest.approx(0.124, abs=0.001)


def test_cli_no_root_exits_1_with_warning(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", NO_ROOT_YAML)
    assert cli.main(["--config", str(cfg)]) == 1
    captured = capsys.readouterr()
    assert "IRR: not found (iteration_limit_exceeded)" in captured.out
    assert "WARNING:" in captured.err


def test_cli_short_cashflow_is_validation_error(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", "cashflow:\n  - {date: 2008-01-01, amount: -10000}\n")
    assert cli.main(["--config", str(cfg)]) == 2
    assert "at least 2" in capsys.readouterr().err


def test_cli_strict_rejects_unknown_keys(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("VALIDATION_MODE", "relaxed")
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML + "comment: extra\n")
    assert cli.main(["--config", str(cfg)]) == 0
    assert cli.main(["--config", str(cfg), "--strict"]) == 2
    assert "unknown top-level keys" in capsys.readouterr().err


def test_cli_missing_file_exits_1(tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "nope.yaml")]) == 1
    assert "ERROR:" in capsys.readouterr().err


@pytest.mark.parametrize(
    "extra",
    [["--iterations", "0"], ["--tolerance", "0"], ["--tolerance", "-0.5"]],
    ids=["iterations-0", "tolerance-0", "tolerance-negative"],
)
def test_cli_bad_solver_options_exit_2(tmp_path, capsys, extra):
    cfg = _write(tmp_path, "c.csv", "date,amount\n2008-02-05,-2750\n2008-07-05,1000\n2009-01-05,2000\n")
    assert cli.main(["--config", str(cfg), *extra]) == 2
    assert "must be a positive" in capsys.readouterr().err


@pytest.mark.parametrize("key", ["iterations", "iterations_limit"])
def test_cli_bad_iterations_in_file_exit_2(tmp_path, capsys, key):
    cfg = _write(tmp_path, "c.yaml", EXCEL_YAML.replace("iterations_limit: 100", f"{key}: 0"))
    assert cli.main(["--config", str(cfg)]) == 2
    assert f"{key} must be a positive integer" in capsys.readouterr().err


def test_cli_iterations_alias_is_honoured(tmp_path, capsys):
    cfg = _write(tmp_path, "c.yaml", NO_ROOT_YAML.replace("iterations_limit: 3", "iterations: 2"))
    assert cli.main(["--config", str(cfg), "--format", "json"]) == 1
    assert "iterations limit of 2" in capsys.readouterr().err

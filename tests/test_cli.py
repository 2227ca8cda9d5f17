"""Tests for the command-line interface."""

import json

import pandas as pd
import pytest

from paye_engine.cli import build_parser, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "PAYE_DEFAULT_REGIME",
        "PAYE_DEFAULT_CURRENCY",
        "PAYE_RATE_USD",
        "PAYE_RATE_GBP",
        "PAYE_RATE_EUR",
        "PAYE_OUTPUT_DIR",
        "PAYE_LOG_LEVEL",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["calculate", "--income", "5000", "--currency", "usd"])
    assert args.command == "calculate"
    assert args.currency == "USD"


def test_calculate_naira(capsys):
    main(["calculate", "--income", "500000", "--currency", "NGN", "--regime", "reformed"])
    out = capsys.readouterr().out
    assert "384,450.00" in out
    assert "12.61%" in out


def test_calculate_uses_default_rate(capsys):
    # 60 USD at the default 1550 rate is exempt under the reformed regime
    main(["calculate", "--income", "60", "--currency", "USD"])
    out = capsys.readouterr().out
    assert "93,000.00" in out
    assert "low-income exemption" in out


def test_calculate_invalid_income_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["calculate", "--income", "abc", "--currency", "NGN"])
    assert exc.value.code == 1
    assert "Not calculated" in capsys.readouterr().out


def test_calculate_unknown_regime_exits():
    with pytest.raises(SystemExit) as exc:
        main(["calculate", "--income", "500000", "--currency", "NGN", "--regime", "x"])
    assert exc.value.code == 1


def test_calculate_export_json(tmp_path):
    main(
        [
            "calculate",
            "--income", "500000",
            "--currency", "NGN",
            "--export-json", "out.json",
            "--output-dir", str(tmp_path),
        ]
    )
    data = json.loads((tmp_path / "out.json").read_text(encoding="utf-8"))
    assert data["summary"]["effective_tax_rate"] == 12.61


def test_compare(capsys):
    main(["compare", "--income", "500000", "--currency", "NGN"])
    out = capsys.readouterr().out
    assert "Regime Comparison" in out
    assert "Best:" in out
    assert "reformed" in out


def test_regimes_listing(capsys):
    main(["regimes"])
    out = capsys.readouterr().out
    assert "Nigeria Tax Act 2025" in out
    assert "PITA graduated table" in out


def test_regimes_unknown_exits():
    with pytest.raises(SystemExit):
        main(["regimes", "--regime", "legacy"])


def test_batch_uses_default_rate_for_blank_cells(tmp_path):
    payroll = tmp_path / "payroll.csv"
    payroll.write_text(
        "employee_id,income,currency,exchange_rate\n"
        "EMP-1,100,USD,\n"
        "EMP-2,100,USD,2000\n",
        encoding="utf-8",
    )
    main(
        [
            "batch",
            "--file", str(payroll),
            "--output-dir", str(tmp_path),
            "--export-csv", "details.csv",
        ]
    )
    details = pd.read_csv(tmp_path / "details.csv")
    # Blank rate falls back to the 1550 default, explicit rate is kept
    assert list(details["monthly_gross"]) == [155000.0, 200000.0]


def test_batch(tmp_path, capsys):
    payroll = tmp_path / "payroll.csv"
    payroll.write_text(
        "employee_id,income,currency,exchange_rate,regime,annual_rent\n"
        "EMP-1,500000,NGN,,reformed,\n"
        "EMP-2,2500,USD,1550,current,1200000\n"
        "EMP-3,,USD,1550,reformed,\n"
        "EMP-4,1000,JPY,150,reformed,\n",
        encoding="utf-8",
    )
    main(
        [
            "batch",
            "--file", str(payroll),
            "--output-dir", str(tmp_path),
            "--export-csv", "details.csv",
            "--export-json", "summary.json",
        ]
    )
    out = capsys.readouterr().out
    assert "Skipping row 4" in out
    assert "Not calculated: EMP-3" in out
    assert (tmp_path / "details.csv").exists()
    summary = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
    assert summary["summary"]["calculated"] == 2


def test_batch_missing_file():
    with pytest.raises(SystemExit) as exc:
        main(["batch", "--file", "does-not-exist.csv"])
    assert exc.value.code == 1


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 0

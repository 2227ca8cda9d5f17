"""Tests for the ReportGenerator."""

import json
from decimal import Decimal

import pandas as pd
import pytest

from paye_engine.calculator import CalculationInput, Reliefs, TakeHomeCalculator
from paye_engine.report_generator import ReportGenerator


@pytest.fixture
def rg(tmp_path) -> ReportGenerator:
    return ReportGenerator(str(tmp_path))


@pytest.fixture
def calc() -> TakeHomeCalculator:
    return TakeHomeCalculator()


def _input(income: str, regime: str = "reformed", rent: str = "0") -> CalculationInput:
    return CalculationInput(
        income=Decimal(income),
        regime=regime,
        reliefs=Reliefs(annual_rent=Decimal(rent)),
    )


# ── Calculation report ───────────────────────────────────────────────


def test_calculation_report_structure(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.calculation_report(calc.calculate(_input("500000")))
    assert report["report_type"] == "take_home_breakdown"
    assert report["regime"] == "reformed"
    assert report["summary"]["monthly_take_home"] == Decimal("384450")
    assert report["summary"]["effective_tax_rate"] == 12.61
    # 63,050 tax + 40,000 pension + 12,500 NHF a month
    assert report["summary"]["annual_deductions"] == Decimal("1386600")
    assert [d["item"] for d in report["deductions"]] == [
        "income_tax",
        "pension",
        "housing_levy",
        "health_insurance",
    ]
    assert len(report["bands"]) == 3


def test_json_export_rounds_money(rg: ReportGenerator, calc: TakeHomeCalculator, tmp_path):
    # 3001 a month gives a fractional housing levy
    result = calc.calculate(_input("3001", regime="current"))
    json_str = rg.to_json(rg.calculation_report(result), "calc.json")
    data = json.loads(json_str)
    assert data["deductions"][2]["monthly"] == 75.03
    assert (tmp_path / "calc.json").exists()


def test_csv_export_deductions(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.calculation_report(calc.calculate(_input("500000")))
    csv_str = rg.to_csv(report, "deductions.csv")
    lines = csv_str.strip().splitlines()
    assert lines[0] == "item,monthly,annual"
    assert lines[1] == "income_tax,63050.0,756600.0"


def test_csv_export_dict_section(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.calculation_report(calc.calculate(_input("500000", rent="5000000")))
    csv_str = rg.to_csv(report, section="reliefs")
    assert "rent_relief,500000.0" in csv_str


def test_csv_export_empty_section(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.calculation_report(calc.calculate(_input("90000")))
    assert rg.to_csv(report, section="bands") == ""


def test_format_text(rg: ReportGenerator, calc: TakeHomeCalculator):
    text = rg.format_text(rg.calculation_report(calc.calculate(_input("500000"))))
    assert text.startswith("Take Home Breakdown")
    assert "384,450.00" in text
    assert "12.61" in text


# ── Comparison report ────────────────────────────────────────────────


def test_comparison_report(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.comparison_report(calc.compare_regimes(_input("500000")))
    assert report["best_regime"] == "reformed"
    assert report["annual_difference"] == Decimal("324200")
    assert {r["regime"] for r in report["regimes"]} == {"current", "reformed"}


# ── Payroll batch ────────────────────────────────────────────────────


@pytest.fixture
def batch(calc: TakeHomeCalculator):
    return calc.calculate_batch(
        [
            ("EMP-1", _input("500000")),
            ("EMP-2", _input("90000")),
            ("EMP-3", _input("500000", regime="current")),
            ("EMP-4", CalculationInput(income=None)),
        ]
    )


def test_batch_dataframe(rg: ReportGenerator, batch):
    df = rg.batch_to_dataframe(batch)
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 3
    assert list(df["employee_id"]) == ["EMP-1", "EMP-2", "EMP-3"]
    assert df.loc[0, "monthly_tax"] == 63050.0
    assert bool(df.loc[1, "is_exempt"]) is True


def test_batch_report(rg: ReportGenerator, batch):
    report = rg.batch_report(batch)
    assert report["summary"]["records"] == 4
    assert report["summary"]["calculated"] == 3
    assert report["summary"]["skipped"] == 1
    assert report["skipped"] == ["EMP-4"]
    by_regime = {r["regime"]: r for r in report["regime_breakdown"]}
    assert by_regime["reformed"]["employees"] == 2
    assert by_regime["current"]["employees"] == 1


def test_batch_report_empty(rg: ReportGenerator, calc: TakeHomeCalculator):
    report = rg.batch_report(calc.calculate_batch([]))
    assert report["regime_breakdown"] == []
    assert report["summary"]["records"] == 0


def test_export_batch_details(rg: ReportGenerator, batch, tmp_path):
    rg.export_batch_details(batch, "details.csv")
    df = pd.read_csv(tmp_path / "details.csv")
    assert len(df) == 3
    assert "monthly_take_home" in df.columns

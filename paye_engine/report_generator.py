"""
Take-home pay report generator.

Produces:
- Single calculation breakdowns (monthly and annual)
- Regime comparison summaries
- Payroll batch summaries and per-employee detail tables
- CSV and JSON export
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from paye_engine.calculator import BatchResult, CalculationResult, RegimeComparison


def _round_money(amount: Decimal) -> Decimal:
    """Round to the nearest kobo/cent, half up."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _to_plain(obj: Any) -> Any:
    """Recursively round Decimals and convert them to float for serialization."""
    if isinstance(obj, dict):
        return {k: _to_plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_to_plain(i) for i in obj]
    if isinstance(obj, Decimal):
        return float(_round_money(obj))
    if isinstance(obj, date):
        return obj.isoformat()
    return obj


_DETAIL_COLUMNS = [
    "employee_id",
    "regime",
    "monthly_gross",
    "monthly_tax",
    "monthly_pension",
    "monthly_housing_levy",
    "monthly_health_insurance",
    "monthly_deductions",
    "monthly_take_home",
    "annual_tax",
    "effective_tax_rate",
    "is_exempt",
]


class ReportGenerator:
    """
    Builds structured reports from calculation results.

    Reports are plain dicts that can be rendered by the CLI or exported
    to CSV/JSON files under ``output_dir``.
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else Path("reports")
        self.output_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Single calculation
    # ------------------------------------------------------------------

    def calculation_report(self, result: CalculationResult) -> dict[str, Any]:
        """Monthly/annual breakdown of one calculation."""
        return {
            "report_type": "take_home_breakdown",
            "generated_date": date.today().isoformat(),
            "regime": result.regime,
            "currency": result.currency.value,
            "exchange_rate": result.exchange_rate,
            "is_exempt": result.is_exempt,
            "summary": {
                "monthly_gross": result.monthly_gross,
                "monthly_deductions": result.monthly_deductions,
                "monthly_take_home": result.monthly_take_home,
                "annual_gross": result.annual_gross,
                "annual_deductions": result.annual_deductions,
                "annual_take_home": result.annual_take_home,
                "effective_tax_rate": round(result.effective_tax_rate, 2),
            },
            "deductions": [
                {
                    "item": "income_tax",
                    "monthly": result.monthly_tax,
                    "annual": result.annual_tax,
                },
                {
                    "item": "pension",
                    "monthly": result.monthly_pension,
                    "annual": result.annual_pension,
                },
                {
                    "item": "housing_levy",
                    "monthly": result.monthly_housing_levy,
                    "annual": result.annual_housing_levy,
                },
                {
                    "item": "health_insurance",
                    "monthly": result.monthly_health_insurance,
                    "annual": result.annual_health_insurance,
                },
            ],
            "reliefs": {
                "pension": result.annual_pension,
                "housing_levy": result.annual_housing_levy,
                "health_insurance": result.annual_health_insurance,
                "life_insurance": result.annual_life_insurance,
                "mortgage_interest": result.annual_mortgage_interest,
                "rent_relief": result.annual_rent_relief,
                "total": result.total_reliefs,
            },
            "taxable_income": result.taxable_income,
            "bands": [
                {
                    "from": b.lower,
                    "to": b.upper,
                    "rate": b.rate,
                    "taxable": b.taxable,
                    "tax": b.tax,
                }
                for b in result.bands
            ],
        }

    # ------------------------------------------------------------------
    # Regime comparison
    # ------------------------------------------------------------------

    def comparison_report(self, comparison: RegimeComparison) -> dict[str, Any]:
        """Side-by-side figures for every regime."""
        return {
            "report_type": "regime_comparison",
            "generated_date": date.today().isoformat(),
            "best_regime": comparison.best_regime,
            "annual_difference": comparison.annual_difference,
            "regimes": [
                {
                    "regime": code,
                    "annual_tax": r.annual_tax,
                    "taxable_income": r.taxable_income,
                    "monthly_take_home": r.monthly_take_home,
                    "annual_take_home": r.annual_take_home,
                    "effective_tax_rate": round(r.effective_tax_rate, 2),
                    "is_exempt": r.is_exempt,
                }
                for code, r in comparison.results.items()
            ],
        }

    # ------------------------------------------------------------------
    # Payroll batch
    # ------------------------------------------------------------------

    def batch_to_dataframe(self, batch: BatchResult) -> pd.DataFrame:
        """Per-employee detail table, money rounded to two places."""
        rows = []
        for employee_id, r in batch.results:
            rows.append(
                {
                    "employee_id": employee_id,
                    "regime": r.regime,
                    "monthly_gross": float(_round_money(r.monthly_gross)),
                    "monthly_tax": float(_round_money(r.monthly_tax)),
                    "monthly_pension": float(_round_money(r.monthly_pension)),
                    "monthly_housing_levy": float(
                        _round_money(r.monthly_housing_levy)
                    ),
                    "monthly_health_insurance": float(
                        _round_money(r.monthly_health_insurance)
                    ),
                    "monthly_deductions": float(_round_money(r.monthly_deductions)),
                    "monthly_take_home": float(_round_money(r.monthly_take_home)),
                    "annual_tax": float(_round_money(r.annual_tax)),
                    "effective_tax_rate": round(r.effective_tax_rate, 2),
                    "is_exempt": r.is_exempt,
                }
            )
        return pd.DataFrame(rows, columns=_DETAIL_COLUMNS)

    def batch_report(self, batch: BatchResult) -> dict[str, Any]:
        """Payroll totals plus a per-regime breakdown."""
        df = self.batch_to_dataframe(batch)
        if df.empty:
            regime_breakdown: list[dict[str, Any]] = []
        else:
            grouped = df.groupby("regime").agg(
                employees=("employee_id", "count"),
                monthly_gross=("monthly_gross", "sum"),
                monthly_tax=("monthly_tax", "sum"),
                monthly_take_home=("monthly_take_home", "sum"),
            )
            regime_breakdown = [
                {
                    "regime": regime,
                    "employees": int(row["employees"]),
                    "monthly_gross": round(float(row["monthly_gross"]), 2),
                    "monthly_tax": round(float(row["monthly_tax"]), 2),
                    "monthly_take_home": round(float(row["monthly_take_home"]), 2),
                }
                for regime, row in grouped.iterrows()
            ]

        return {
            "report_type": "payroll_summary",
            "generated_date": date.today().isoformat(),
            "summary": {
                "records": batch.record_count,
                "calculated": len(batch.results),
                "exempt": batch.exempt_count,
                "skipped": len(batch.skipped),
                "total_monthly_gross": batch.total_monthly_gross,
                "total_monthly_tax": batch.total_monthly_tax,
                "total_monthly_take_home": batch.total_monthly_take_home,
            },
            "regime_breakdown": regime_breakdown,
            "skipped": batch.skipped,
            "errors": batch.errors,
        }

    # ------------------------------------------------------------------
    # Text rendering
    # ------------------------------------------------------------------

    def format_text(self, report: dict[str, Any]) -> str:
        """Render the summary section of a report as aligned text lines."""
        title = report.get("report_type", "report").replace("_", " ").title()
        lines = [title, "=" * len(title)]
        summary = _to_plain(report.get("summary", {}))
        width = max((len(k) for k in summary), default=0)
        for key, value in summary.items():
            label = key.replace("_", " ").capitalize()
            if isinstance(value, float) and not key.endswith("rate"):
                value = f"{value:,.2f}"
            lines.append(f"{label:<{width}} : {value}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Export methods
    # ------------------------------------------------------------------

    def to_json(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
    ) -> str:
        """Export a report to JSON. Returns the JSON string."""
        json_str = json.dumps(_to_plain(report), indent=2)

        if filename:
            path = self.output_dir / filename
            path.write_text(json_str, encoding="utf-8")

        return json_str

    def to_csv(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
        section: str = "deductions",
    ) -> str:
        """
        Export a report section to CSV. Returns the CSV string.

        List sections become one row per item; dict sections become
        key/value rows.
        """
        data = _to_plain(report.get(section, []))
        if not data:
            return ""

        output = io.StringIO()

        if isinstance(data, list) and isinstance(data[0], dict):
            writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
            writer.writeheader()
            writer.writerows(data)
        elif isinstance(data, dict):
            writer = csv.writer(output)
            writer.writerow(["key", "value"])
            for k, v in data.items():
                writer.writerow([k, v])

        csv_str = output.getvalue()

        if filename:
            path = self.output_dir / filename
            path.write_text(csv_str, encoding="utf-8")

        return csv_str

    def export_batch_details(
        self,
        batch: BatchResult,
        filename: str = "payroll_details.csv",
    ) -> str:
        """Export per-employee results to CSV. Returns the CSV string."""
        csv_str = self.batch_to_dataframe(batch).to_csv(index=False)
        path = self.output_dir / filename
        path.write_text(csv_str, encoding="utf-8")
        return csv_str

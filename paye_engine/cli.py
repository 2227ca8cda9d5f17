"""
Command-line interface for the PAYE Tax Engine.

Provides subcommands for single calculations, regime comparison,
regime tables and payroll batch processing.
"""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from paye_engine.calculator import (
    CalculationInput,
    CalculationResult,
    Reliefs,
    TakeHomeCalculator,
)
from paye_engine.config import Settings, load_settings
from paye_engine.currency import BASE_CURRENCY, Currency
from paye_engine.logging_config import setup_logger
from paye_engine.regimes import RegimeDatabase, TaxRegime
from paye_engine.report_generator import ReportGenerator
from paye_engine.validation import (
    parse_currency,
    parse_positive_amount,
    parse_relief,
)

console = Console()
logger = logging.getLogger(__name__)


def _ngn(amount: Decimal) -> str:
    return f"{BASE_CURRENCY.symbol}{amount:,.2f}"


def _build_input(args: argparse.Namespace, settings: Settings) -> CalculationInput:
    """Turn calculate/compare arguments into an engine input."""
    try:
        currency = parse_currency(args.currency or settings.default_currency)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if args.rate is not None:
        rate = parse_positive_amount(args.rate)
    else:
        rate = settings.rate_for(currency)

    return CalculationInput(
        income=parse_positive_amount(args.income),
        currency=currency,
        exchange_rate=rate,
        regime=(getattr(args, "regime", None) or settings.default_regime).lower(),
        reliefs=Reliefs(
            health_insurance=parse_relief(args.health_insurance),
            life_insurance=parse_relief(args.life_insurance),
            mortgage_interest=parse_relief(args.mortgage_interest),
            annual_rent=parse_relief(args.rent),
        ),
    )


def _not_calculated() -> None:
    console.print(
        "[yellow]Not calculated: enter a positive income and exchange rate.[/yellow]"
    )
    sys.exit(1)


def _load_payroll_csv(
    path: str, settings: Settings
) -> list[tuple[str, CalculationInput]]:
    """
    Load payroll records from a CSV file.

    Expected columns: employee_id, income, currency, exchange_rate, regime,
                      health_insurance, life_insurance, mortgage_interest,
                      annual_rent

    Foreign-currency rows with an empty exchange_rate cell use the
    configured default rate for that currency.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        sys.exit(1)

    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    if "income" not in df.columns:
        console.print("[red]Missing required column: income[/red]")
        sys.exit(1)

    records: list[tuple[str, CalculationInput]] = []
    for i, row in enumerate(df.to_dict(orient="records")):
        employee_id = row.get("employee_id") or str(i + 1)
        try:
            calc_input = CalculationInput.from_dict(row)
        except ValueError as e:
            console.print(f"[yellow]Skipping row {i + 1}: {e}[/yellow]")
            continue
        if not str(row.get("exchange_rate", "")).strip():
            calc_input.exchange_rate = settings.rate_for(calc_input.currency)
        records.append((employee_id, calc_input))
    logger.info("Loaded %d payroll records from %s", len(records), path)
    return records


def _breakdown_panel(result: CalculationResult) -> Panel:
    lines = [
        f"[bold]Regime:[/bold] {result.regime}",
        f"[bold]Gross (monthly):[/bold] {_ngn(result.monthly_gross)}",
        f"[bold]Income Tax:[/bold] {_ngn(result.monthly_tax)}",
        f"[bold]Pension (8%):[/bold] {_ngn(result.monthly_pension)}",
    ]
    if result.monthly_housing_levy > 0:
        lines.append(f"[bold]NHF (2.5%):[/bold] {_ngn(result.monthly_housing_levy)}")
    if result.monthly_health_insurance > 0:
        lines.append(
            f"[bold]Health Insurance:[/bold] {_ngn(result.monthly_health_insurance)}"
        )
    lines += [
        f"[bold]Total Deductions:[/bold] {_ngn(result.monthly_deductions)}",
        f"[bold]Take-Home (monthly):[/bold] [green]{_ngn(result.monthly_take_home)}[/green]",
        "",
        f"[bold]Annual Gross:[/bold] {_ngn(result.annual_gross)}",
        f"[bold]Taxable Income:[/bold] {_ngn(result.taxable_income)}",
        f"[bold]Annual Tax:[/bold] {_ngn(result.annual_tax)}",
        f"[bold]Annual Take-Home:[/bold] {_ngn(result.annual_take_home)}",
        f"[bold]Effective Tax Rate:[/bold] {result.effective_tax_rate:.2f}%",
        f"[bold]Exempt:[/bold] {'Yes - low-income exemption' if result.is_exempt else 'No'}",
    ]
    return Panel("\n".join(lines), title="Take-Home Pay", border_style="green")


def _reliefs_table(result: CalculationResult) -> Table:
    table = Table(title="Annual Reliefs", box=box.SIMPLE)
    table.add_column("Relief")
    table.add_column("Amount", justify="right")
    for label, amount in [
        ("Pension", result.annual_pension),
        ("Housing fund levy", result.annual_housing_levy),
        ("Health insurance", result.annual_health_insurance),
        ("Life insurance", result.annual_life_insurance),
        ("Mortgage interest", result.annual_mortgage_interest),
        ("Rent relief", result.annual_rent_relief),
    ]:
        if amount > 0:
            table.add_row(label, _ngn(amount))
    table.add_row("[bold]Total[/bold]", f"[bold]{_ngn(result.total_reliefs)}[/bold]")
    return table


def _bands_table(result: CalculationResult) -> Table:
    table = Table(title="Tax by Band", box=box.SIMPLE)
    table.add_column("Band")
    table.add_column("Rate", justify="right")
    table.add_column("Taxed", justify="right")
    table.add_column("Tax", justify="right", style="bold")
    for b in result.bands:
        upper = _ngn(b.upper) if b.upper is not None else "and above"
        table.add_row(
            f"{_ngn(b.lower)} - {upper}",
            f"{b.rate:.0%}",
            _ngn(b.taxable),
            _ngn(b.tax),
        )
    return table


# -----------------------------------------------------------------------
# Subcommand: calculate
# -----------------------------------------------------------------------


def cmd_calculate(args: argparse.Namespace, settings: Settings) -> None:
    """Calculate take-home pay for a single monthly income."""
    calc = TakeHomeCalculator()
    try:
        result = calc.calculate(_build_input(args, settings))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if result is None:
        _not_calculated()

    console.print(_breakdown_panel(result))
    console.print(_reliefs_table(result))
    if result.bands:
        console.print(_bands_table(result))

    if args.export_json:
        rg = ReportGenerator(args.output_dir or settings.output_dir)
        rg.to_json(rg.calculation_report(result), args.export_json)
        console.print(f"[green]JSON exported to {args.export_json}[/green]")


# -----------------------------------------------------------------------
# Subcommand: compare
# -----------------------------------------------------------------------


def cmd_compare(args: argparse.Namespace, settings: Settings) -> None:
    """Compare take-home pay under every regime."""
    calc = TakeHomeCalculator()
    comparison = calc.compare_regimes(_build_input(args, settings))
    if comparison is None:
        _not_calculated()

    table = Table(title="Regime Comparison", box=box.ROUNDED, show_lines=True)
    table.add_column("Regime", style="bold")
    table.add_column("Taxable", justify="right")
    table.add_column("Annual Tax", justify="right")
    table.add_column("Monthly Take-Home", justify="right", style="bold")
    table.add_column("Effective", justify="right")
    table.add_column("Exempt", justify="center")

    for code, r in comparison.results.items():
        table.add_row(
            code + (" *" if code == comparison.best_regime else ""),
            _ngn(r.taxable_income),
            _ngn(r.annual_tax),
            _ngn(r.monthly_take_home),
            f"{r.effective_tax_rate:.2f}%",
            "Y" if r.is_exempt else "",
        )
    console.print(table)
    console.print(
        f"[bold]Best:[/bold] {comparison.best_regime} "
        f"(+{_ngn(comparison.annual_difference)} a year)"
    )

    if args.export_json:
        rg = ReportGenerator(args.output_dir or settings.output_dir)
        rg.to_json(rg.comparison_report(comparison), args.export_json)
        console.print(f"[green]JSON exported to {args.export_json}[/green]")


# -----------------------------------------------------------------------
# Subcommand: regimes
# -----------------------------------------------------------------------


def _regime_table(regime: TaxRegime) -> Table:
    table = Table(title=f"{regime.name} ({regime.code})", box=box.ROUNDED)
    table.add_column("From", justify="right")
    table.add_column("To", justify="right")
    table.add_column("Rate", justify="right", style="bold")
    lower = Decimal("0")
    for bracket in regime.brackets:
        table.add_row(
            _ngn(lower),
            _ngn(bracket.upper_bound) if bracket.upper_bound is not None else "-",
            f"{bracket.rate:.0%}",
        )
        if bracket.upper_bound is not None:
            lower = bracket.upper_bound
    return table


def cmd_regimes(args: argparse.Namespace, settings: Settings) -> None:
    """Display bracket tables and relief rules."""
    db = RegimeDatabase()
    if args.regime:
        try:
            regimes = [db.get_regime(args.regime)]
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
    else:
        regimes = db.all_regimes()

    for regime in regimes:
        console.print(_regime_table(regime))
        rent = (
            f"{regime.rent_relief.rate:.0%} of rent, max {_ngn(regime.rent_relief.cap)}"
            if regime.rent_relief
            else "None"
        )
        exemption = (
            f"Annual gross up to {_ngn(regime.exemption_threshold)}"
            if regime.has_exemption
            else "None"
        )
        console.print(
            Panel(
                f"[bold]Exemption:[/bold] {exemption}\n"
                f"[bold]Rent Relief:[/bold] {rent}\n"
                f"[bold]Pension:[/bold] {regime.pension_rate:.0%}\n"
                f"[bold]Housing Levy:[/bold] {regime.housing_levy_rate:.1%} "
                f"above {_ngn(regime.housing_levy_threshold)}/month\n"
                f"[bold]Notes:[/bold] {regime.notes}",
                border_style="cyan",
            )
        )


# -----------------------------------------------------------------------
# Subcommand: batch
# -----------------------------------------------------------------------


def cmd_batch(args: argparse.Namespace, settings: Settings) -> None:
    """Calculate take-home pay for every employee in a payroll CSV."""
    records = _load_payroll_csv(args.file, settings)
    calc = TakeHomeCalculator()
    batch = calc.calculate_batch(records)

    rg = ReportGenerator(args.output_dir or settings.output_dir)
    df = rg.batch_to_dataframe(batch)

    table = Table(title="Payroll Results", box=box.ROUNDED, show_lines=True)
    table.add_column("Employee", style="dim")
    table.add_column("Regime")
    table.add_column("Gross", justify="right")
    table.add_column("Tax", justify="right")
    table.add_column("Take-Home", justify="right", style="bold")
    table.add_column("Rate", justify="right")
    table.add_column("Exempt", justify="center")
    for row in df.itertuples(index=False):
        table.add_row(
            str(row.employee_id)[:12],
            row.regime,
            f"{row.monthly_gross:,.2f}",
            f"{row.monthly_tax:,.2f}",
            f"{row.monthly_take_home:,.2f}",
            f"{row.effective_tax_rate:.2f}%",
            "Y" if row.is_exempt else "",
        )
    console.print(table)

    report = rg.batch_report(batch)
    console.print(Panel(rg.format_text(report), title="Batch Summary", border_style="green"))

    for record_id in batch.skipped:
        console.print(f"[yellow]Not calculated: {record_id} (invalid income or rate)[/yellow]")
    for error in batch.errors:
        console.print(f"[red]{error}[/red]")

    if args.export_json:
        rg.to_json(report, args.export_json)
        console.print(f"[green]JSON exported to {args.export_json}[/green]")
    if args.export_csv:
        rg.export_batch_details(batch, args.export_csv)
        console.print(f"[green]CSV exported to {args.export_csv}[/green]")


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def _add_income_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--income", "-i", help="Monthly gross income")
    parser.add_argument(
        "--currency",
        "-c",
        choices=[c.value for c in Currency],
        type=str.upper,
        help="Income currency (default from settings)",
    )
    parser.add_argument("--rate", help="Exchange rate to NGN")
    parser.add_argument("--health-insurance", help="Monthly health insurance contribution")
    parser.add_argument("--life-insurance", help="Annual life insurance premium")
    parser.add_argument("--mortgage-interest", help="Annual mortgage interest")
    parser.add_argument("--rent", help="Annual rent paid")
    parser.add_argument("--export-json", help="Export results to JSON file")
    parser.add_argument("--output-dir", help="Output directory for exports")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paye-engine",
        description="PAYE Tax Engine - Personal income tax and take-home pay calculator",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level (default from PAYE_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # calculate
    calc_p = subparsers.add_parser("calculate", help="Calculate take-home pay")
    _add_income_arguments(calc_p)
    calc_p.add_argument("--regime", "-r", help="Tax regime code")
    calc_p.set_defaults(func=cmd_calculate)

    # compare
    comp_p = subparsers.add_parser("compare", help="Compare all tax regimes")
    _add_income_arguments(comp_p)
    comp_p.set_defaults(func=cmd_compare)

    # regimes
    reg_p = subparsers.add_parser("regimes", help="View tax regime tables")
    reg_p.add_argument("--regime", "-r", help="Regime code to show")
    reg_p.set_defaults(func=cmd_regimes)

    # batch
    batch_p = subparsers.add_parser("batch", help="Process a payroll CSV")
    batch_p.add_argument("--file", "-f", required=True, help="Payroll CSV file")
    batch_p.add_argument("--export-json", help="Export summary to JSON")
    batch_p.add_argument("--export-csv", help="Export per-employee details to CSV")
    batch_p.add_argument("--output-dir", help="Output directory")
    batch_p.set_defaults(func=cmd_batch)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(2)

    setup_logger("paye_engine", args.log_level or settings.log_level)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    args.func(args, settings)

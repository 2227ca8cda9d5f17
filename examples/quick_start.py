#!/usr/bin/env python3
"""
Quick Start Example
===================

Demonstrates basic usage of the TakeHomeCalculator: a USD salary under
the reformed regime, then a low-income salary that falls under the
exemption threshold.

Usage:
    python examples/quick_start.py
"""

from decimal import Decimal

from paye_engine.calculator import CalculationInput, Reliefs, TakeHomeCalculator
from paye_engine.currency import Currency


def main() -> None:
    calculator = TakeHomeCalculator()

    # $5,000 a month at 1,550 NGN/USD, paying 3.6M NGN rent a year
    calc_input = CalculationInput(
        income=Decimal("5000"),
        currency=Currency.USD,
        exchange_rate=Decimal("1550"),
        regime="reformed",
        reliefs=Reliefs(annual_rent=Decimal("3600000")),
    )

    result = calculator.calculate(calc_input)

    print(f"Regime:           {result.regime}")
    print(f"Gross (monthly):  NGN {result.monthly_gross:,.2f}")
    print(f"Income Tax:       NGN {result.monthly_tax:,.2f}")
    print(f"Pension:          NGN {result.monthly_pension:,.2f}")
    print(f"NHF:              NGN {result.monthly_housing_levy:,.2f}")
    print(f"Take-Home:        NGN {result.monthly_take_home:,.2f}")
    print(f"Rent Relief:      NGN {result.annual_rent_relief:,.2f}")
    print(f"Effective Rate:   {result.effective_tax_rate:.2f}%")

    # A salary under the 1.2M annual exemption threshold
    print("\n--- Exempt Salary ---")
    low = calculator.calculate(
        CalculationInput(income=Decimal("90000"), regime="reformed")
    )
    print(f"Exempt:           {low.is_exempt}")
    print(f"Tax:              NGN {low.annual_tax:,.2f}")
    print(f"Take-Home:        NGN {low.monthly_take_home:,.2f}")


if __name__ == "__main__":
    main()

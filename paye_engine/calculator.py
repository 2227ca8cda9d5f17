"""
Progressive income tax and take-home pay calculation engine.

Handles:
- Progressive bracket tax with per-band breakdown
- Currency conversion of monthly gross income
- Standard payroll deductions (pension, housing fund levy)
- Reliefs (health insurance, life insurance, mortgage interest, rent)
- Low-income exemption for regimes that define one
- Regime comparison and batch payroll calculation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from paye_engine.currency import BASE_CURRENCY, Currency, effective_rate
from paye_engine.regimes import RegimeCode, RegimeDatabase, TaxBracket, TaxRegime
from paye_engine.validation import (
    parse_currency,
    parse_positive_amount,
    parse_relief,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal("12")
_ZERO = Decimal("0")


def _d(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# -----------------------------------------------------------------------
# Progressive tax
# -----------------------------------------------------------------------


@dataclass
class BandTax:
    """Tax charged within a single bracket."""

    lower: Decimal
    upper: Optional[Decimal]
    rate: float
    taxable: Decimal
    tax: Decimal


def _walk_brackets(
    taxable_amount: Decimal, brackets: Sequence[TaxBracket]
) -> Iterable[BandTax]:
    remaining = taxable_amount
    previous_limit = _ZERO

    for bracket in brackets:
        if bracket.upper_bound is None:
            in_band = remaining
        else:
            in_band = min(remaining, bracket.upper_bound - previous_limit)
        if in_band <= 0:
            break

        yield BandTax(
            lower=previous_limit,
            upper=bracket.upper_bound,
            rate=bracket.rate,
            taxable=in_band,
            tax=in_band * _d(bracket.rate),
        )
        remaining -= in_band
        if bracket.upper_bound is not None:
            previous_limit = bracket.upper_bound

        if remaining <= 0:
            break


def compute_progressive_tax(
    taxable_amount, brackets: Sequence[TaxBracket]
) -> Decimal:
    """
    Compute tax on an annual taxable amount across ascending brackets.

    Bracket bounds are cumulative ceilings; each band taxes only the slice
    of income between the previous ceiling and its own. Amounts at or
    below zero owe nothing.
    """
    amount = _d(taxable_amount)
    if amount <= 0:
        return _ZERO
    return sum((band.tax for band in _walk_brackets(amount, brackets)), _ZERO)


def bracket_breakdown(
    taxable_amount, brackets: Sequence[TaxBracket]
) -> list[BandTax]:
    """Return each band reached by ``taxable_amount`` with the tax it carries."""
    amount = _d(taxable_amount)
    if amount <= 0:
        return []
    return list(_walk_brackets(amount, brackets))


# -----------------------------------------------------------------------
# Inputs and results
# -----------------------------------------------------------------------


@dataclass
class Reliefs:
    """Optional reliefs claimed against taxable income."""

    health_insurance: Decimal = _ZERO  # monthly contribution
    life_insurance: Decimal = _ZERO  # annual premium
    mortgage_interest: Decimal = _ZERO  # annual
    annual_rent: Decimal = _ZERO  # rent paid, not the relief

    def __post_init__(self) -> None:
        self.health_insurance = parse_relief(self.health_insurance)
        self.life_insurance = parse_relief(self.life_insurance)
        self.mortgage_interest = parse_relief(self.mortgage_interest)
        self.annual_rent = parse_relief(self.annual_rent)

    @classmethod
    def from_dict(cls, data: dict) -> "Reliefs":
        return cls(
            health_insurance=data.get("health_insurance"),
            life_insurance=data.get("life_insurance"),
            mortgage_interest=data.get("mortgage_interest"),
            annual_rent=data.get("annual_rent"),
        )


@dataclass
class CalculationInput:
    """A single take-home pay request."""

    income: Optional[Decimal]  # monthly, in ``currency``
    currency: Currency = BASE_CURRENCY
    exchange_rate: Optional[Decimal] = None
    regime: str = RegimeCode.REFORMED.value
    reliefs: Reliefs = field(default_factory=Reliefs)

    def __post_init__(self) -> None:
        # Unusable income or rate become None and are declined by the calculator
        self.income = parse_positive_amount(self.income)
        self.exchange_rate = parse_positive_amount(self.exchange_rate)
        self.currency = parse_currency(self.currency)

    @classmethod
    def from_dict(cls, data: dict) -> "CalculationInput":
        """
        Build an input from loosely typed values.

        Income and exchange rate that do not parse to positive numbers are
        kept as None so the calculator declines them; reliefs fall back to 0.
        """
        return cls(
            income=data.get("income"),
            currency=data.get("currency") or BASE_CURRENCY,
            exchange_rate=data.get("exchange_rate"),
            regime=str(data.get("regime") or RegimeCode.REFORMED.value)
            .strip()
            .lower(),
            reliefs=Reliefs.from_dict(data),
        )


@dataclass
class CalculationResult:
    """Full monthly and annual breakdown of one calculation."""

    regime: str
    currency: Currency
    exchange_rate: Decimal
    monthly_gross: Decimal
    annual_gross: Decimal
    monthly_tax: Decimal
    annual_tax: Decimal
    monthly_pension: Decimal
    annual_pension: Decimal
    monthly_housing_levy: Decimal
    annual_housing_levy: Decimal
    monthly_health_insurance: Decimal
    annual_health_insurance: Decimal
    annual_life_insurance: Decimal
    annual_mortgage_interest: Decimal
    annual_rent_relief: Decimal
    total_reliefs: Decimal
    taxable_income: Decimal
    monthly_deductions: Decimal
    monthly_take_home: Decimal
    annual_take_home: Decimal
    effective_tax_rate: float  # percent of annual gross
    is_exempt: bool = False
    bands: list[BandTax] = field(default_factory=list)

    @property
    def annual_deductions(self) -> Decimal:
        return self.monthly_deductions * MONTHS_PER_YEAR

    @property
    def marginal_rate(self) -> float:
        """Rate of the highest band reached, 0 when nothing was taxed."""
        if self.is_exempt or not self.bands:
            return 0.0
        return self.bands[-1].rate

    def to_dict(self) -> dict:
        """Plain-number view for presentation layers."""
        data: dict = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if isinstance(value, Decimal):
                data[name] = float(value)
            elif isinstance(value, Currency):
                data[name] = value.value
            elif name == "bands":
                data[name] = [
                    {
                        "lower": float(b.lower),
                        "upper": float(b.upper) if b.upper is not None else None,
                        "rate": b.rate,
                        "taxable": float(b.taxable),
                        "tax": float(b.tax),
                    }
                    for b in value
                ]
            else:
                data[name] = value
        return data


@dataclass
class RegimeComparison:
    """The same input calculated under every regime."""

    results: dict[str, CalculationResult]
    best_regime: str
    annual_difference: Decimal  # best minus worst annual take-home


@dataclass
class BatchResult:
    """Aggregated result for a batch of payroll records."""

    results: list[tuple[str, CalculationResult]]
    total_monthly_gross: Decimal
    total_monthly_tax: Decimal
    total_monthly_take_home: Decimal
    record_count: int
    exempt_count: int
    skipped: list[str]
    errors: list[str]


# -----------------------------------------------------------------------
# Calculator
# -----------------------------------------------------------------------


class TakeHomeCalculator:
    """
    Take-home pay calculator.

    Resolves the regime, converts income to base currency, aggregates
    reliefs into taxable income and produces the payroll breakdown.
    """

    def __init__(self, db: Optional[RegimeDatabase] = None) -> None:
        self.db = db or RegimeDatabase()

    def _monthly_gross(self, calc_input: CalculationInput) -> Optional[Decimal]:
        if calc_input.income is None or not calc_input.income.is_finite():
            return None
        if calc_input.income <= 0:
            return None
        rate = effective_rate(calc_input.currency, calc_input.exchange_rate)
        if rate is None:
            return None
        return calc_input.income * rate

    def calculate(
        self, calc_input: CalculationInput
    ) -> Optional[CalculationResult]:
        """
        Calculate tax, deductions and take-home pay for one input.

        Returns None when the income or exchange rate is unusable; there is
        nothing to show until the caller supplies corrected values.
        """
        regime = self.db.get_regime(calc_input.regime)

        monthly_gross = self._monthly_gross(calc_input)
        if monthly_gross is None:
            logger.debug(
                "Declined calculation: income=%s currency=%s rate=%s",
                calc_input.income,
                calc_input.currency.value,
                calc_input.exchange_rate,
            )
            return None

        annual_gross = monthly_gross * MONTHS_PER_YEAR
        is_exempt = regime.has_exemption and annual_gross <= regime.exemption_threshold

        # Standard deductions
        monthly_pension = monthly_gross * _d(regime.pension_rate)
        annual_pension = monthly_pension * MONTHS_PER_YEAR
        if monthly_gross > regime.housing_levy_threshold:
            monthly_levy = monthly_gross * _d(regime.housing_levy_rate)
        else:
            monthly_levy = _ZERO
        annual_levy = monthly_levy * MONTHS_PER_YEAR

        # Reliefs
        reliefs = calc_input.reliefs
        monthly_health = reliefs.health_insurance
        annual_health = monthly_health * MONTHS_PER_YEAR
        annual_life = reliefs.life_insurance
        annual_mortgage = reliefs.mortgage_interest
        if regime.rent_relief is not None:
            annual_rent_relief = regime.rent_relief.relief_for(reliefs.annual_rent)
        else:
            annual_rent_relief = _ZERO

        total_reliefs = (
            annual_pension
            + annual_levy
            + annual_health
            + annual_life
            + annual_mortgage
            + annual_rent_relief
        )
        taxable_income = max(_ZERO, annual_gross - total_reliefs)

        if is_exempt:
            annual_tax = _ZERO
            bands: list[BandTax] = []
        else:
            bands = bracket_breakdown(taxable_income, regime.brackets)
            annual_tax = sum((b.tax for b in bands), _ZERO)

        monthly_tax = annual_tax / MONTHS_PER_YEAR
        monthly_deductions = monthly_tax + monthly_pension + monthly_levy + monthly_health
        monthly_take_home = monthly_gross - monthly_deductions
        annual_take_home = monthly_take_home * MONTHS_PER_YEAR

        effective = (
            float(annual_tax / annual_gross * 100) if annual_gross > 0 else 0.0
        )

        logger.debug(
            "Calculated %s: gross=%s taxable=%s tax=%s exempt=%s",
            regime.code,
            annual_gross,
            taxable_income,
            annual_tax,
            is_exempt,
        )

        return CalculationResult(
            regime=regime.code,
            currency=calc_input.currency,
            exchange_rate=effective_rate(
                calc_input.currency, calc_input.exchange_rate
            ),
            monthly_gross=monthly_gross,
            annual_gross=annual_gross,
            monthly_tax=monthly_tax,
            annual_tax=annual_tax,
            monthly_pension=monthly_pension,
            annual_pension=annual_pension,
            monthly_housing_levy=monthly_levy,
            annual_housing_levy=annual_levy,
            monthly_health_insurance=monthly_health,
            annual_health_insurance=annual_health,
            annual_life_insurance=annual_life,
            annual_mortgage_interest=annual_mortgage,
            annual_rent_relief=annual_rent_relief,
            total_reliefs=total_reliefs,
            taxable_income=taxable_income,
            monthly_deductions=monthly_deductions,
            monthly_take_home=monthly_take_home,
            annual_take_home=annual_take_home,
            effective_tax_rate=effective,
            is_exempt=is_exempt,
            bands=bands,
        )

    def compare_regimes(
        self, calc_input: CalculationInput
    ) -> Optional[RegimeComparison]:
        """Calculate the same input under every registered regime."""
        results: dict[str, CalculationResult] = {}
        for regime in self.db.all_regimes():
            result = self.calculate(_with_regime(calc_input, regime))
            if result is None:
                return None
            results[regime.code] = result

        ranked = sorted(
            results.values(), key=lambda r: r.annual_take_home, reverse=True
        )
        return RegimeComparison(
            results=results,
            best_regime=ranked[0].regime,
            annual_difference=ranked[0].annual_take_home
            - ranked[-1].annual_take_home,
        )

    def calculate_batch(
        self, records: list[tuple[str, CalculationInput]]
    ) -> BatchResult:
        """
        Calculate take-home pay for a batch of payroll records.

        Records the engine declines are listed in ``skipped``; records that
        reference unknown regimes are listed in ``errors``.
        """
        results: list[tuple[str, CalculationResult]] = []
        skipped: list[str] = []
        errors: list[str] = []
        total_gross = _ZERO
        total_tax = _ZERO
        total_take_home = _ZERO
        exempt_count = 0

        for record_id, calc_input in records:
            try:
                result = self.calculate(calc_input)
            except ValueError as e:
                errors.append(f"Record {record_id}: {e}")
                continue

            if result is None:
                skipped.append(record_id)
                continue

            results.append((record_id, result))
            total_gross += result.monthly_gross
            total_tax += result.monthly_tax
            total_take_home += result.monthly_take_home
            if result.is_exempt:
                exempt_count += 1

        if skipped or errors:
            logger.info(
                "Batch finished with %d skipped and %d failed records",
                len(skipped),
                len(errors),
            )

        return BatchResult(
            results=results,
            total_monthly_gross=total_gross,
            total_monthly_tax=total_tax,
            total_monthly_take_home=total_take_home,
            record_count=len(records),
            exempt_count=exempt_count,
            skipped=skipped,
            errors=errors,
        )


def _with_regime(calc_input: CalculationInput, regime: TaxRegime) -> CalculationInput:
    return CalculationInput(
        income=calc_input.income,
        currency=calc_input.currency,
        exchange_rate=calc_input.exchange_rate,
        regime=regime.code,
        reliefs=calc_input.reliefs,
    )

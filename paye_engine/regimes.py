"""
Personal income tax regime database.

Holds the progressive bracket tables and relief rules for each supported
tax-law variant. Regimes are plain data: a new variant is added by
describing its brackets and rules, not by writing new calculation code.

Sources: Personal Income Tax Act (as amended) Sixth Schedule, Nigeria Tax
Act 2025 Fourth Schedule, Pension Reform Act 2014, NHF Act.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class RegimeCode(Enum):
    """Codes of the built-in tax regimes."""

    CURRENT = "current"
    REFORMED = "reformed"


@dataclass(frozen=True)
class TaxBracket:
    """One marginal band of a progressive table."""

    upper_bound: Optional[Decimal]  # cumulative ceiling, None = unbounded
    rate: float  # decimal, e.g. 0.15 = 15%

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None


@dataclass(frozen=True)
class RentReliefPolicy:
    """Share of annual rent allowed as relief, capped at an absolute amount."""

    rate: float
    cap: Decimal

    def relief_for(self, annual_rent: Decimal) -> Decimal:
        return min(annual_rent * Decimal(str(self.rate)), self.cap)


@dataclass(frozen=True)
class TaxRegime:
    """Complete rule set for one tax-law variant."""

    code: str
    name: str
    brackets: tuple[TaxBracket, ...]
    exemption_threshold: Decimal = Decimal("0")  # annual gross, 0 = none
    rent_relief: Optional[RentReliefPolicy] = None
    pension_rate: float = 0.08
    housing_levy_rate: float = 0.025
    housing_levy_threshold: Decimal = Decimal("3000")  # monthly gross
    notes: str = ""

    def __post_init__(self) -> None:
        _validate_brackets(self.code, self.brackets)
        if self.exemption_threshold < 0:
            raise ValueError(
                f"Regime {self.code}: exemption threshold must be non-negative"
            )

    @property
    def has_exemption(self) -> bool:
        return self.exemption_threshold > 0

    @property
    def top_rate(self) -> float:
        return self.brackets[-1].rate


def _validate_brackets(code: str, brackets: tuple[TaxBracket, ...]) -> None:
    if not brackets:
        raise ValueError(f"Regime {code}: at least one bracket is required")

    previous: Optional[Decimal] = None
    for i, bracket in enumerate(brackets):
        if not 0 <= bracket.rate <= 1:
            raise ValueError(
                f"Regime {code}: bracket {i + 1} rate {bracket.rate} outside 0..1"
            )
        last = i == len(brackets) - 1
        if bracket.upper_bound is None:
            if not last:
                raise ValueError(
                    f"Regime {code}: only the last bracket may be unbounded"
                )
            continue
        if last:
            raise ValueError(f"Regime {code}: last bracket must be unbounded")
        if bracket.upper_bound <= (previous if previous is not None else 0):
            raise ValueError(
                f"Regime {code}: bracket bounds must be strictly increasing"
            )
        previous = bracket.upper_bound


# ---------------------------------------------------------------------------
# Built-in regimes (amounts in NGN)
# ---------------------------------------------------------------------------

_REGIME_DATA: dict[str, dict] = {
    "current": {
        "name": "PITA graduated table",
        "brackets": [
            ("300000", 0.07),
            ("600000", 0.11),
            ("1100000", 0.15),
            ("1600000", 0.19),
            ("3200000", 0.21),
            (None, 0.24),
        ],
        "exemption_threshold": "0",
        "rent_relief": None,
        "notes": "No low-income exemption. Rent paid is not a relief.",
    },
    "reformed": {
        "name": "Nigeria Tax Act 2025",
        "brackets": [
            ("800000", 0.00),
            ("3000000", 0.15),
            ("15000000", 0.18),
            ("25000000", 0.21),
            ("50000000", 0.23),
            (None, 0.25),
        ],
        "exemption_threshold": "1200000",
        "rent_relief": (0.20, "500000"),
        "notes": "Annual gross up to 1.2M exempt. Rent relief 20%, max 500k.",
    },
}


def _build_regime(code: str, data: dict) -> TaxRegime:
    rent = data.get("rent_relief")
    return TaxRegime(
        code=code,
        name=data["name"],
        brackets=tuple(
            TaxBracket(Decimal(bound) if bound is not None else None, rate)
            for bound, rate in data["brackets"]
        ),
        exemption_threshold=Decimal(data.get("exemption_threshold", "0")),
        rent_relief=(
            RentReliefPolicy(rate=rent[0], cap=Decimal(rent[1])) if rent else None
        ),
        notes=data.get("notes", ""),
    )


class RegimeDatabase:
    """
    Queryable set of tax regimes.

    Loaded with the built-in regimes; callers may register more on their
    own instance with ``add_regime``.
    """

    def __init__(self) -> None:
        self._regimes: dict[str, TaxRegime] = {}
        self._load_regimes()

    def _load_regimes(self) -> None:
        for code, data in _REGIME_DATA.items():
            self._regimes[code] = _build_regime(code, data)

    @property
    def regime_count(self) -> int:
        return len(self._regimes)

    @property
    def codes(self) -> list[str]:
        return list(self._regimes)

    def get_regime(self, code: str) -> TaxRegime:
        """Return the regime for a code (case-insensitive)."""
        regime = self._regimes.get(code.strip().lower())
        if regime is None:
            raise ValueError(f"Unknown regime code: {code}")
        return regime

    def has_regime(self, code: str) -> bool:
        return code.strip().lower() in self._regimes

    def add_regime(self, regime: TaxRegime, replace: bool = False) -> None:
        """Register an additional regime."""
        key = regime.code.strip().lower()
        if key in self._regimes and not replace:
            raise ValueError(f"Regime already registered: {regime.code}")
        self._regimes[key] = regime

    def all_regimes(self) -> list[TaxRegime]:
        """Return all regimes in registration order."""
        return list(self._regimes.values())

"""
Supported income currencies and conversion to the base currency.

Exchange rates are always supplied by the caller; nothing here fetches them.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional


class Currency(Enum):
    NGN = "NGN"
    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"

    @property
    def is_base(self) -> bool:
        return self is BASE_CURRENCY

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


BASE_CURRENCY = Currency.NGN

_SYMBOLS: dict[Currency, str] = {
    Currency.NGN: "₦",
    Currency.USD: "$",
    Currency.GBP: "£",
    Currency.EUR: "€",
}


def effective_rate(
    currency: Currency, exchange_rate: Optional[Decimal]
) -> Optional[Decimal]:
    """
    Return the multiplier that turns an amount in ``currency`` into base
    currency, or None when a foreign currency has no usable rate.
    """
    if currency.is_base:
        return Decimal("1")
    if exchange_rate is None or not exchange_rate.is_finite():
        return None
    if exchange_rate <= 0:
        return None
    return exchange_rate


def to_base(
    amount: Decimal,
    currency: Currency,
    exchange_rate: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """Convert an amount to base currency; None if the rate is unusable."""
    rate = effective_rate(currency, exchange_rate)
    if rate is None:
        return None
    return amount * rate

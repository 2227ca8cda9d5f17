"""
Input-contract parsing.

Turns loosely typed values (form strings, CSV cells, CLI arguments) into
the Decimal amounts and codes the calculator works with.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from paye_engine.currency import Currency
from paye_engine.regimes import RegimeDatabase


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        number = Decimal(str(value))
    else:
        text = str(value).strip().replace(",", "").replace("_", "")
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    if not number.is_finite():
        return None
    return number


def parse_positive_amount(value: Any) -> Optional[Decimal]:
    """Parse a required amount; None unless it is a positive finite number."""
    number = _to_decimal(value)
    if number is None or number <= 0:
        return None
    return number


def parse_relief(value: Any) -> Decimal:
    """Parse an optional relief amount, defaulting to zero."""
    number = _to_decimal(value)
    if number is None or number < 0:
        return Decimal("0")
    return number


def parse_currency(value: Any) -> Currency:
    if isinstance(value, Currency):
        return value
    code = str(value or "").strip().upper()
    try:
        return Currency(code)
    except ValueError:
        raise ValueError(f"Unknown currency code: {value}") from None


def parse_regime(value: Any, db: Optional[RegimeDatabase] = None) -> str:
    """Normalize a regime code, checking it against the database."""
    db = db or RegimeDatabase()
    code = str(value or "").strip().lower()
    if not db.has_regime(code):
        raise ValueError(f"Unknown regime code: {value}")
    return code

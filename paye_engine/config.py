"""
Runtime settings.

Defaults used by the CLI and report exports, overridable through
environment variables. Command-line flags take precedence over both.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

from paye_engine.currency import Currency
from paye_engine.regimes import RegimeDatabase
from paye_engine.validation import parse_currency, parse_positive_amount, parse_regime

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Indicative parallel-market rates; callers should pass the day's rate.
DEFAULT_EXCHANGE_RATES: dict[Currency, Decimal] = {
    Currency.USD: Decimal("1550"),
    Currency.GBP: Decimal("1950"),
    Currency.EUR: Decimal("1680"),
}


@dataclass
class Settings:
    default_regime: str = "reformed"
    default_currency: Currency = Currency.USD
    exchange_rates: dict[Currency, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_EXCHANGE_RATES)
    )
    output_dir: str = "reports"
    log_level: str = "WARNING"

    def rate_for(self, currency: Currency) -> Optional[Decimal]:
        if currency.is_base:
            return Decimal("1")
        return self.exchange_rates.get(currency)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Recognized: PAYE_DEFAULT_REGIME, PAYE_DEFAULT_CURRENCY, PAYE_RATE_USD,
    PAYE_RATE_GBP, PAYE_RATE_EUR, PAYE_OUTPUT_DIR, PAYE_LOG_LEVEL (falls
    back to LOG_LEVEL).
    """
    env = os.environ if environ is None else environ
    settings = Settings()

    if env.get("PAYE_DEFAULT_REGIME"):
        settings.default_regime = parse_regime(
            env["PAYE_DEFAULT_REGIME"], RegimeDatabase()
        )
    if env.get("PAYE_DEFAULT_CURRENCY"):
        settings.default_currency = parse_currency(env["PAYE_DEFAULT_CURRENCY"])

    for currency in DEFAULT_EXCHANGE_RATES:
        key = f"PAYE_RATE_{currency.value}"
        if env.get(key):
            rate = parse_positive_amount(env[key])
            if rate is None:
                raise ValueError(f"{key} must be a positive number, got {env[key]!r}")
            settings.exchange_rates[currency] = rate

    if env.get("PAYE_OUTPUT_DIR"):
        settings.output_dir = env["PAYE_OUTPUT_DIR"]

    level = env.get("PAYE_LOG_LEVEL") or env.get("LOG_LEVEL")
    if level:
        level = level.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        settings.log_level = level

    logging.getLogger(__name__).debug("Loaded settings: %s", settings)
    return settings

"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from paye_engine.config import DEFAULT_EXCHANGE_RATES, Settings, load_settings
from paye_engine.currency import Currency


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.default_regime == "reformed"
    assert settings.default_currency is Currency.USD
    assert settings.exchange_rates == DEFAULT_EXCHANGE_RATES
    assert settings.log_level == "WARNING"


def test_environment_overrides():
    settings = load_settings(
        {
            "PAYE_DEFAULT_REGIME": "CURRENT",
            "PAYE_DEFAULT_CURRENCY": "gbp",
            "PAYE_RATE_GBP": "2000",
            "PAYE_OUTPUT_DIR": "/tmp/out",
            "PAYE_LOG_LEVEL": "debug",
        }
    )
    assert settings.default_regime == "current"
    assert settings.default_currency is Currency.GBP
    assert settings.rate_for(Currency.GBP) == Decimal("2000")
    assert settings.rate_for(Currency.USD) == Decimal("1550")
    assert settings.output_dir == "/tmp/out"
    assert settings.log_level == "DEBUG"


def test_generic_log_level_fallback():
    assert load_settings({"LOG_LEVEL": "info"}).log_level == "INFO"


def test_base_currency_rate_is_one():
    assert Settings().rate_for(Currency.NGN) == Decimal("1")


def test_defaults_not_shared_between_instances():
    settings = load_settings({"PAYE_RATE_USD": "1600"})
    assert settings.rate_for(Currency.USD) == Decimal("1600")
    assert DEFAULT_EXCHANGE_RATES[Currency.USD] == Decimal("1550")


@pytest.mark.parametrize(
    "env, message",
    [
        ({"PAYE_RATE_USD": "-3"}, "PAYE_RATE_USD"),
        ({"PAYE_DEFAULT_REGIME": "legacy"}, "Unknown regime code"),
        ({"PAYE_DEFAULT_CURRENCY": "JPY"}, "Unknown currency code"),
        ({"PAYE_LOG_LEVEL": "LOUD"}, "Unknown log level"),
    ],
)
def test_invalid_values_raise(env, message):
    with pytest.raises(ValueError, match=message):
        load_settings(env)

"""
PAYE Tax Engine
===============

Personal income tax and take-home pay calculation under progressive
bracket regimes, with currency conversion, payroll deductions, reliefs
and a low-income exemption.

Modules:
    regimes          - Tax regime bracket tables and relief rules
    currency         - Supported currencies and conversion to NGN
    validation       - Parsing of loosely typed inputs
    calculator       - Progressive tax and take-home pay engine
    config           - Environment-driven runtime settings
    logging_config   - Logger setup
    report_generator - Breakdown/comparison/payroll reports with CSV/JSON export
    cli              - Command-line interface
"""

__version__ = "1.0.0"

from paye_engine.regimes import RegimeDatabase, TaxBracket, TaxRegime
from paye_engine.calculator import (
    CalculationInput,
    CalculationResult,
    Reliefs,
    TakeHomeCalculator,
    compute_progressive_tax,
)
from paye_engine.report_generator import ReportGenerator

__all__ = [
    "RegimeDatabase",
    "TaxBracket",
    "TaxRegime",
    "CalculationInput",
    "CalculationResult",
    "Reliefs",
    "TakeHomeCalculator",
    "compute_progressive_tax",
    "ReportGenerator",
]

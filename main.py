#!/usr/bin/env python3
"""
PAYE Tax Engine - Entry Point

Calculates personal income tax and take-home pay under the current and
reformed progressive tax regimes.

Usage:
    python main.py calculate --income 5000 --currency USD --rate 1550
    python main.py calculate --income 500000 --currency NGN --regime current
    python main.py compare --income 3000 --currency USD --rent 2400000
    python main.py regimes --regime reformed
    python main.py batch --file data/payroll.csv --export-csv details.csv
"""

from paye_engine.cli import main

if __name__ == "__main__":
    main()

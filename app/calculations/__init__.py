"""
Financial Calculation Engine

Pure calculation modules for property portfolio analytics.
No I/O: callers pass plain ledger and attribute snapshots in.
"""

from app.calculations import dates, irr, ledger, metrics, portfolio, rounding

__all__ = ["dates", "irr", "ledger", "metrics", "portfolio", "rounding"]

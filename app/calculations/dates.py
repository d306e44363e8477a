"""
Date parsing and month arithmetic for ownership and lease durations.
"""

import logging
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Primary storage format first, ISO as fallback
DATE_FORMATS = ("%d.%m.%Y", "%Y-%m-%d")


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a stored date string.

    Args:
        value: Date as "dd.mm.yyyy" or "yyyy-mm-dd"

    Returns:
        Parsed date, or None if empty or in neither format
    """
    if not value:
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.debug(f"Unparseable date: {value!r}")
    return None


def whole_months_between(start: date, end: date) -> int:
    """Number of complete calendar months from start to end (negative if end < start)."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def years_between(start: date, end: date) -> float:
    """Whole months between two dates expressed as fractional years."""
    return whole_months_between(start, end) / 12.0


def ownership_years(purchase_date: Optional[str], today: Optional[date] = None) -> float:
    """
    Elapsed ownership time in years, counted in whole months.

    An unparseable or future purchase date yields 0.
    """
    start = parse_date(purchase_date)
    if start is None:
        return 0.0

    end = today or date.today()
    return max(years_between(start, end), 0.0)

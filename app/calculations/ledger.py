"""
Ledger Extraction

Flattens a property's year -> month ledger into ordered monthly series.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

MonthKey = Tuple[int, int]

# Persisted key -> MonthRecord attribute
STORAGE_KEYS = {
    "income": "base_income",
    "income_variable": "variable_income",
    "expenses_direct": "expense_direct",
    "expenses_admin": "expense_admin",
    "expenses_maintenance": "expense_maintenance",
    "expenses_utilities": "expense_utilities",
    "expenses_financial": "expense_financial",
    "expenses_operational": "expense_operational",
    "expenses_other": "expense_other",
}


@dataclass(frozen=True)
class MonthRecord:
    """One calendar month of the ledger. Missing values contribute 0."""

    base_income: Optional[float] = None
    variable_income: Optional[float] = None
    expense_direct: Optional[float] = None
    expense_admin: Optional[float] = None
    expense_maintenance: Optional[float] = None
    expense_utilities: Optional[float] = None
    expense_financial: Optional[float] = None
    expense_operational: Optional[float] = None
    expense_other: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "MonthRecord":
        """Build from a persisted month dict (storage keys or attribute names)."""
        values = {}
        for key, value in data.items():
            attr = STORAGE_KEYS.get(key, key)
            if attr not in _RECORD_FIELDS or value in (None, ""):
                continue
            try:
                values[attr] = float(value)
            except (TypeError, ValueError):
                logger.warning(f"Skipping non-numeric ledger value {key}={value!r}")
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        """Persisted form, omitting absent values."""
        return {
            key: getattr(self, attr)
            for key, attr in STORAGE_KEYS.items()
            if getattr(self, attr) is not None
        }

    @property
    def income(self) -> float:
        return (self.base_income or 0) + (self.variable_income or 0)

    @property
    def maintenance(self) -> float:
        return self.expense_maintenance or 0

    @property
    def operating(self) -> float:
        return self.expense_operational or 0

    @property
    def other(self) -> float:
        return self.expense_other or 0

    def expense(self, include_maintenance: bool = True, include_operating: bool = True) -> float:
        """Monthly expense used by analytics. The "other" category is always counted."""
        total = self.other
        if include_maintenance:
            total += self.maintenance
        if include_operating:
            total += self.operating
        return total


_RECORD_FIELDS = {f.name for f in fields(MonthRecord)}


@dataclass
class FinancialSeries:
    """Per-month series for one extraction scope, in chronological order."""

    incomes: List[float] = field(default_factory=list)
    expenses_maintenance: List[float] = field(default_factory=list)
    expenses_operating: List[float] = field(default_factory=list)
    expenses_other: List[float] = field(default_factory=list)

    property_tax: float = 0.0
    insurance_cost: float = 0.0

    months_with_income: int = 0
    months_with_expense: int = 0
    only_selected_year: bool = False

    def __post_init__(self):
        lengths = {
            len(self.incomes),
            len(self.expenses_maintenance),
            len(self.expenses_operating),
            len(self.expenses_other),
        }
        if len(lengths) != 1:
            raise ValueError("Income and expense series must have the same length")

    def __len__(self) -> int:
        return len(self.incomes)

    def total_income(self) -> float:
        return sum(self.incomes)

    def total_expenses(
        self, include_maintenance: bool = True, include_operating: bool = True
    ) -> float:
        """Sum of monthly expenses for the scope (excludes tax and insurance)."""
        total = 0.0
        for maintenance, operating, other in zip(
            self.expenses_maintenance, self.expenses_operating, self.expenses_other
        ):
            if include_maintenance:
                total += maintenance
            if include_operating:
                total += operating
            total += other
        return total


def _parse_key(key, upper: Optional[int] = None) -> Optional[int]:
    try:
        value = int(key)
    except (TypeError, ValueError):
        return None
    if upper is not None and not 1 <= value <= upper:
        return None
    return value


def normalize_ledger(raw: Optional[Mapping]) -> Dict[MonthKey, MonthRecord]:
    """
    Convert a persisted ledger into a chronologically ordered mapping.

    Args:
        raw: {"2023": {"01": {...}, ...}, ...}. Month values may be dicts or
            MonthRecord instances.

    Returns:
        Dict keyed by (year, month) integers, sorted ascending. Keys that are
        not numbers, months outside 1..12, and values that are not mappings
        are skipped.
    """
    entries: Dict[MonthKey, MonthRecord] = {}
    if not raw:
        return entries
    if not isinstance(raw, Mapping):
        logger.warning(f"Skipping ledger of type {type(raw).__name__}")
        return entries

    for year_key, months in raw.items():
        year = _parse_key(year_key)
        if year is None:
            logger.warning(f"Skipping ledger year with non-numeric key {year_key!r}")
            continue
        months = months or {}
        if not isinstance(months, Mapping):
            logger.warning(f"Skipping ledger year {year_key}: not a month mapping")
            continue

        for month_key, record in months.items():
            month = _parse_key(month_key, upper=12)
            if month is None:
                logger.warning(f"Skipping ledger month {year_key}/{month_key!r}")
                continue
            record = record or {}
            if not isinstance(record, (MonthRecord, Mapping)):
                logger.warning(f"Skipping ledger month {year_key}/{month_key}: not a record")
                continue
            if not isinstance(record, MonthRecord):
                record = MonthRecord.from_dict(record)
            entries[(year, month)] = record

    return dict(sorted(entries.items()))


def denormalize_ledger(ledger: Mapping[MonthKey, MonthRecord]) -> Dict[str, Dict[str, Dict]]:
    """Back to the persisted {"yyyy": {"mm": {...}}} form."""
    raw: Dict[str, Dict[str, Dict]] = {}
    for (year, month), record in sorted(ledger.items()):
        raw.setdefault(str(year), {})[f"{month:02d}"] = record.to_dict()
    return raw


def _ensure_normalized(ledger) -> Dict[MonthKey, MonthRecord]:
    if ledger and all(isinstance(key, tuple) for key in ledger):
        return dict(sorted(ledger.items()))
    return normalize_ledger(ledger)


def iter_months(ledger, year: Optional[int] = None) -> Iterator[Tuple[int, int, MonthRecord]]:
    """Yield (year, month, record) in chronological order, optionally for one year."""
    for (y, m), record in _ensure_normalized(ledger).items():
        if year is not None and y != year:
            continue
        yield y, m, record


def ledger_years(ledger) -> List[int]:
    """Years present in the ledger, ascending."""
    return sorted({y for y, _, _ in iter_months(ledger)})


def extract_financials(
    ledger,
    year: Optional[int] = None,
    property_tax: Optional[float] = None,
    insurance_cost: Optional[float] = None,
) -> FinancialSeries:
    """
    Extract monthly income and expense series for a scope.

    Months missing from the ledger are skipped, so the series length is the
    number of months with data, not calendar months elapsed. Only the
    maintenance, operational and other expense categories are carried.

    Args:
        ledger: Persisted or normalized ledger
        year: Single year to extract; None extracts every year
        property_tax: Annual property tax carried as scope metadata
        insurance_cost: Annual insurance carried as scope metadata

    Returns:
        FinancialSeries for the scope
    """
    incomes: List[float] = []
    maintenance: List[float] = []
    operating: List[float] = []
    other: List[float] = []

    for _, _, record in iter_months(ledger, year):
        incomes.append(record.income)
        maintenance.append(record.maintenance)
        operating.append(record.operating)
        other.append(record.other)

    months_with_income = sum(1 for value in incomes if value > 0)
    months_with_expense = sum(
        1 for m, o, x in zip(maintenance, operating, other) if m + o + x > 0
    )

    return FinancialSeries(
        incomes=incomes,
        expenses_maintenance=maintenance,
        expenses_operating=operating,
        expenses_other=other,
        property_tax=property_tax or 0.0,
        insurance_cost=insurance_cost or 0.0,
        months_with_income=months_with_income,
        months_with_expense=months_with_expense,
        only_selected_year=year is not None,
    )

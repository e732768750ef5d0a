"""
Helper utilities for the planning engine.
Includes trace ids, safe parsing, and calendar helpers used by several sheets.
"""

import calendar
import uuid
import logging
from datetime import date, datetime
from typing import Optional, Any, Dict, Tuple

from .sheet_config import SheetKind, MONTHS_PER_YEAR
from .logical_names import Column, MONTH_DATE_KEYS

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def generate_trace_id() -> str:
    """Generate a unique trace ID for correlation across log lines."""
    return f"trace-{uuid.uuid4().hex[:12]}"


def parse_float_safe(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Safely parse a value to float."""
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    try:
        result = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return default
    # NaN and infinities are not numbers for our purposes
    if result != result or result in (float("inf"), float("-inf")):
        return default
    return result


def parse_int_safe(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Safely parse a value to int. Accepts "3" and 3.0 but not "3.5"."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    number = parse_float_safe(value, default=None)
    if number is not None and number.is_integer():
        return int(number)
    return default


def is_number(value: Any) -> bool:
    """True when the value parses as a finite number."""
    return parse_float_safe(value, default=None) is not None


def safe_get(d: Dict, *keys, default=None) -> Any:
    """Safely get nested dictionary values."""
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key)
        else:
            return default
    return d if d is not None else default


def is_blank(value: Any) -> bool:
    """A value counts as empty when it is None or only whitespace."""
    if value is None:
        return True
    return str(value).strip() == ""


def parse_date_safe(value: Any) -> Optional[date]:
    """
    Parse a record date.

    Accepts date/datetime objects, ``YYYY-MM-DD`` strings and ISO
    timestamps as returned by the service (``2025-03-01T00:00:00.000Z``).
    Returns None when the value is blank or unparseable.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.strptime(text[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def format_date(value: date) -> str:
    """Format a date the way the service stores it."""
    return value.strftime(DATE_FORMAT)


def add_months(value: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // MONTHS_PER_YEAR
    month = month_index % MONTHS_PER_YEAR + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_range(year: int, month: int) -> Tuple[str, str]:
    """
    First and last day of a month as stored strings.

    >>> month_range(2025, 2)
    ('2025-02-01', '2025-02-28')
    """
    last_day = calendar.monthrange(year, month)[1]
    return format_date(date(year, month, 1)), format_date(date(year, month, last_day))


def valid_month(value: Any) -> Optional[int]:
    """Return the month as int when it is within 1-12, else None."""
    month = parse_int_safe(value, default=None)
    if month is None or not 1 <= month <= MONTHS_PER_YEAR:
        return None
    return month


def resolve_month(sheet: SheetKind, row: Dict[str, Any]) -> Optional[int]:
    """
    Month slot a record belongs to.

    Uses the explicit ``month`` when present, otherwise the first parseable
    date of the sheet's month-locating date fields. Action records never
    carry a month, so they always resolve through their dates.
    """
    if sheet != SheetKind.ACTION:
        month = valid_month(row.get(Column.COMMON.MONTH))
        if month is not None:
            return month

    for key in MONTH_DATE_KEYS[sheet]:
        parsed = parse_date_safe(row.get(key))
        if parsed is not None:
            return parsed.month
    return None

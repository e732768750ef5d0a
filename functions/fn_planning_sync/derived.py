"""
Derived Field Calculator
========================

Pure functions computing ``progress`` and ``status`` from raw inputs.

Rounding
--------
All rounding is round-half-up (``Decimal.quantize`` with ``ROUND_HALF_UP``),
so ``normalize_progress(42.5) == 43`` and a ratio of 2/3 becomes
``66.67`` before it is rounded to ``67``.

Status Rule
-----------
Evaluated in order: 100 -> completed, >75 about_to_complete, >50
near_completion, >25 in_progress, >0 initial, else not_started. The delayed
flag is orthogonal: set when the reference date (plus the configured grace
months) is before today and progress is below 100.
"""

import logging
import math
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, Optional

from planning_shared.helpers import (
    add_months,
    is_blank,
    month_range,
    parse_date_safe,
    parse_float_safe,
    valid_month,
)
from planning_shared.logical_names import Column
from planning_shared.models import StatusKind, StatusResult
from planning_shared.sheet_config import SheetKind, THEME_TO_MONTH

from .config import get_delay_grace_months
from .schema import ratio_inputs, status_reference_keys, has_field

logger = logging.getLogger(__name__)

PROGRESS = Column.COMMON.PROGRESS
STATUS = Column.COMMON.STATUS
DELAYED = Column.COMMON.DELAYED

# (threshold, status) checked top-down with ">"
_STATUS_THRESHOLDS = (
    (75, StatusKind.ABOUT_TO_COMPLETE),
    (50, StatusKind.NEAR_COMPLETION),
    (25, StatusKind.IN_PROGRESS),
    (0, StatusKind.INITIAL),
)


def _round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def normalize_progress(raw: Any) -> int:
    """
    Coerce any input to an integer percentage in [0, 100].

    Total: unparseable, negative, NaN or infinite inputs give 0.

    >>> normalize_progress("42.5")
    43
    >>> normalize_progress(150)
    100
    """
    number = parse_float_safe(raw, default=None)
    if number is None or number <= 0:
        return 0
    if number >= 100:
        return 100
    try:
        return int(_round_half_up(number))
    except InvalidOperation:
        return 0


def derive_progress_from_ratio(target: Any, actual: Any) -> int:
    """
    Progress as actual/target in percent, rounded to 2 decimals first.

    Returns 0 when either input is not a number or the target is 0.
    """
    target_value = parse_float_safe(target, default=None)
    actual_value = parse_float_safe(actual, default=None)
    if target_value is None or actual_value is None or target_value == 0:
        return 0
    raw = actual_value / target_value * 100
    if not math.isfinite(raw):
        return 100 if raw > 0 else 0
    ratio = _round_half_up(raw, places=2)
    return normalize_progress(float(ratio))


def derive_status(
    progress: Any,
    reference_date: Any = None,
    today: Optional[date] = None,
    grace_months: Optional[int] = None,
) -> StatusResult:
    """Base status from progress plus the delayed flag from the reference date."""
    value = normalize_progress(progress)
    if value == 100:
        return StatusResult(kind=StatusKind.COMPLETED, delayed=False)

    kind = StatusKind.NOT_STARTED
    for threshold, candidate in _STATUS_THRESHOLDS:
        if value > threshold:
            kind = candidate
            break

    deadline = parse_date_safe(reference_date)
    delayed = False
    if deadline is not None:
        if grace_months is None:
            grace_months = get_delay_grace_months()
        if grace_months:
            deadline = add_months(deadline, grace_months)
        delayed = deadline < (today or date.today())

    return StatusResult(kind=kind, delayed=delayed)


def reference_date_for(sheet: SheetKind, row: Dict[str, Any]) -> Optional[str]:
    """First non-empty parseable status reference date of a row."""
    for key in status_reference_keys(sheet):
        value = row.get(key)
        if parse_date_safe(value) is not None:
            return value
    return None


def _reset_month_dates(sheet: SheetKind, row: Dict[str, Any]) -> bool:
    """Point start/end dates at the row's month. Returns True when changed."""
    start_key, end_key = Column.PLANNING.START_DATE, Column.PLANNING.END_DATE
    if not (has_field(sheet, start_key) and has_field(sheet, end_key)):
        return False
    month = valid_month(row.get(Column.COMMON.MONTH))
    year = parse_float_safe(row.get(Column.COMMON.YEAR), default=None)
    if month is None or year is None:
        return False
    row[start_key], row[end_key] = month_range(int(year), month)
    return True


def compute_derived(
    sheet: SheetKind,
    row: Dict[str, Any],
    changed_key: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Recompute the derived fields affected by an edit.

    Args:
        sheet: Sheet of the row
        row: Row after the edit was applied. Not mutated.
        changed_key: Edited field. None recomputes everything (used on load).
        today: Override for "today", for deterministic callers

    Returns:
        New row dict with ``progress``, ``status`` and ``delayed`` updated
    """
    updated = dict(row)
    full = changed_key is None
    dates_reset = False

    if changed_key in (Column.COMMON.MONTH, Column.COMMON.YEAR) and sheet != SheetKind.ACTION:
        dates_reset = _reset_month_dates(sheet, updated)

    ratio = ratio_inputs(sheet)
    if ratio is not None:
        progress_changed = full or changed_key in ratio
        if progress_changed:
            updated[PROGRESS] = derive_progress_from_ratio(updated.get(ratio[0]), updated.get(ratio[1]))
    else:
        progress_changed = full or changed_key == PROGRESS
        if progress_changed:
            updated[PROGRESS] = normalize_progress(updated.get(PROGRESS))

    status_changed = (
        full
        or progress_changed
        or dates_reset
        or changed_key in status_reference_keys(sheet)
    )
    if status_changed:
        status = derive_status(updated.get(PROGRESS), reference_date_for(sheet, updated), today)
        updated[STATUS] = status.kind.value
        updated[DELAYED] = status.delayed

    return updated


def infer_month_from_theme(row: Dict[str, Any]) -> Optional[int]:
    """Legacy Planning rows used the month theme as plan name."""
    name = row.get(Column.PLANNING.PLAN_NAME)
    if is_blank(name):
        return None
    return THEME_TO_MONTH.get(str(name).strip())


def prepare_loaded_record(
    sheet: SheetKind,
    record: Dict[str, Any],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Normalize a record fresh from the service before it enters the workbook."""
    prepared = dict(record)
    if sheet == SheetKind.PLANNING and valid_month(prepared.get(Column.COMMON.MONTH)) is None:
        month = infer_month_from_theme(prepared)
        if month is not None:
            logger.debug(f"Planning record {prepared.get(Column.COMMON.ID)} month inferred from theme: {month}")
            prepared[Column.COMMON.MONTH] = month
    return compute_derived(sheet, prepared, None, today)

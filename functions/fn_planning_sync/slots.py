"""
Month Slots
===========

Planning, Events and Monthly always show exactly 12 month slots. Legacy data
can hold several records for one month; such a slot is shown through an
``AggregatedView``: the identity of the first record, text fields joined,
the first non-empty value for everything else.

An AggregatedView is display only. It is never saved back, so distinct
historical records are never collapsed by a save.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from planning_shared.helpers import is_blank, resolve_month
from planning_shared.logical_names import Column
from planning_shared.models import FieldKind
from planning_shared.sheet_config import SheetKind, MONTHS_PER_YEAR, MONTH_SLOTTED_SHEETS

from .config import get_display_setting
from .schema import fields_for

logger = logging.getLogger(__name__)

TEXT_KINDS = (FieldKind.TEXT, FieldKind.TEXTAREA)


def _aggregate(sheet: SheetKind, records: Sequence[Dict[str, Any]], separator: str) -> Dict[str, Any]:
    values: Dict[str, Any] = dict(records[0])
    if len(records) == 1:
        return values

    for spec in fields_for(sheet):
        present = [r.get(spec.key) for r in records if not is_blank(r.get(spec.key))]
        if not present:
            continue
        if spec.kind in TEXT_KINDS:
            distinct = []
            for value in present:
                text = str(value).strip()
                if text not in distinct:
                    distinct.append(text)
            values[spec.key] = separator.join(distinct)
        else:
            values[spec.key] = present[0]
    return values


@dataclass(frozen=True)
class AggregatedView:
    """Read-only view of one month slot."""

    sheet: SheetKind
    month: int
    records: Tuple[Dict[str, Any], ...] = ()
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, sheet: SheetKind, month: int, records: Sequence[Dict[str, Any]],
           separator: Optional[str] = None) -> "AggregatedView":
        if separator is None:
            separator = get_display_setting("aggregate_separator", "\n")
        records = tuple(dict(r) for r in records)
        values = _aggregate(sheet, records, separator) if records else {Column.COMMON.MONTH: month}
        return cls(sheet=sheet, month=month, records=records, values=MappingProxyType(values))

    @property
    def id(self) -> Optional[Any]:
        """Identity of the slot: the first record's id."""
        return self.records[0].get(Column.COMMON.ID) if self.records else None

    @property
    def record_ids(self) -> List[Any]:
        return [r.get(Column.COMMON.ID) for r in self.records if not is_blank(r.get(Column.COMMON.ID))]

    @property
    def is_aggregated(self) -> bool:
        return len(self.records) > 1

    @property
    def is_empty(self) -> bool:
        return not self.records

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]


def group_by_month(sheet: SheetKind, rows: Sequence[Dict[str, Any]]) -> Dict[int, List[Dict[str, Any]]]:
    """Rows per month 1-12, in input order. Rows without a month are skipped."""
    groups: Dict[int, List[Dict[str, Any]]] = {m: [] for m in range(1, MONTHS_PER_YEAR + 1)}
    for row in rows:
        month = resolve_month(sheet, row)
        if month is None:
            logger.debug(f"{sheet.value} row {row.get(Column.COMMON.ID)} has no month, not slotted")
            continue
        groups[month].append(row)
    return groups


def build_month_slots(sheet: SheetKind, rows: Sequence[Dict[str, Any]]) -> List[AggregatedView]:
    """
    Exactly 12 slot views for a month-based sheet.

    Raises:
        ValueError: for the Action sheet, which is not slot based
    """
    if sheet not in MONTH_SLOTTED_SHEETS:
        raise ValueError(f"{sheet.value} is not organized in month slots")
    separator = get_display_setting("aggregate_separator", "\n")
    groups = group_by_month(sheet, rows)
    return [AggregatedView.of(sheet, month, groups[month], separator) for month in sorted(groups)]

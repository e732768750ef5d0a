"""
Planning Workbook
=================

In-memory rows of the four sheets for one year. Owned by the page controller
(``PlanningSyncEngine``) and only mutated on its thread; the thread pool in
``load`` fetches, the assembly happens on the caller.

Month-based sheets are padded to one row per month, so every slot has an
editable row even when the service has nothing for it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from planning_shared.helpers import generate_trace_id, resolve_month
from planning_shared.models import CollaboratorResult
from planning_shared.sheet_config import SheetKind, MONTHS_PER_YEAR, MONTH_SLOTTED_SHEETS

from .derived import prepare_loaded_record
from .schema import blank_row
from .upsert import call_collaborator

logger = logging.getLogger(__name__)

SheetState = Dict[SheetKind, List[Dict[str, Any]]]


def pad_month_slots(sheet: SheetKind, rows: Sequence[Dict[str, Any]], year: int) -> List[Dict[str, Any]]:
    """
    Order rows by month and add a blank row for every month without one.

    Several rows of one month keep their relative order. Rows without a
    resolvable month go last.
    """
    if sheet not in MONTH_SLOTTED_SHEETS:
        return list(rows)

    by_month: Dict[int, List[Dict[str, Any]]] = {m: [] for m in range(1, MONTHS_PER_YEAR + 1)}
    unslotted = []
    for row in rows:
        month = resolve_month(sheet, row)
        if month is None:
            unslotted.append(row)
        else:
            by_month[month].append(row)

    padded = []
    for month in range(1, MONTHS_PER_YEAR + 1):
        padded.extend(by_month[month] or [blank_row(sheet, year, month)])
    return padded + unslotted


class PlanningWorkbook:
    """The four sheets of one planning year."""

    def __init__(self, year: int, rows: Optional[SheetState] = None):
        self.year = year
        self._rows: SheetState = {sheet: [] for sheet in SheetKind}
        for sheet, sheet_rows in (rows or {}).items():
            self.set_rows(sheet, sheet_rows)

    # ============== Accessors ==============

    def rows(self, sheet: SheetKind) -> List[Dict[str, Any]]:
        return list(self._rows[sheet])

    @property
    def state(self) -> SheetState:
        """Shallow copy of every sheet's rows."""
        return {sheet: list(rows) for sheet, rows in self._rows.items()}

    def set_rows(self, sheet: SheetKind, rows: Sequence[Dict[str, Any]], pad: bool = True) -> None:
        self._rows[sheet] = pad_month_slots(sheet, rows, self.year) if pad else list(rows)

    def replace_state(self, state: SheetState) -> None:
        """Adopt the sheets present in ``state``, e.g. after propagation."""
        for sheet, rows in state.items():
            self._rows[sheet] = list(rows)

    def update_row(self, sheet: SheetKind, index: int, row: Dict[str, Any]) -> None:
        self._rows[sheet][index] = row

    def add_row(self, sheet: SheetKind, row: Optional[Dict[str, Any]] = None) -> int:
        """Append an unsaved row. Returns its index."""
        self._rows[sheet].append(row if row is not None else blank_row(sheet, self.year))
        return len(self._rows[sheet]) - 1

    # ============== Loading ==============

    def load(
        self,
        collaborators: Dict[SheetKind, Any],
        today: Optional[date] = None,
        max_workers: int = 4,
        trace_id: Optional[str] = None,
    ) -> Dict[SheetKind, CollaboratorResult]:
        """
        Reload every sheet of the year from its collaborator.

        A sheet whose list call fails keeps its current rows.

        Returns:
            The list result per sheet
        """
        trace_id = trace_id or generate_trace_id()
        sheets = [sheet for sheet in SheetKind if sheet in collaborators]
        filters = {"year": self.year}

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="load") as pool:
            futures = {
                sheet: pool.submit(call_collaborator, collaborators[sheet].list, filters)
                for sheet in sheets
            }
            results = {sheet: future.result() for sheet, future in futures.items()}

        for sheet, result in results.items():
            if not result.success:
                logger.error(f"[{trace_id}] Loading {sheet.value} for {self.year} failed: {result.error}")
                continue
            records = [prepare_loaded_record(sheet, record, today) for record in (result.data or [])]
            self.set_rows(sheet, records)
            logger.info(f"[{trace_id}] Loaded {len(records)} {sheet.value} records for {self.year}")

        return results

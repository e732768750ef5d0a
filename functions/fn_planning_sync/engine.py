"""
Planning Sync Engine
====================

Page-level controller of the four planning sheets. Owns the workbook and
wires the components together:

    edit_cell -> compute_derived -> revalidate_field
    save      -> validate_sheet -> save_batch -> propagate -> reload -> notify

Usage
-----
>>> engine = PlanningSyncEngine(build_rest_collaborators(), year=2025)
>>> engine.subscribe(lambda event: print(event.action, event.sheet))
>>> engine.load()
>>> engine.edit_cell(SheetKind.PLANNING, 4, "department", "销售部")
>>> result = engine.save(SheetKind.PLANNING)
>>> result.summary
'12 rows saved'

Propagated values are client state only. They are replayed onto every
reload until the target sheet is saved explicitly or its stored rows agree
with them. After that the reload wins.

See Also
--------
fn_planning_sync.upsert : create/update decision and id reconciliation
fn_planning_sync.propagation : cross-sheet rule table
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from planning_shared.helpers import generate_trace_id, is_blank
from planning_shared.logical_names import Column
from planning_shared.models import (
    DedupeResult,
    FieldKind,
    SheetSaveResult,
    SyncEvent,
)
from planning_shared.sheet_config import SheetKind

from . import derived, propagation, validation
from .dedupe import DuplicateReconciler, KeyFn
from .propagation import PROPAGATION_TARGETS
from .schema import field, has_field
from .store import PlanningWorkbook, SheetState
from .upsert import UpsertCoordinator

logger = logging.getLogger(__name__)

Subscriber = Callable[[SyncEvent], None]


class _PendingPropagation:
    """A propagated row some target sheets do not store yet."""

    def __init__(self, source: SheetKind, row: Dict[str, Any], previous: Optional[Dict[str, Any]]):
        self.source = source
        self.row = row
        self.previous = previous
        self.remaining = set(PROPAGATION_TARGETS[source])
        if source == SheetKind.PLANNING:
            self.remaining.add(SheetKind.ACTION)


class PlanningSyncEngine:
    """Controller for one planning year."""

    def __init__(
        self,
        collaborators: Dict[SheetKind, Any],
        year: int,
        today: Optional[date] = None,
        max_workers: Optional[int] = None,
    ):
        self.collaborators = collaborators
        self.year = year
        self.today = today
        self.workbook = PlanningWorkbook(year)
        self.coordinator = UpsertCoordinator(collaborators, max_workers=max_workers)
        self.reconciler = DuplicateReconciler(collaborators)
        self.errors: Dict[SheetKind, Dict[int, Dict[str, str]]] = {sheet: {} for sheet in SheetKind}
        self._subscribers: List[Subscriber] = []
        self._loaded: Dict[SheetKind, Dict[Any, Dict[str, Any]]] = {sheet: {} for sheet in SheetKind}
        self._pending: List[_PendingPropagation] = []

    # ============== Engine Operations ==============

    def compute_derived(self, sheet: SheetKind, row: Dict[str, Any], changed_key: Optional[str] = None) -> Dict[str, Any]:
        return derived.compute_derived(sheet, row, changed_key, self.today)

    def validate_sheet(self, sheet: SheetKind, rows: Sequence[Dict[str, Any]],
                       year: Optional[int] = None) -> Dict[int, Dict[str, str]]:
        return validation.validate_sheet(sheet, rows, year if year is not None else self.year)

    def save_sheet(self, sheet: SheetKind, rows: Sequence[Dict[str, Any]],
                   trace_id: Optional[str] = None) -> SheetSaveResult:
        return self.coordinator.save_batch(sheet, rows, trace_id)

    def propagate(self, source_sheet: SheetKind, updated_row: Dict[str, Any], sibling_state: SheetState,
                  previous_row: Optional[Dict[str, Any]] = None) -> SheetState:
        return propagation.propagate(source_sheet, updated_row, sibling_state, previous_row)

    def dedupe(self, sheet: SheetKind, rows: Optional[Sequence[Dict[str, Any]]] = None,
               key_fn: Optional[KeyFn] = None, reload: bool = True) -> DedupeResult:
        """
        Delete duplicate records of a sheet.

        Without ``rows`` the workbook's saved rows are used. The workbook is
        reloaded afterwards unless ``reload`` is False.
        """
        trace_id = generate_trace_id()
        if rows is None:
            rows = [row for row in self.workbook.rows(sheet) if not is_blank(row.get(Column.COMMON.ID))]
        result = self.reconciler.dedupe(sheet, rows, key_fn, trace_id)
        if reload:
            self.load(trace_id=trace_id, notify=False)
        self._notify(SyncEvent(
            action="deduped",
            sheet=sheet,
            year=self.year,
            trace_id=trace_id,
            details={"deleted_ids": result.deleted_ids, "failed_ids": result.failed_ids},
        ))
        return result

    # ============== Subscriptions ==============

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for sync events. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: SyncEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"[{event.trace_id}] Subscriber {callback!r} failed on {event.action}: {e}")

    # ============== Page Flow ==============

    def load(self, trace_id: Optional[str] = None, notify: bool = True) -> None:
        """Reload all four sheets and replay pending propagations."""
        trace_id = trace_id or generate_trace_id()
        self.workbook.load(self.collaborators, self.today, trace_id=trace_id)

        for sheet in SheetKind:
            self._loaded[sheet] = {
                row[Column.COMMON.ID]: dict(row)
                for row in self.workbook.rows(sheet)
                if not is_blank(row.get(Column.COMMON.ID))
            }

        state = self.workbook.state
        for pending in self._pending:
            replayed = propagation.propagate(pending.source, pending.row, state, pending.previous)
            for target in list(pending.remaining):
                if replayed.get(target) is state.get(target):
                    # stored rows already agree
                    pending.remaining.discard(target)
                else:
                    state = {**state, target: replayed[target]}
        self._pending = [p for p in self._pending if p.remaining]
        self.workbook.replace_state(state)

        if notify:
            self._notify(SyncEvent(action="reloaded", year=self.year, trace_id=trace_id))

    def edit_cell(self, sheet: SheetKind, index: int, key: str, value: Any) -> Dict[str, Any]:
        """
        Apply one user edit to the workbook.

        Recomputes the derived fields of the row and refreshes the edited
        field's validation error.

        Raises:
            ValueError: when the field is derived and cannot be edited
        """
        if not has_field(sheet, key) or field(sheet, key).kind == FieldKind.COMPUTED:
            raise ValueError(f"{key!r} is not an editable field of {sheet.value}")

        row = dict(self.workbook.rows(sheet)[index])
        row[key] = value
        row = self.compute_derived(sheet, row, key)
        self.workbook.update_row(sheet, index, row)

        sheet_errors = self.errors[sheet]
        row_errors = validation.revalidate_field(sheet, row, key, sheet_errors.get(index, {}), self.year)
        if row_errors:
            sheet_errors[index] = row_errors
        else:
            sheet_errors.pop(index, None)
        return row

    def save(self, sheet: SheetKind, reload: bool = True) -> SheetSaveResult:
        """
        Save a sheet: validate, persist, propagate, reload, notify.

        Blank unsaved rows (empty month slots) are not submitted. When any
        row has a validation error nothing is submitted and the result is
        returned with ``blocked=True``. The workbook is reloaded only when
        every row saved; failed rows keep their state for another attempt.
        """
        trace_id = generate_trace_id()
        rows = self.workbook.rows(sheet)

        errors = self.validate_sheet(sheet, rows)
        self.errors[sheet] = errors
        if errors:
            logger.warning(f"[{trace_id}] Save of {sheet.value} blocked by {len(errors)} invalid rows")
            return SheetSaveResult(sheet=sheet, all_succeeded=False, blocked=True, errors=errors)

        indices = [
            i for i, row in enumerate(rows)
            if not is_blank(row.get(Column.COMMON.ID)) or validation.has_data(sheet, row)
        ]
        result = self.save_sheet(sheet, [rows[i] for i in indices], trace_id)
        self._retire_pending(sheet, [rows[i] for i in indices])

        state = self.workbook.state
        for index, saved_row, outcome in zip(indices, result.updated_rows, result.results):
            state[sheet][index] = saved_row
            if not outcome.success:
                continue
            previous = self._loaded[sheet].get(rows[index].get(Column.COMMON.ID))
            state = propagation.propagate(sheet, saved_row, state, previous)
            self._pending.append(_PendingPropagation(sheet, dict(saved_row), previous))
        self.workbook.replace_state(state)

        if reload and result.all_succeeded:
            self.load(trace_id=trace_id, notify=False)

        self._notify(SyncEvent(
            action="saved",
            sheet=sheet,
            year=self.year,
            trace_id=trace_id,
            details={"total": result.total, "failure_count": result.failure_count},
        ))
        return result

    def _retire_pending(self, sheet: SheetKind, submitted: Sequence[Dict[str, Any]]) -> None:
        """
        Forget propagations superseded by an explicit save of ``sheet``.

        The submitted rows carried whatever the user kept or overrode, so the
        sheet is no longer a replay target. Earlier propagations from the same
        rows are replaced by the ones this save produces.
        """
        resaved_ids = {
            row.get(Column.COMMON.ID) for row in submitted if not is_blank(row.get(Column.COMMON.ID))
        }
        kept = []
        for pending in self._pending:
            pending.remaining.discard(sheet)
            if pending.source == sheet and pending.row.get(Column.COMMON.ID) in resaved_ids:
                continue
            if pending.remaining:
                kept.append(pending)
        self._pending = kept

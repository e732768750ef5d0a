"""
Cross-Sheet Synchronizer
========================

Copies the shared dimensional attributes (department, year) of a saved row
into the sibling sheets' in-memory rows of the same month.

Rule table
----------
=========  ==========================================================
Source     Targets
=========  ==========================================================
PLANNING   EVENTS.responsible_department, MONTHLY.department, and
           ACTION rows already sharing the (month, department)
EVENTS     PLANNING.department, MONTHLY.department
MONTHLY    PLANNING.department, EVENTS.responsible_department
ACTION     PLANNING.department (only when the row resolves a month)
=========  ==========================================================

Propagation is a pure overwrite: applying the same row twice yields the same
state as applying it once. Nothing here talks to a collaborator; the next
explicit save of a sibling sheet carries the new values.
"""

import logging
from typing import Any, Dict, List, Optional

from planning_shared.helpers import is_blank, resolve_month, valid_month
from planning_shared.logical_names import Column, DEPARTMENT_KEYS
from planning_shared.sheet_config import SheetKind

logger = logging.getLogger(__name__)

SheetState = Dict[SheetKind, List[Dict[str, Any]]]

# Month-slot targets per source sheet
PROPAGATION_TARGETS: Dict[SheetKind, tuple] = {
    SheetKind.PLANNING: (SheetKind.EVENTS, SheetKind.MONTHLY),
    SheetKind.EVENTS: (SheetKind.PLANNING, SheetKind.MONTHLY),
    SheetKind.MONTHLY: (SheetKind.PLANNING, SheetKind.EVENTS),
    SheetKind.ACTION: (SheetKind.PLANNING,),
}


def _same_text(left: Any, right: Any) -> bool:
    return str(left or "").strip() == str(right or "").strip()


def _apply(row: Dict[str, Any], department_key: str, department: Any, year: Any) -> Dict[str, Any]:
    updated = dict(row)
    updated[department_key] = department
    if not is_blank(year):
        updated[Column.COMMON.YEAR] = year
    return updated


def _update_rows(rows: List[Dict[str, Any]], matches, department_key: str,
                 department: Any, year: Any) -> tuple:
    changed = 0
    new_rows = []
    for row in rows:
        updated = _apply(row, department_key, department, year) if matches(row) else row
        if updated != row:
            changed += 1
        new_rows.append(updated)
    return new_rows, changed


def propagate(
    source_sheet: SheetKind,
    updated_row: Dict[str, Any],
    sibling_state: SheetState,
    previous_row: Optional[Dict[str, Any]] = None,
) -> SheetState:
    """
    Push the department (and year) of a saved row into sibling sheets.

    Args:
        source_sheet: Sheet the row was saved on
        updated_row: Row as saved
        sibling_state: Rows per sheet. Not mutated.
        previous_row: Row before the edit. For Planning sources this is the
                      department Action rows are matched against; without it
                      Action rows are matched on the new department.

    Returns:
        New state dict. Untouched sheets share their list with the input.
    """
    new_state: SheetState = dict(sibling_state)
    department = updated_row.get(DEPARTMENT_KEYS[source_sheet])
    if is_blank(department):
        return new_state

    month = resolve_month(source_sheet, updated_row)
    if month is None:
        logger.debug(f"{source_sheet.value} row {updated_row.get(Column.COMMON.ID)} has no month, nothing to propagate")
        return new_state

    year = updated_row.get(Column.COMMON.YEAR)

    for target in PROPAGATION_TARGETS[source_sheet]:
        if target not in new_state:
            continue
        new_rows, changed = _update_rows(
            new_state[target],
            lambda row: valid_month(row.get(Column.COMMON.MONTH)) == month,
            DEPARTMENT_KEYS[target],
            department,
            year,
        )
        if changed:
            new_state[target] = new_rows
            logger.debug(f"Propagated department {department!r} from {source_sheet.value} to {changed} {target.value} rows (month {month})")

    if source_sheet == SheetKind.PLANNING and SheetKind.ACTION in new_state:
        match_department = department
        if previous_row is not None and not is_blank(previous_row.get(DEPARTMENT_KEYS[source_sheet])):
            match_department = previous_row.get(DEPARTMENT_KEYS[source_sheet])

        action_key = DEPARTMENT_KEYS[SheetKind.ACTION]
        new_rows, changed = _update_rows(
            new_state[SheetKind.ACTION],
            lambda row: (
                resolve_month(SheetKind.ACTION, row) == month
                and _same_text(row.get(action_key), match_department)
            ),
            action_key,
            department,
            year,
        )
        if changed:
            new_state[SheetKind.ACTION] = new_rows
            logger.debug(f"Propagated department {department!r} to {changed} action rows (month {month})")

    return new_state

"""
Duplicate Reconciler
====================

Groups rows by a natural key per sheet and deletes every occurrence after the
first. Run on explicit user action or from ``dedupe_sheets.py``.

Natural keys:
    EVENTS   (month, trimmed event_name)
    MONTHLY  (month,)
    ACTION   (trimmed what, trimmed start_date)
    PLANNING (month,)

A row without a usable key (no month, or an Action row whose key fields are
all blank) is never treated as a duplicate.
"""

import logging
from typing import Any, Callable, Dict, Hashable, Optional, Sequence

from planning_shared.helpers import generate_trace_id, is_blank, valid_month
from planning_shared.logical_names import Column
from planning_shared.models import DedupeResult
from planning_shared.sheet_config import SheetKind

from .upsert import call_collaborator

logger = logging.getLogger(__name__)

KeyFn = Callable[[Dict[str, Any]], Optional[Hashable]]


def _trimmed(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _month_key(row: Dict[str, Any]) -> Optional[tuple]:
    month = valid_month(row.get(Column.COMMON.MONTH))
    return None if month is None else (month,)


def _event_key(row: Dict[str, Any]) -> Optional[tuple]:
    month = valid_month(row.get(Column.COMMON.MONTH))
    if month is None:
        return None
    return month, _trimmed(row.get(Column.EVENTS.EVENT_NAME))


def _action_key(row: Dict[str, Any]) -> Optional[tuple]:
    key = (_trimmed(row.get(Column.ACTION.WHAT)), _trimmed(row.get(Column.ACTION.START_DATE)))
    return None if key == ("", "") else key


NATURAL_KEYS: Dict[SheetKind, KeyFn] = {
    SheetKind.PLANNING: _month_key,
    SheetKind.EVENTS: _event_key,
    SheetKind.MONTHLY: _month_key,
    SheetKind.ACTION: _action_key,
}


class DuplicateReconciler:
    """Deletes duplicate records through the sheet collaborators."""

    def __init__(self, collaborators: Dict[SheetKind, Any]):
        self.collaborators = collaborators

    def dedupe(
        self,
        sheet: SheetKind,
        rows: Sequence[Dict[str, Any]],
        key_fn: Optional[KeyFn] = None,
        trace_id: Optional[str] = None,
    ) -> DedupeResult:
        """
        Remove duplicate rows, first occurrence by list order wins.

        Deletes are best effort: a failed delete is reported in
        ``failed_ids`` and its row stays in ``kept_rows``, the remaining
        duplicates are still deleted. Unsaved duplicates are dropped without
        a call.
        """
        key_fn = key_fn or NATURAL_KEYS[sheet]
        collaborator = self.collaborators[sheet]
        trace_id = trace_id or generate_trace_id()

        seen = set()
        result = DedupeResult()
        for row in rows:
            key = key_fn(row)
            if key is None or key not in seen:
                if key is not None:
                    seen.add(key)
                result.kept_rows.append(row)
                continue

            record_id = row.get(Column.COMMON.ID)
            if is_blank(record_id):
                logger.warning(f"[{trace_id}] Dropping unsaved duplicate {sheet.value} row {key}")
                continue

            outcome = call_collaborator(collaborator.delete, record_id)
            if outcome.success:
                result.deleted_ids.append(record_id)
                logger.info(f"[{trace_id}] Deleted duplicate {sheet.value} record {record_id} {key}")
            else:
                result.failed_ids.append(record_id)
                result.kept_rows.append(row)
                logger.error(f"[{trace_id}] Failed to delete duplicate {sheet.value} record {record_id}: {outcome.error}")

        logger.info(
            f"[{trace_id}] {sheet.value} dedupe: kept {len(result.kept_rows)}, "
            f"deleted {len(result.deleted_ids)}, failed {len(result.failed_ids)}"
        )
        return result

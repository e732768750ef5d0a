"""
Upsert Coordinator
==================

Decides create vs update per row and reconciles server ids into client rows.

Per row:
1. Row carries an id -> update it
2. Update fails (``success=False`` or an exception, "not found" included)
   -> create once with the same payload minus the stale id
3. Row has no id -> create

A batch runs every row concurrently on a thread pool. There is no ordering
between rows and no rollback: a failed row keeps its previous state, the
others keep their new ids.

Usage:
    coordinator = UpsertCoordinator(collaborators)
    result = coordinator.save_batch(SheetKind.ACTION, rows)

    if not result.all_succeeded:
        notify(result.summary)   # "1 of 3 rows failed to save"
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from planning_shared.collaborator import CLIENT_ONLY_KEYS
from planning_shared.helpers import generate_trace_id, is_blank
from planning_shared.logical_names import Column
from planning_shared.models import CollaboratorResult, SaveResult, SheetSaveResult
from planning_shared.sheet_config import SheetKind

from .config import get_save_workers

logger = logging.getLogger(__name__)

ID = Column.COMMON.ID


def build_payload(row: Dict[str, Any]) -> Dict[str, Any]:
    """Row without its id and without display-only keys."""
    return {k: v for k, v in row.items() if k not in CLIENT_ONLY_KEYS}


def call_collaborator(call: Callable[..., CollaboratorResult], *args) -> CollaboratorResult:
    """Run a collaborator call, turning exceptions into a failed result."""
    try:
        result = call(*args)
    except Exception as e:
        return CollaboratorResult(success=False, error=f"{type(e).__name__}: {e}")
    if result is None:
        return CollaboratorResult(success=False, error="collaborator returned no result")
    return result


def _returned_id(result: CollaboratorResult) -> Optional[Any]:
    data = result.data
    if isinstance(data, dict):
        return data.get(ID)
    return None


class UpsertCoordinator:
    """Persists rows through one collaborator per sheet."""

    def __init__(self, collaborators: Dict[SheetKind, Any], max_workers: Optional[int] = None):
        self.collaborators = collaborators
        self.max_workers = max_workers or get_save_workers()

    def _collaborator(self, sheet: SheetKind):
        try:
            return self.collaborators[sheet]
        except KeyError:
            raise KeyError(f"No collaborator registered for sheet {sheet!r}")

    def _create(self, sheet: SheetKind, payload: Dict[str, Any], trace_id: str) -> SaveResult:
        result = call_collaborator(self._collaborator(sheet).create, payload)
        if not result.success:
            logger.error(f"[{trace_id}] Create on {sheet.value} failed: {result.error}")
            return SaveResult(success=False, error=result.error or "create failed")

        new_id = _returned_id(result)
        if is_blank(new_id):
            logger.error(f"[{trace_id}] Create on {sheet.value} returned no id")
            return SaveResult(success=False, error="create returned no id")

        logger.info(f"[{trace_id}] Created {sheet.value} record {new_id}")
        return SaveResult(success=True, id=new_id, created=True)

    def save(self, sheet: SheetKind, row: Dict[str, Any], trace_id: str = "") -> SaveResult:
        """
        Persist a single row.

        Never raises for collaborator failures; they come back as
        ``SaveResult(success=False)``. An unknown sheet raises KeyError.

        Returns:
            SaveResult with the id the caller must write back into the row
        """
        self._collaborator(sheet)
        payload = build_payload(row)
        record_id = row.get(ID)

        if is_blank(record_id):
            return self._create(sheet, payload, trace_id)

        result = call_collaborator(self._collaborator(sheet).update, record_id, payload)
        if result.success:
            logger.info(f"[{trace_id}] Updated {sheet.value} record {record_id}")
            return SaveResult(success=True, id=_returned_id(result) or record_id)

        logger.warning(
            f"[{trace_id}] Update of {sheet.value} record {record_id} failed ({result.error}), "
            f"creating a new record instead"
        )
        fallback = self._create(sheet, payload, trace_id)
        return fallback.model_copy(update={"fell_back": True})

    def save_batch(
        self,
        sheet: SheetKind,
        rows: Sequence[Dict[str, Any]],
        trace_id: Optional[str] = None,
    ) -> SheetSaveResult:
        """
        Save every row of a sheet concurrently.

        Returns:
            SheetSaveResult whose ``updated_rows`` line up with ``rows``:
            saved rows carry their id, failed rows are returned unchanged.
        """
        self._collaborator(sheet)
        trace_id = trace_id or generate_trace_id()
        rows = list(rows)
        if not rows:
            return SheetSaveResult(sheet=sheet, all_succeeded=True)

        workers = min(self.max_workers, len(rows))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"save-{sheet.value}") as pool:
            futures = [pool.submit(self.save, sheet, row, trace_id) for row in rows]
            results: List[SaveResult] = [future.result() for future in futures]

        updated_rows = []
        for row, result in zip(rows, results):
            if result.success:
                updated_rows.append({**row, ID: result.id})
            else:
                updated_rows.append(dict(row))

        failure_count = sum(1 for result in results if not result.success)
        batch = SheetSaveResult(
            sheet=sheet,
            all_succeeded=failure_count == 0,
            updated_rows=updated_rows,
            failure_count=failure_count,
            total=len(rows),
            results=results,
        )

        if failure_count:
            logger.error(f"[{trace_id}] {sheet.value}: {batch.summary}")
        else:
            logger.info(f"[{trace_id}] {sheet.value}: {batch.summary}")
        return batch

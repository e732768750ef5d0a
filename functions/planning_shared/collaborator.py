"""
Per-Sheet Collaborators
=======================

The engine talks to one collaborator per sheet. A collaborator is any object
with these four methods, each returning a ``CollaboratorResult``:

    list(filters)        -> CollaboratorResult(data=[record, ...])
    create(payload)      -> CollaboratorResult(data=record with id)
    update(id, payload)  -> CollaboratorResult(data=record)
    delete(id)           -> CollaboratorResult()

``RestSheetCollaborator`` is the implementation backed by the planning REST
service. Tests use an in-memory collaborator with the same shape.
"""

import logging
from typing import Optional, Dict, Any

from .api_client import PlanningApiClient, PlanningApiError, get_planning_client
from .logical_names import Column
from .models import CollaboratorResult
from .sheet_config import SheetKind, SHEET_ENDPOINTS, SHEET_FIXED_FILTERS

logger = logging.getLogger(__name__)

# Keys that live only in client memory
CLIENT_ONLY_KEYS = (Column.COMMON.ID, Column.COMMON.DELAYED)


def to_payload(sheet: SheetKind, row: Dict[str, Any]) -> Dict[str, Any]:
    """Strip client-only keys and add the sheet's fixed discriminator fields."""
    payload = {k: v for k, v in row.items() if k not in CLIENT_ONLY_KEYS}
    payload.update(SHEET_FIXED_FILTERS[sheet])
    return payload


class RestSheetCollaborator:
    """Adapts one planning collection to the collaborator interface."""

    def __init__(self, sheet: SheetKind, client: Optional[PlanningApiClient] = None):
        self.sheet = sheet
        self.path = SHEET_ENDPOINTS[sheet]
        self._client = client

    @property
    def client(self) -> PlanningApiClient:
        # resolved lazily so building collaborators does not need the env
        if self._client is None:
            self._client = get_planning_client()
        return self._client

    def list(self, filters: Optional[Dict[str, Any]] = None) -> CollaboratorResult:
        query = {**(filters or {}), **SHEET_FIXED_FILTERS[self.sheet]}
        try:
            return CollaboratorResult(success=True, data=self.client.list_records(self.path, query))
        except PlanningApiError as e:
            logger.error(f"List {self.sheet.value} failed: {e}")
            return CollaboratorResult(success=False, data=[], error=str(e))

    def create(self, payload: Dict[str, Any]) -> CollaboratorResult:
        try:
            record = self.client.create_record(self.path, to_payload(self.sheet, payload))
            return CollaboratorResult(success=True, data=record)
        except PlanningApiError as e:
            return CollaboratorResult(success=False, error=str(e))

    def update(self, record_id: Any, payload: Dict[str, Any]) -> CollaboratorResult:
        try:
            record = self.client.update_record(self.path, record_id, to_payload(self.sheet, payload))
            return CollaboratorResult(success=True, data=record)
        except PlanningApiError as e:
            return CollaboratorResult(success=False, error=str(e))

    def delete(self, record_id: Any) -> CollaboratorResult:
        try:
            self.client.delete_record(self.path, record_id)
            return CollaboratorResult(success=True)
        except PlanningApiError as e:
            return CollaboratorResult(success=False, error=str(e))


def build_rest_collaborators(client: Optional[PlanningApiClient] = None) -> Dict[SheetKind, RestSheetCollaborator]:
    """One REST collaborator per sheet, sharing a client."""
    return {sheet: RestSheetCollaborator(sheet, client) for sheet in SheetKind}

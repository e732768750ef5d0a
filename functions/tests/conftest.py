"""
Pytest Configuration and Fixtures for the Planning Sync Tests

This file provides:
- In-memory planning storage and a mock collaborator per sheet
- Failure injection on create/update/delete for upsert and dedupe tests
- Test data factories for the four sheets
- A fixed "today" so derived status is deterministic
"""

import pytest
import threading
from datetime import date
from typing import Dict, Any, List, Optional, Set

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from planning_shared.models import CollaboratorResult
from planning_shared.sheet_config import SheetKind


# ============== Custom Pytest Markers ==============

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual modules")
    config.addinivalue_line("markers", "integration: Integration tests")


FIXED_TODAY = date(2025, 6, 15)


# ============== Mock Storage ==============

class MockPlanningStorage:
    """In-memory storage simulating the planning service collections."""

    def __init__(self):
        self._id_counter = 100
        self._lock = threading.Lock()
        self.records: Dict[SheetKind, Dict[int, Dict[str, Any]]] = {sheet: {} for sheet in SheetKind}

    def next_id(self) -> int:
        with self._lock:
            self._id_counter += 1
            return self._id_counter

    def seed(self, sheet: SheetKind, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record directly, assigning an id when it has none."""
        stored = dict(record)
        if stored.get("id") is None:
            stored["id"] = self.next_id()
        self.records[sheet][stored["id"]] = stored
        return dict(stored)


# ============== Mock Collaborator ==============

class MockCollaborator:
    """Mock per-sheet collaborator with failure injection."""

    def __init__(self, sheet: SheetKind, storage: MockPlanningStorage):
        self.sheet = sheet
        self.storage = storage
        self.calls: List[tuple] = []
        self.fail_create_when = None  # callable(payload) -> bool
        self.raise_on_create_when = None  # callable(payload) -> bool
        self.fail_update_ids: Set[Any] = set()
        self.raise_on_update_ids: Set[Any] = set()
        self.fail_delete_ids: Set[Any] = set()
        self.fail_list = False

    @property
    def _records(self) -> Dict[Any, Dict[str, Any]]:
        return self.storage.records[self.sheet]

    def list(self, filters: Optional[Dict[str, Any]] = None) -> CollaboratorResult:
        self.calls.append(("list", filters))
        if self.fail_list:
            return CollaboratorResult(success=False, data=[], error="list failed")
        year = (filters or {}).get("year")
        data = [
            dict(r) for r in self._records.values()
            if year is None or str(r.get("year")) == str(year)
        ]
        return CollaboratorResult(success=True, data=data)

    def create(self, payload: Dict[str, Any]) -> CollaboratorResult:
        self.calls.append(("create", dict(payload)))
        if self.raise_on_create_when and self.raise_on_create_when(payload):
            raise ConnectionError("connection reset")
        if self.fail_create_when and self.fail_create_when(payload):
            return CollaboratorResult(success=False, error="create rejected")
        stored = self.storage.seed(self.sheet, {**payload, "id": None})
        return CollaboratorResult(success=True, data=stored)

    def update(self, record_id: Any, payload: Dict[str, Any]) -> CollaboratorResult:
        self.calls.append(("update", record_id, dict(payload)))
        if record_id in self.raise_on_update_ids:
            raise TimeoutError("update timed out")
        if record_id in self.fail_update_ids or record_id not in self._records:
            return CollaboratorResult(success=False, error="not found")
        self._records[record_id] = {**payload, "id": record_id}
        return CollaboratorResult(success=True, data=dict(self._records[record_id]))

    def delete(self, record_id: Any) -> CollaboratorResult:
        self.calls.append(("delete", record_id))
        if record_id in self.fail_delete_ids:
            return CollaboratorResult(success=False, error="delete rejected")
        self._records.pop(record_id, None)
        return CollaboratorResult(success=True)

    def calls_of(self, kind: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == kind]


# ============== Test Data Factory ==============

def _day(year: int, month: Optional[int], day: int) -> Optional[str]:
    """Date string inside the month, None for month-less rows."""
    if month is None:
        return None
    return f"{year}-{month:02d}-{day:02d}"


class TestDataFactory:
    """Factory for complete, valid rows of each sheet."""

    @staticmethod
    def planning_row(month: Optional[int] = 3, year: int = 2025, **overrides) -> Dict[str, Any]:
        row = {
            "id": None,
            "year": year,
            "month": month,
            "plan_name": f"{month}月工作计划",
            "department": "市场部",
            "category": "strategic",
            "priority": "high",
            "start_date": _day(year, month, 1),
            "end_date": _day(year, month, 28),
            "budget": 100,
            "actual_cost": 50,
            "responsible_person": "张三",
            "expected_result": "完成季度目标",
            "actual_result": "进行中",
            "progress": None,
            "status": None,
            "description": None,
            "remarks": None,
        }
        row.update(overrides)
        return row

    @staticmethod
    def events_row(month: Optional[int] = 3, year: int = 2025, **overrides) -> Dict[str, Any]:
        row = {
            "id": None,
            "year": year,
            "month": month,
            "event_name": f"{month}月大事件",
            "event_type": "strategic",
            "importance": "high",
            "planned_date": _day(year, month, 10),
            "actual_date": None,
            "responsible_department": "市场部",
            "responsible_person": "李四",
            "budget": None,
            "actual_cost": None,
            "progress": None,
            "status": None,
            "description": None,
        }
        row.update(overrides)
        return row

    @staticmethod
    def monthly_row(month: Optional[int] = 3, year: int = 2025, **overrides) -> Dict[str, Any]:
        row = {
            "id": None,
            "year": year,
            "month": month,
            "task_name": f"{month}月推进任务",
            "department": "市场部",
            "responsible_person": "王五",
            "target_value": 200,
            "actual_value": 100,
            "start_date": _day(year, month, 1),
            "end_date": _day(year, month, 28),
            "progress": None,
            "status": None,
            "key_activities": None,
        }
        row.update(overrides)
        return row

    @staticmethod
    def action_row(what: str = "开展客户回访", year: int = 2025, **overrides) -> Dict[str, Any]:
        row = {
            "id": None,
            "year": year,
            "goal": "提升满意度",
            "what": what,
            "why": "了解客户需求",
            "who": "赵六",
            "where": "线上",
            "start_date": f"{year}-03-01",
            "when": f"{year}-03-31",
            "how": "电话回访",
            "how_much": 5,
            "department": "市场部",
            "priority": "medium",
            "progress": 0,
            "status": None,
        }
        row.update(overrides)
        return row


# ============== Fixtures ==============

@pytest.fixture(autouse=True)
def clean_sync_config(monkeypatch):
    """Run every test with the file config only."""
    from fn_planning_sync.config import load_sync_config
    for name in ("PLANNING_STRICT_YEAR", "PLANNING_SAVE_WORKERS", "PLANNING_DELAY_GRACE_MONTHS"):
        monkeypatch.delenv(name, raising=False)
    load_sync_config.cache_clear()
    yield
    load_sync_config.cache_clear()


@pytest.fixture
def today():
    return FIXED_TODAY


@pytest.fixture
def storage():
    return MockPlanningStorage()


@pytest.fixture
def collaborators(storage):
    return {sheet: MockCollaborator(sheet, storage) for sheet in SheetKind}


@pytest.fixture
def factory():
    return TestDataFactory()


@pytest.fixture
def engine(collaborators, today):
    from fn_planning_sync.engine import PlanningSyncEngine
    return PlanningSyncEngine(collaborators, year=2025, today=today, max_workers=4)

"""
Shared Data Models for the Planning Sync Engine
===============================================

This module defines the Pydantic models used for schema definition, derived
status values and the results returned by the engine operations.

Design Principles
-----------------
- **Pydantic v2** for validation and serialization
- **Type hints** for all fields
- **Enums** for constrained values (field kind, status, issue codes)
- **Frozen models** for definitions that live for the whole process
- Records themselves stay plain dicts, they are what the REST service speaks

Model Categories
----------------
Enumerations
    FieldKind, ComputedRule, StatusKind, IssueCode

Schema Models
    FieldOption, ComputedSpec, FieldSpec

Result Models
    StatusResult, ValidationIssue, CollaboratorResult, SaveResult,
    SheetSaveResult, DedupeResult, SyncEvent

Usage Examples
--------------
Defining a field:
    >>> FieldSpec(key="plan_name", label="计划名称", kind=FieldKind.TEXT, required=True)

Reading a save result:
    >>> result = coordinator.save_batch(SheetKind.ACTION, rows)
    >>> if not result.all_succeeded:
    ...     notify(result.summary)
"""

from typing import Optional, List, Dict, Any, Tuple
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from .sheet_config import SheetKind


class FieldKind(str, Enum):
    """Closed set of field kinds, one renderer branch per kind."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"
    COMPUTED = "computed"


class ComputedRule(str, Enum):
    """How a COMPUTED field is derived."""
    RATIO_PROGRESS = "ratio_progress"  # inputs: (target, actual)
    STATUS = "status"  # inputs: (progress, reference dates...)


class StatusKind(str, Enum):
    """Derived progress status, never edited directly."""
    NOT_STARTED = "not_started"
    INITIAL = "initial"
    IN_PROGRESS = "in_progress"
    NEAR_COMPLETION = "near_completion"
    ABOUT_TO_COMPLETE = "about_to_complete"
    COMPLETED = "completed"


STATUS_LABELS: Dict[StatusKind, str] = {
    StatusKind.NOT_STARTED: "未开始",
    StatusKind.INITIAL: "初始",
    StatusKind.IN_PROGRESS: "进行中",
    StatusKind.NEAR_COMPLETION: "接近完成",
    StatusKind.ABOUT_TO_COMPLETE: "即将完成",
    StatusKind.COMPLETED: "已完成",
}

DELAYED_SUFFIX = " (延期)"


class IssueCode(str, Enum):
    """Stable validation error codes, localization is left to the UI."""
    REQUIRED = "REQUIRED"
    NOT_A_NUMBER = "NOT_A_NUMBER"
    INVALID_DATE = "INVALID_DATE"


# ============== Schema Models ==============

class FieldOption(BaseModel):
    """One (value, label) pair of a SELECT field."""
    model_config = ConfigDict(frozen=True)

    value: Any
    label: str


class ComputedSpec(BaseModel):
    """Typed sub-schema of a COMPUTED field."""
    model_config = ConfigDict(frozen=True)

    rule: ComputedRule
    inputs: Tuple[str, ...]


class FieldSpec(BaseModel):
    """Definition of one column of a sheet."""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = False
    options: Tuple[FieldOption, ...] = ()
    computed: Optional[ComputedSpec] = None

    def option_label(self, value: Any) -> Optional[str]:
        """Label of a select value, compared loosely ("3" matches 3)."""
        for option in self.options:
            if option.value == value or str(option.value) == str(value):
                return option.label
        return None


# ============== Result Models ==============

class StatusResult(BaseModel):
    """Base status plus the orthogonal delayed flag."""
    model_config = ConfigDict(frozen=True)

    kind: StatusKind
    delayed: bool = False

    @property
    def label(self) -> str:
        text = STATUS_LABELS[self.kind]
        if self.delayed:
            text += DELAYED_SUFFIX
        return text


class ValidationIssue(BaseModel):
    """One field error of one row. Never persisted."""
    row_index: int
    field_key: str
    code: IssueCode
    message: str


class CollaboratorResult(BaseModel):
    """Uniform outcome of a list/create/update/delete call."""
    success: bool
    data: Any = None
    error: Optional[str] = None


class SaveResult(BaseModel):
    """Outcome of persisting a single row."""
    success: bool
    id: Optional[Any] = None
    error: Optional[str] = None
    created: bool = False  # a create call produced the id
    fell_back: bool = False  # an update failed and was retried as create


class SheetSaveResult(BaseModel):
    """Outcome of a batch save of one sheet."""
    sheet: SheetKind
    all_succeeded: bool
    updated_rows: List[Dict[str, Any]] = Field(default_factory=list)
    failure_count: int = 0
    total: int = 0
    results: List[SaveResult] = Field(default_factory=list)
    blocked: bool = False  # validation stopped the save before any call
    errors: Dict[int, Dict[str, str]] = Field(default_factory=dict)

    @property
    def summary(self) -> str:
        """Single aggregate notification text for the batch."""
        if self.blocked:
            return f"{len(self.errors)} rows have validation errors"
        if self.all_succeeded:
            return f"{self.total} rows saved"
        return f"{self.failure_count} of {self.total} rows failed to save"


class DedupeResult(BaseModel):
    """Outcome of a duplicate reconciliation pass."""
    kept_rows: List[Dict[str, Any]] = Field(default_factory=list)
    deleted_ids: List[Any] = Field(default_factory=list)
    failed_ids: List[Any] = Field(default_factory=list)


class SyncEvent(BaseModel):
    """Notification delivered to engine subscribers."""
    action: str  # saved, reloaded, deduped
    sheet: Optional[SheetKind] = None
    year: Optional[int] = None
    trace_id: str = ""
    details: Optional[Dict[str, Any]] = None

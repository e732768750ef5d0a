"""
Shared Library for the Planning Sync Engine
===========================================

This module provides the sheet configuration, models, helpers and the REST
client shared by the planning engine and the maintenance scripts.

Modules
-------
sheet_config
    Sheet kinds, REST endpoints, month themes
logical_names
    Field keys per sheet and the cross-sheet key tables
models
    Pydantic models for schema definitions and operation results
helpers
    Trace ids, safe parsing, calendar helpers
api_client
    Thread-safe REST client with retry logic for reads
collaborator
    Per-sheet adapter of the REST client to the collaborator interface

Quick Start
-----------
>>> from planning_shared import (
...     SheetKind,
...     build_rest_collaborators,
...     generate_trace_id,
... )
>>>
>>> collaborators = build_rest_collaborators()
>>> result = collaborators[SheetKind.MONTHLY].list({"year": 2025})
>>> result.success
True
"""

# Sheet configuration
from .sheet_config import (
    SheetKind,
    SHEET_ENDPOINTS,
    SHEET_FIXED_FILTERS,
    SHEET_LABELS,
    MONTHS_PER_YEAR,
    MONTH_SLOTTED_SHEETS,
    MONTH_THEMES,
    THEME_TO_MONTH,
)

# Logical names (code-facing constants)
from .logical_names import (
    Column,
    SHEET_COLUMNS,
    DEPARTMENT_KEYS,
    MONTH_DATE_KEYS,
)

# Data models
from .models import (
    FieldKind,
    ComputedRule,
    StatusKind,
    STATUS_LABELS,
    DELAYED_SUFFIX,
    IssueCode,
    FieldOption,
    ComputedSpec,
    FieldSpec,
    StatusResult,
    ValidationIssue,
    CollaboratorResult,
    SaveResult,
    SheetSaveResult,
    DedupeResult,
    SyncEvent,
)

# Helpers
from .helpers import (
    generate_trace_id,
    parse_float_safe,
    parse_int_safe,
    is_number,
    safe_get,
    is_blank,
    parse_date_safe,
    format_date,
    add_months,
    month_range,
    valid_month,
    resolve_month,
)

# REST client and exceptions
from .api_client import (
    PlanningApiClient,
    get_planning_client,
    reset_planning_client,
    retry_with_backoff,
    PlanningApiError,
    PlanningApiNotFoundError,
    PlanningApiAuthError,
)

# Collaborators
from .collaborator import (
    RestSheetCollaborator,
    build_rest_collaborators,
    to_payload,
)

__all__ = [
    # Sheet config
    "SheetKind",
    "SHEET_ENDPOINTS",
    "SHEET_FIXED_FILTERS",
    "SHEET_LABELS",
    "MONTHS_PER_YEAR",
    "MONTH_SLOTTED_SHEETS",
    "MONTH_THEMES",
    "THEME_TO_MONTH",
    # Logical names
    "Column",
    "SHEET_COLUMNS",
    "DEPARTMENT_KEYS",
    "MONTH_DATE_KEYS",
    # Models
    "FieldKind",
    "ComputedRule",
    "StatusKind",
    "STATUS_LABELS",
    "DELAYED_SUFFIX",
    "IssueCode",
    "FieldOption",
    "ComputedSpec",
    "FieldSpec",
    "StatusResult",
    "ValidationIssue",
    "CollaboratorResult",
    "SaveResult",
    "SheetSaveResult",
    "DedupeResult",
    "SyncEvent",
    # Helpers
    "generate_trace_id",
    "parse_float_safe",
    "parse_int_safe",
    "is_number",
    "safe_get",
    "is_blank",
    "parse_date_safe",
    "format_date",
    "add_months",
    "month_range",
    "valid_month",
    "resolve_month",
    # Client and exceptions
    "PlanningApiClient",
    "get_planning_client",
    "reset_planning_client",
    "retry_with_backoff",
    "PlanningApiError",
    "PlanningApiNotFoundError",
    "PlanningApiAuthError",
    # Collaborators
    "RestSheetCollaborator",
    "build_rest_collaborators",
    "to_payload",
]

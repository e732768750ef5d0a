"""
Planning Sync Engine
====================

Keeps the four annual-planning sheets (yearly plan, major events, monthly
progress, 5W2H actions) consistent while they are edited and saved.

Components
----------
schema        Static field definitions per sheet
derived       progress / status derivation
validation    Row validation gated by "row has data"
upsert        Create vs update per row, update -> create fallback
propagation   Department/year propagation between sibling sheets
dedupe        Duplicate reconciliation by natural key
slots         12 month slots and read-only aggregated views
display       Cell rendering per field kind
store         In-memory workbook of one year
engine        Page controller tying it together
"""

from .config import load_sync_config, deep_merge
from .schema import fields_for, field, content_fields, required_keys
from .derived import (
    normalize_progress,
    derive_status,
    derive_progress_from_ratio,
    compute_derived,
    prepare_loaded_record,
)
from .validation import validate_row, validate_sheet, issues_for, revalidate_field, has_data
from .upsert import UpsertCoordinator
from .propagation import propagate
from .dedupe import DuplicateReconciler, NATURAL_KEYS
from .slots import AggregatedView, build_month_slots
from .display import render_cell
from .store import PlanningWorkbook, pad_month_slots
from .engine import PlanningSyncEngine

__all__ = [
    "load_sync_config",
    "deep_merge",
    "fields_for",
    "field",
    "content_fields",
    "required_keys",
    "normalize_progress",
    "derive_status",
    "derive_progress_from_ratio",
    "compute_derived",
    "prepare_loaded_record",
    "validate_row",
    "validate_sheet",
    "issues_for",
    "revalidate_field",
    "has_data",
    "UpsertCoordinator",
    "propagate",
    "DuplicateReconciler",
    "NATURAL_KEYS",
    "AggregatedView",
    "build_month_slots",
    "render_cell",
    "PlanningWorkbook",
    "pad_month_slots",
    "PlanningSyncEngine",
]

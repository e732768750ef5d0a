"""Cell rendering, one branch per FieldKind."""

from typing import Any, Dict, Optional

from planning_shared.helpers import is_blank, parse_date_safe, parse_float_safe, format_date
from planning_shared.logical_names import Column
from planning_shared.models import ComputedRule, FieldKind, FieldSpec, StatusKind, StatusResult

from .config import get_display_setting
from .derived import normalize_progress


def _render_number(value: Any) -> str:
    number = parse_float_safe(value, default=None)
    if number is None:
        return str(value).strip()
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}".rstrip("0").rstrip(".")


def _render_progress(value: Any) -> str:
    return f"{normalize_progress(value)}%"


def _render_status(value: Any, row: Optional[Dict[str, Any]]) -> str:
    try:
        kind = StatusKind(value)
    except ValueError:
        # legacy records store the label itself
        return str(value).strip()
    delayed = bool(row.get(Column.COMMON.DELAYED)) if row else False
    return StatusResult(kind=kind, delayed=delayed).label


def _render_textarea(value: Any) -> str:
    text = str(value).strip()
    limit = get_display_setting("textarea_max_chars", 40)
    if limit and len(text) > limit:
        return text[:limit] + "..."
    return text


def render_cell(spec: FieldSpec, value: Any, row: Optional[Dict[str, Any]] = None) -> str:
    """
    Display text of one cell.

    Args:
        spec: Field definition of the column
        value: Cell value
        row: Whole row, needed for the delayed suffix of the status column
    """
    if is_blank(value):
        return ""

    if spec.kind == FieldKind.COMPUTED:
        if spec.computed is not None and spec.computed.rule == ComputedRule.RATIO_PROGRESS:
            return _render_progress(value)
        if spec.computed is not None and spec.computed.rule == ComputedRule.STATUS:
            return _render_status(value, row)
        return str(value)

    if spec.kind == FieldKind.NUMBER:
        if spec.key == Column.COMMON.PROGRESS:
            return _render_progress(value)
        return _render_number(value)

    if spec.kind == FieldKind.DATE:
        parsed = parse_date_safe(value)
        return format_date(parsed) if parsed is not None else str(value).strip()

    if spec.kind == FieldKind.SELECT:
        label = spec.option_label(value)
        return label if label is not None else str(value).strip()

    if spec.kind == FieldKind.TEXTAREA:
        return _render_textarea(value)

    return str(value).strip()

"""
Validation Engine
=================

Row-level checks gated by a "row has data" predicate.

- An entirely empty row (no content field filled) produces no errors; it is
  an empty month slot and must not block saving the rest of the sheet.
- A row with any content is checked in full: every required field must be
  non-empty after trimming, numbers must parse, dates must parse.
- A sheet save is all-or-nothing at this stage: the caller submits nothing
  when ``validate_sheet`` returns any error.

Error messages are keyed by field; the stable code per (row, field) is
available through ``issues_for``.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from planning_shared.helpers import is_blank, is_number, parse_date_safe, parse_int_safe
from planning_shared.logical_names import Column
from planning_shared.models import FieldKind, FieldSpec, IssueCode, ValidationIssue
from planning_shared.sheet_config import SheetKind

from .schema import content_fields, fields_for

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = {
    IssueCode.REQUIRED: "{label} 不能为空",
    IssueCode.NOT_A_NUMBER: "{label} 必须是数字",
    IssueCode.INVALID_DATE: "{label} 日期格式不正确",
}


def has_data(sheet: SheetKind, row: Dict[str, Any]) -> bool:
    """True when any content field of the row is non-empty after trimming."""
    return any(not is_blank(row.get(spec.key)) for spec in content_fields(sheet))


def _check_field(spec: FieldSpec, value: Any) -> Optional[IssueCode]:
    if is_blank(value):
        return IssueCode.REQUIRED if spec.required else None
    if spec.kind == FieldKind.NUMBER and not is_number(value):
        return IssueCode.NOT_A_NUMBER
    if spec.kind == FieldKind.DATE and parse_date_safe(value) is None:
        return IssueCode.INVALID_DATE
    return None


def _row_issues(
    sheet: SheetKind,
    row: Dict[str, Any],
    schema: Optional[Sequence[FieldSpec]] = None,
    year: Optional[int] = None,
) -> List[Tuple[FieldSpec, IssueCode]]:
    if not has_data(sheet, row):
        return []
    if schema is None:
        if year is None:
            year = parse_int_safe(row.get(Column.COMMON.YEAR), default=None)
        schema = fields_for(sheet, year)

    issues = []
    for spec in schema:
        if spec.kind == FieldKind.COMPUTED:
            continue
        code = _check_field(spec, row.get(spec.key))
        if code is not None:
            issues.append((spec, code))
    return issues


def message_for(spec: FieldSpec, code: IssueCode) -> str:
    return MESSAGE_TEMPLATES[code].format(label=spec.label)


def validate_row(
    sheet: SheetKind,
    row: Dict[str, Any],
    schema: Optional[Sequence[FieldSpec]] = None,
) -> Dict[str, str]:
    """
    Validate one row.

    Args:
        sheet: Sheet of the row
        row: Row to check
        schema: Field list to check against. Defaults to
                ``fields_for(sheet, row["year"])``.

    Returns:
        Mapping field key -> message, empty when the row is valid
    """
    return {spec.key: message_for(spec, code) for spec, code in _row_issues(sheet, row, schema)}


def validate_sheet(
    sheet: SheetKind,
    rows: Sequence[Dict[str, Any]],
    year: Optional[int] = None,
) -> Dict[int, Dict[str, str]]:
    """
    Validate every row of a sheet.

    Args:
        sheet: Sheet of the rows
        rows: Rows in display order
        year: Year context for the schema. None uses each row's own year.

    Returns:
        Mapping row index -> (field key -> message). Valid rows are omitted.
    """
    errors: Dict[int, Dict[str, str]] = {}
    schema = fields_for(sheet, year) if year is not None else None
    for index, row in enumerate(rows):
        row_errors = validate_row(sheet, row, schema)
        if row_errors:
            errors[index] = row_errors
    if errors:
        logger.info(f"{sheet.value}: {len(errors)} of {len(rows)} rows have validation errors")
    return errors


def issues_for(
    sheet: SheetKind,
    rows: Sequence[Dict[str, Any]],
    year: Optional[int] = None,
) -> List[ValidationIssue]:
    """Typed issues for every row, with the stable error code."""
    issues = []
    for index, row in enumerate(rows):
        for spec, code in _row_issues(sheet, row, year=year):
            issues.append(ValidationIssue(
                row_index=index,
                field_key=spec.key,
                code=code,
                message=message_for(spec, code),
            ))
    return issues


def revalidate_field(
    sheet: SheetKind,
    row: Dict[str, Any],
    field_key: str,
    row_errors: Dict[str, str],
    year: Optional[int] = None,
) -> Dict[str, str]:
    """
    Refresh the error of one field after the user edited it.

    Returns a new error mapping for the row: the field's error is cleared
    when the value is now acceptable and set otherwise. When the edit
    emptied the whole row every error of the row is cleared.
    """
    if not has_data(sheet, row):
        return {}
    updated = dict(row_errors)
    updated.pop(field_key, None)
    for spec, code in _row_issues(sheet, row, year=year):
        if spec.key == field_key:
            updated[field_key] = message_for(spec, code)
    return updated

"""
Unit Tests for the Validation Engine

Tests:
- Empty rows are exempt
- A row with any content gets full required-field enforcement
- Number and date format checks
- Sheet level aggregation and per-field revalidation
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from fn_planning_sync.validation import (
    has_data,
    validate_row,
    validate_sheet,
    issues_for,
    revalidate_field,
)
from fn_planning_sync.schema import blank_row, fields_for, required_keys
from planning_shared.logical_names import DEPARTMENT_KEYS
from planning_shared.models import IssueCode
from planning_shared.sheet_config import SheetKind


class TestHasData:
    """Tests for the has-data predicate."""

    @pytest.mark.unit
    def test_blank_row_has_no_data(self):
        assert has_data(SheetKind.PLANNING, blank_row(SheetKind.PLANNING, 2025, 1)) is False

    @pytest.mark.unit
    def test_whitespace_is_empty(self):
        row = blank_row(SheetKind.EVENTS, 2025, 1)
        row["event_name"] = "   "
        assert has_data(SheetKind.EVENTS, row) is False

    @pytest.mark.unit
    def test_derived_and_department_do_not_count(self):
        row = blank_row(SheetKind.MONTHLY, 2025, 5)
        row.update({"progress": 40, "status": "in_progress", "department": "销售部"})
        assert has_data(SheetKind.MONTHLY, row) is False

    @pytest.mark.unit
    def test_remark_counts(self):
        row = blank_row(SheetKind.PLANNING, 2025, 1)
        row["remarks"] = "备注"
        assert has_data(SheetKind.PLANNING, row) is True


class TestValidateRow:
    """Tests for validate_row."""

    @pytest.mark.unit
    @pytest.mark.parametrize("sheet", list(SheetKind))
    def test_empty_row_has_no_errors(self, sheet):
        assert validate_row(sheet, blank_row(sheet, 2025, 1)) == {}
        assert validate_row(sheet, {}) == {}

    @pytest.mark.unit
    @pytest.mark.parametrize("sheet", list(SheetKind))
    def test_department_only_row_has_no_errors(self, sheet):
        """A slot pre-filled with the department alone is still an empty row."""
        row = blank_row(sheet, 2025, 3)
        row[DEPARTMENT_KEYS[sheet]] = "销售部"
        assert has_data(sheet, row) is False
        assert validate_row(sheet, row) == {}

    @pytest.mark.unit
    def test_one_optional_field_triggers_full_check(self):
        row = blank_row(SheetKind.PLANNING, 2024, 1)
        row["year"] = None
        row["month"] = None
        row["remarks"] = "只填了备注"

        errors = validate_row(SheetKind.PLANNING, row)

        assert set(errors) == set(required_keys(SheetKind.PLANNING, 2024))
        assert errors["plan_name"] == "计划名称 不能为空"

    @pytest.mark.unit
    def test_complete_row_is_valid(self, factory):
        assert validate_row(SheetKind.PLANNING, factory.planning_row()) == {}
        assert validate_row(SheetKind.EVENTS, factory.events_row()) == {}
        assert validate_row(SheetKind.MONTHLY, factory.monthly_row()) == {}
        assert validate_row(SheetKind.ACTION, factory.action_row()) == {}

    @pytest.mark.unit
    def test_strict_year_uses_row_year(self, factory):
        row = factory.planning_row(year=2025, actual_cost=None)
        assert "actual_cost" in validate_row(SheetKind.PLANNING, row)
        row["year"] = 2024
        assert validate_row(SheetKind.PLANNING, row) == {}

    @pytest.mark.unit
    def test_number_format(self, factory):
        row = factory.planning_row(budget="一百")
        assert validate_row(SheetKind.PLANNING, row) == {"budget": "预算（万元） 必须是数字"}

    @pytest.mark.unit
    def test_date_format(self, factory):
        row = factory.action_row(when="next week")
        errors = validate_row(SheetKind.ACTION, row)
        assert errors == {"when": "When（什么时候做） 日期格式不正确"}

    @pytest.mark.unit
    def test_explicit_schema(self, factory):
        row = factory.monthly_row(target_value=None)
        relaxed = fields_for(SheetKind.MONTHLY, 2024)
        assert validate_row(SheetKind.MONTHLY, row, relaxed) == {}


class TestValidateSheet:
    """Tests for sheet level validation."""

    @pytest.mark.unit
    def test_only_invalid_rows_reported(self, factory):
        rows = [
            factory.monthly_row(month=1),
            blank_row(SheetKind.MONTHLY, 2025, 2),
            factory.monthly_row(month=3, task_name=""),
        ]
        errors = validate_sheet(SheetKind.MONTHLY, rows, 2025)
        assert list(errors) == [2]
        assert errors[2] == {"task_name": "任务名称 不能为空"}

    @pytest.mark.unit
    def test_year_context_overrides_row_year(self, factory):
        rows = [factory.planning_row(year=2024, actual_result=None)]
        assert validate_sheet(SheetKind.PLANNING, rows) == {}
        assert 0 in validate_sheet(SheetKind.PLANNING, rows, year=2025)

    @pytest.mark.unit
    def test_issue_codes(self, factory):
        rows = [factory.planning_row(plan_name=None, budget="x", start_date="32/13")]
        issues = issues_for(SheetKind.PLANNING, rows)
        codes = {issue.field_key: issue.code for issue in issues}
        assert codes == {
            "plan_name": IssueCode.REQUIRED,
            "budget": IssueCode.NOT_A_NUMBER,
            "start_date": IssueCode.INVALID_DATE,
        }
        assert all(issue.row_index == 0 for issue in issues)


class TestRevalidateField:
    """Tests for clearing errors as the user corrects input."""

    @pytest.mark.unit
    def test_clears_corrected_field(self, factory):
        row = factory.planning_row(plan_name=None, responsible_person=None)
        errors = validate_row(SheetKind.PLANNING, row)

        row["plan_name"] = "新计划"
        updated = revalidate_field(SheetKind.PLANNING, row, "plan_name", errors)

        assert "plan_name" not in updated
        assert "responsible_person" in updated
        assert "plan_name" in errors  # input untouched

    @pytest.mark.unit
    def test_sets_error_on_bad_input(self, factory):
        row = factory.planning_row(budget="abc")
        updated = revalidate_field(SheetKind.PLANNING, row, "budget", {})
        assert updated == {"budget": "预算（万元） 必须是数字"}

    @pytest.mark.unit
    def test_emptied_row_clears_everything(self):
        row = blank_row(SheetKind.EVENTS, 2025, 3)
        updated = revalidate_field(SheetKind.EVENTS, row, "event_name", {"event_name": "x", "event_type": "y"})
        assert updated == {}

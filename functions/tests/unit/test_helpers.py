"""
Unit Tests for Helper Utilities

Tests all helper functions for:
- Trace ID generation
- Safe parsing utilities
- Date and month helpers
- Month resolution per sheet
"""

import pytest
from datetime import date, datetime

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from planning_shared.helpers import (
    generate_trace_id,
    parse_float_safe,
    parse_int_safe,
    is_number,
    is_blank,
    safe_get,
    parse_date_safe,
    add_months,
    month_range,
    valid_month,
    resolve_month,
)
from planning_shared.sheet_config import SheetKind


class TestGenerateTraceId:
    """Tests for trace ID generation."""

    @pytest.mark.unit
    def test_trace_id_format(self):
        """Test trace ID follows expected format."""
        trace_id = generate_trace_id()
        assert trace_id.startswith("trace-")
        assert len(trace_id) == 18  # "trace-" (6) + 12 hex chars

    @pytest.mark.unit
    def test_trace_id_uniqueness(self):
        ids = [generate_trace_id() for _ in range(100)]
        assert len(set(ids)) == 100, "All trace IDs should be unique"


class TestParsing:
    """Tests for safe number parsing."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        (1.5, 1.5),
        ("2.25", 2.25),
        (" 7 ", 7.0),
        ("abc", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        ("inf", 0.0),
    ])
    def test_parse_float_safe(self, value, expected):
        assert parse_float_safe(value) == expected

    @pytest.mark.unit
    def test_parse_float_custom_default(self):
        assert parse_float_safe("x", default=None) is None

    @pytest.mark.unit
    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        (3.0, 3),
        ("3", 3),
        ("3.0", 3),
        ("3.5", None),
        (3.5, None),
        ("三月", None),
        (False, None),
    ])
    def test_parse_int_safe(self, value, expected):
        assert parse_int_safe(value, default=None) == expected

    @pytest.mark.unit
    def test_is_number(self):
        assert is_number("12.5")
        assert is_number(0)
        assert not is_number("")
        assert not is_number("十二")

    @pytest.mark.unit
    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)
        assert not is_blank("x")

    @pytest.mark.unit
    def test_safe_get_nested(self):
        data = {"a": {"b": {"c": 1}}}
        assert safe_get(data, "a", "b", "c") == 1
        assert safe_get(data, "a", "x", default="missing") == "missing"
        assert safe_get(data, "a", "b", "c", "d", default=0) == 0


class TestDates:
    """Tests for date helpers."""

    @pytest.mark.unit
    def test_parse_date_variants(self):
        assert parse_date_safe("2025-03-01") == date(2025, 3, 1)
        assert parse_date_safe("2025-03-01T08:00:00.000Z") == date(2025, 3, 1)
        assert parse_date_safe(datetime(2025, 3, 1, 12, 0)) == date(2025, 3, 1)
        assert parse_date_safe(date(2025, 3, 1)) == date(2025, 3, 1)

    @pytest.mark.unit
    def test_parse_date_invalid(self):
        assert parse_date_safe("") is None
        assert parse_date_safe("03/01/2025") is None
        assert parse_date_safe("2025-02-30") is None

    @pytest.mark.unit
    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
        assert add_months(date(2025, 6, 15), 0) == date(2025, 6, 15)

    @pytest.mark.unit
    def test_month_range(self):
        assert month_range(2024, 2) == ("2024-02-01", "2024-02-29")
        assert month_range(2025, 12) == ("2025-12-01", "2025-12-31")

    @pytest.mark.unit
    def test_valid_month(self):
        assert valid_month("7") == 7
        assert valid_month(13) is None
        assert valid_month(0) is None
        assert valid_month(None) is None


class TestResolveMonth:
    """Tests for month slot resolution."""

    @pytest.mark.unit
    def test_explicit_month_wins(self):
        row = {"month": 5, "start_date": "2025-03-01"}
        assert resolve_month(SheetKind.PLANNING, row) == 5

    @pytest.mark.unit
    def test_falls_back_to_dates(self):
        row = {"month": None, "start_date": None, "end_date": "2025-08-20"}
        assert resolve_month(SheetKind.MONTHLY, row) == 8

    @pytest.mark.unit
    def test_events_use_planned_date(self):
        row = {"planned_date": "2025-10-01"}
        assert resolve_month(SheetKind.EVENTS, row) == 10

    @pytest.mark.unit
    def test_action_ignores_month_field(self):
        row = {"month": 2, "start_date": "2025-09-01", "when": "2025-09-30"}
        assert resolve_month(SheetKind.ACTION, row) == 9

    @pytest.mark.unit
    def test_unresolvable(self):
        assert resolve_month(SheetKind.ACTION, {"what": "x"}) is None

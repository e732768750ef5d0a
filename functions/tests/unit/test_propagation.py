"""
Unit Tests for Cross-Sheet Propagation

Tests:
- Department fan-out per source sheet
- Action rows matched on (month, previous department)
- Idempotence and purity
- Skips for blank departments and month-less rows
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from fn_planning_sync.propagation import propagate
from planning_shared.sheet_config import SheetKind


@pytest.fixture
def state(factory):
    return {
        SheetKind.PLANNING: [factory.planning_row(month=m, department="市场部") for m in (2, 3)],
        SheetKind.EVENTS: [factory.events_row(month=m, responsible_department="市场部") for m in (2, 3)],
        SheetKind.MONTHLY: [factory.monthly_row(month=m, department="市场部") for m in (2, 3)],
        SheetKind.ACTION: [
            factory.action_row(what="三月回访", department="市场部"),
            factory.action_row(what="三月培训", department="人事部"),
            factory.action_row(what="四月回访", department="市场部", start_date="2025-04-01", when="2025-04-30"),
        ],
    }


class TestPropagateFromPlanning:
    """Planning rows drive every other sheet."""

    @pytest.mark.unit
    def test_department_reaches_events_and_monthly(self, state, factory):
        saved = factory.planning_row(month=3, department="销售部")

        result = propagate(SheetKind.PLANNING, saved, state)

        assert result[SheetKind.EVENTS][1]["responsible_department"] == "销售部"
        assert result[SheetKind.MONTHLY][1]["department"] == "销售部"
        # other months untouched
        assert result[SheetKind.EVENTS][0]["responsible_department"] == "市场部"
        assert result[SheetKind.MONTHLY][0]["department"] == "市场部"

    @pytest.mark.unit
    def test_action_rows_matched_on_previous_department(self, state, factory):
        previous = factory.planning_row(month=3, department="市场部")
        saved = dict(previous, department="销售部")

        result = propagate(SheetKind.PLANNING, saved, state, previous_row=previous)

        actions = result[SheetKind.ACTION]
        assert actions[0]["department"] == "销售部"
        assert actions[1]["department"] == "人事部"
        assert actions[2]["department"] == "市场部"

    @pytest.mark.unit
    def test_action_rows_without_previous_match_new_department(self, state, factory):
        saved = factory.planning_row(month=3, department="人事部", year=2025)
        result = propagate(SheetKind.PLANNING, saved, state)
        assert result[SheetKind.ACTION][1]["department"] == "人事部"
        assert result[SheetKind.ACTION][0]["department"] == "市场部"

    @pytest.mark.unit
    def test_month_from_dates_when_month_blank(self, state, factory):
        saved = factory.planning_row(month=None, start_date="2025-02-05", end_date="2025-02-20", department="财务部")
        result = propagate(SheetKind.PLANNING, saved, state)
        assert result[SheetKind.MONTHLY][0]["department"] == "财务部"


class TestPropagateFromSiblings:
    """Events, monthly and action sources."""

    @pytest.mark.unit
    def test_events_to_planning_and_monthly(self, state, factory):
        saved = factory.events_row(month=2, responsible_department="研发部")
        result = propagate(SheetKind.EVENTS, saved, state)
        assert result[SheetKind.PLANNING][0]["department"] == "研发部"
        assert result[SheetKind.MONTHLY][0]["department"] == "研发部"
        assert result[SheetKind.EVENTS] is state[SheetKind.EVENTS]

    @pytest.mark.unit
    def test_monthly_to_planning_and_events(self, state, factory):
        saved = factory.monthly_row(month=3, department="研发部")
        result = propagate(SheetKind.MONTHLY, saved, state)
        assert result[SheetKind.PLANNING][1]["department"] == "研发部"
        assert result[SheetKind.EVENTS][1]["responsible_department"] == "研发部"
        assert result[SheetKind.ACTION] is state[SheetKind.ACTION]

    @pytest.mark.unit
    def test_action_to_planning_by_date_month(self, state, factory):
        saved = factory.action_row(department="客服部")
        result = propagate(SheetKind.ACTION, saved, state)
        assert result[SheetKind.PLANNING][1]["department"] == "客服部"
        assert result[SheetKind.PLANNING][0]["department"] == "市场部"
        assert result[SheetKind.EVENTS] is state[SheetKind.EVENTS]

    @pytest.mark.unit
    def test_action_without_dates_propagates_nothing(self, state, factory):
        saved = factory.action_row(department="客服部", start_date=None, when=None)
        result = propagate(SheetKind.ACTION, saved, state)
        assert result == state


class TestPropagateProperties:
    """Idempotence, purity and skips."""

    @pytest.mark.unit
    def test_idempotent(self, state, factory):
        saved = factory.planning_row(month=3, department="销售部")
        once = propagate(SheetKind.PLANNING, saved, state)
        twice = propagate(SheetKind.PLANNING, saved, once)
        assert once == twice

    @pytest.mark.unit
    def test_input_state_not_mutated(self, state, factory):
        snapshot = {sheet: [dict(r) for r in rows] for sheet, rows in state.items()}
        propagate(SheetKind.PLANNING, factory.planning_row(month=3, department="销售部"), state)
        assert state == snapshot

    @pytest.mark.unit
    def test_blank_department_skipped(self, state, factory):
        saved = factory.planning_row(month=3, department="  ")
        assert propagate(SheetKind.PLANNING, saved, state) == state

    @pytest.mark.unit
    def test_year_copied(self, state, factory):
        saved = factory.monthly_row(month=2, year=2026, department="市场部")
        result = propagate(SheetKind.MONTHLY, saved, state)
        assert result[SheetKind.PLANNING][0]["year"] == 2026

    @pytest.mark.unit
    def test_missing_target_sheet_ignored(self, factory):
        state = {SheetKind.EVENTS: [factory.events_row(month=3)]}
        result = propagate(SheetKind.PLANNING, factory.planning_row(month=3, department="销售部"), state)
        assert set(result) == {SheetKind.EVENTS}
        assert result[SheetKind.EVENTS][0]["responsible_department"] == "销售部"
